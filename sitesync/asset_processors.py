"""Stylesheet processing for sitesync.

Key classes:
- CSSMinifier: Validates and minifies stylesheet text with csscompressor.
- MinifyError: Raised for stylesheets that cannot be minified.
"""

from __future__ import annotations

import re

import csscompressor

# Strings and comments in one left-to-right pass, whichever opens first wins.
_TOKEN_RE = re.compile(
    r'"(?:\\.|[^"\\\n])*"|\'(?:\\.|[^\'\\\n])*\'|/\*.*?\*/', re.DOTALL
)


def _mask_token(match: re.Match) -> str:
    token = match.group(0)
    if token.startswith("/*"):
        # Keep line numbers stable for brace errors.
        return "\n" * token.count("\n")
    return '""'


class MinifyError(ValueError):
    """Raised when a stylesheet is malformed or the minifier fails."""


def check_structure(css: str) -> None:
    """Reject stylesheets the minifier would silently mangle.

    Checks for unterminated comments and strings and for unbalanced braces.

    Raises:
        MinifyError: If the stylesheet is malformed.
    """
    stripped = _TOKEN_RE.sub(_mask_token, css)
    if "/*" in stripped:
        raise MinifyError("unterminated comment")
    if re.search(r"[\"']", stripped.replace('""', "")):
        raise MinifyError("unterminated string")
    depth = 0
    for line_no, line in enumerate(stripped.splitlines(), start=1):
        for char in line:
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth < 0:
                    raise MinifyError(f"unexpected '}}' on line {line_no}")
    if depth:
        raise MinifyError(f"{depth} unclosed block(s)")


class CSSMinifier:
    """Minifies CSS using csscompressor.

    Attributes:
        max_linelen: Optional line length limit passed to csscompressor.
    """

    def __init__(self, max_linelen: int = 0):
        self.max_linelen = max_linelen

    def minify(self, css: str) -> str:
        """Minify stylesheet text.

        Raises:
            MinifyError: If the stylesheet is malformed or cannot be compressed.
        """
        check_structure(css)
        try:
            return csscompressor.compress(css, max_linelen=self.max_linelen)
        except Exception as exc:
            raise MinifyError(f"css minification failed: {exc}") from exc
