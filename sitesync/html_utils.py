"""HTML string manipulation for sitesync.

Rendered pages are edited with plain string scanning rather than a full HTML parse,
so every function here works on exact indexes and line boundaries of the markup the
Markdown renderer produces.

Functions:
    escape_html: Escape special HTML characters in a string.
    is_local_link: Check whether an href points inside the site.
    rewrite_markdown_links: Point local ``.md`` anchors at their ``.html`` output.
    inject_after_first_heading: Insert fragments after the first ``</h1>`` line.
    inject_stylesheet_link: Insert a ``<link>`` right after the opening head tag.
    stylesheet_href: Relative href from a built page to a built stylesheet.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import PurePosixPath

MARKDOWN_EXTENSION = ".md"
HTML_EXTENSION = ".html"
INJECT_AFTER = "</h1>"
STYLESHEET_TAG_TEMPLATE = '<link rel="stylesheet" href="{href}" />'

_ANCHOR_RE = re.compile(r'<a\s+(?:[^>]*?\s+)?href="(?P<href>[^"]+)"[^>]*>', re.IGNORECASE)
_HEAD_OPEN_RE = re.compile(r"<head(?=[\s>/])", re.IGNORECASE)

# URL prefixes that never point at a local document
_NON_LOCAL_PREFIXES = (
    "http://",
    "https://",
    "//",
    "mailto:",
    "ftp:",
    "#",
)


class NoHeadTagError(ValueError):
    """Raised when a page has no ``<head>`` tag to attach a stylesheet to."""

    def __init__(self, message: str = "no head tag in html"):
        super().__init__(message)


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Examples:
        >>> escape_html('Tom & "Jerry"')
        'Tom &amp; &quot;Jerry&quot;'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def is_local_link(href: str) -> bool:
    """Check if an href is a same-site relative reference.

    Absolute URLs, protocol-relative URLs, mailto/ftp links and pure fragments
    are not local.
    """
    return bool(href) and not href.lower().startswith(_NON_LOCAL_PREFIXES)


def _rewrite_href(href: str) -> str:
    cut = len(href)
    for sep in ("#", "?"):
        index = href.find(sep)
        if index != -1:
            cut = min(cut, index)
    path, rest = href[:cut], href[cut:]
    if not path.lower().endswith(MARKDOWN_EXTENSION):
        return href
    return path[: -len(MARKDOWN_EXTENSION)] + HTML_EXTENSION + rest


def rewrite_markdown_links(html: str) -> str:
    """Rewrite local anchor hrefs ending in ``.md`` to ``.html``.

    A trailing fragment or query string is kept.

    Examples:
        >>> rewrite_markdown_links('<a href="page.md">x</a>')
        '<a href="page.html">x</a>'

        >>> rewrite_markdown_links('<a href="https://x.com/page.md">x</a>')
        '<a href="https://x.com/page.md">x</a>'
    """

    def repl(match: re.Match) -> str:
        href = match.group("href")
        if not is_local_link(href):
            return match.group(0)
        rewritten = _rewrite_href(href)
        if rewritten == href:
            return match.group(0)
        start, end = match.span("href")
        offset = match.start()
        tag = match.group(0)
        return tag[: start - offset] + rewritten + tag[end - offset :]

    return _ANCHOR_RE.sub(repl, html)


def inject_after_first_heading(html: str, fragments: Iterable[str]) -> str:
    """Insert fragments right after the first line containing ``</h1>``.

    Args:
        html: Rendered page.
        fragments: Markup inserted in order, each on its own line.

    Returns:
        The page with the fragments inserted, or unchanged when it has no
        top-level heading.
    """
    lines = html.splitlines(keepends=True)
    for index, line in enumerate(lines):
        if INJECT_AFTER in line:
            if not line.endswith("\n"):
                lines[index] = line + "\n"
            inserted = [f if f.endswith("\n") else f + "\n" for f in fragments]
            lines[index + 1 : index + 1] = inserted
            return "".join(lines)
    return html


def inject_stylesheet_link(html: str, href: str) -> str:
    """Insert a stylesheet link immediately after the opening head tag.

    Examples:
        >>> inject_stylesheet_link("<html><head><head/><body></body></html>", "./hello")
        '<html><head><link rel="stylesheet" href="./hello" /><head/><body></body></html>'

    Raises:
        NoHeadTagError: If there is no ``<head`` tag or it is never closed.
    """
    match = _HEAD_OPEN_RE.search(html)
    if match is None:
        raise NoHeadTagError()
    close = html.find(">", match.start())
    if close == -1:
        raise NoHeadTagError("head tag is never closed")
    insert_at = close + 1
    tag = STYLESHEET_TAG_TEMPLATE.format(href=escape_html(href))
    return html[:insert_at] + tag + html[insert_at:]


def stylesheet_href(destination: str | PurePosixPath, stylesheet_key: str) -> str:
    """Compute the href a built page uses to reach a built stylesheet.

    ``destination`` is the page path as laid out in the build, starting with the
    build root directory, so ``"../"`` is repeated (slash count - 1) times.

    Examples:
        >>> stylesheet_href("build/a/b/page.html", "css/main.css")
        '../../css/main.css'

        >>> stylesheet_href("build/index.html", "css/main.css")
        'css/main.css'
    """
    depth = PurePosixPath(destination).as_posix().count("/")
    return "../" * max(depth - 1, 0) + stylesheet_key
