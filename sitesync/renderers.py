"""Markdown rendering for sitesync.

Key classes:
- _HeadingIdRenderer: mistune renderer that gives every heading a unique id.
- MarkdownRenderer: Renders a Markdown body to a complete HTML document.
"""

from __future__ import annotations

import re
from pathlib import Path

import mistune
from markupsafe import Markup

from .templates import TemplateEngine

MARKDOWN_PLUGINS = ["strikethrough", "footnotes", "table", "url"]


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text, possibly containing inline markup.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = Markup(text).striptags().lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


class _HeadingIdRenderer(mistune.HTMLRenderer):
    """HTML renderer that adds ids to headings and remembers the first one.

    Attributes:
        first_heading: Plain text of the first heading rendered, if any.
    """

    def __init__(self):
        super().__init__(escape=False)
        self.first_heading: str | None = None
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        """Render a heading with an auto-generated, de-duplicated id."""
        base_id = _generate_heading_id(text) or "section"

        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id

        if self.first_heading is None:
            self.first_heading = Markup(text).striptags()

        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'


class MarkdownRenderer:
    """Renders Markdown bodies to complete HTML documents.

    Attributes:
        template_engine: Engine providing the document shell.
    """

    def __init__(self, template_engine: TemplateEngine | None = None):
        self.template_engine = template_engine or TemplateEngine()

    def render_fragment(self, body: str) -> tuple[str, str | None]:
        """Render Markdown to an HTML fragment.

        Returns:
            Tuple of (HTML fragment, first heading text or None).
        """
        renderer = _HeadingIdRenderer()
        markdown = mistune.create_markdown(renderer=renderer, plugins=MARKDOWN_PLUGINS)
        return markdown(body), renderer.first_heading

    def render(self, body: str, source_path: Path | None = None) -> str:
        """Render Markdown to a complete HTML document.

        Args:
            body: Markdown text with the front matter already removed.
            source_path: Source file, used for the title when there is no heading.

        Returns:
            HTML document text.
        """
        fragment, heading = self.render_fragment(body)
        title = heading or (source_path.stem if source_path else "")
        return self.template_engine.render_page(title, fragment)
