"""Template rendering for sitesync.

This module uses Jinja2 to render the fixed markup sitesync adds around content:
the complete HTML document shell and the metadata header fragments (creation date
and tag list). User content is never treated as a template.

Key class:
- TemplateEngine: Loads the bundled templates once and renders them.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape
from markupsafe import Markup

from . import __version__

__all__ = ["TEMPLATES_DIR", "TemplateEngine"]

TEMPLATES_DIR = Path(__file__).parent / "templates"

PAGE_TEMPLATE = "page.html.jinja"
CREATED_AT_TEMPLATE = "created_at.html.jinja"
TAGS_TEMPLATE = "tags.html.jinja"

# RFC 850 style, e.g. "Tuesday, 02-Jan-24 10:00:00 UTC"
CREATED_AT_FORMAT = "%A, %d-%b-%y %H:%M:%S UTC"


class TemplateEngine:
    """Renders the bundled page shell and metadata fragments.

    Templates are compiled when the engine is created and never reloaded, so one
    engine can be shared by every page of a build.

    Attributes:
        templates_dir: Directory the templates were loaded from.
        date_format: strftime format for the creation date fragment.
    """

    def __init__(
        self,
        templates_dir: Path | None = None,
        date_format: str = CREATED_AT_FORMAT,
    ):
        """Initialize the engine and compile every template.

        Args:
            templates_dir: Optional directory overriding the bundled templates.
            date_format: strftime format for displayed creation dates.
        """
        self.templates_dir = templates_dir or TEMPLATES_DIR
        self.date_format = date_format
        env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "jinja"]),
            undefined=StrictUndefined,
        )
        self._page = env.get_template(PAGE_TEMPLATE)
        self._created_at = env.get_template(CREATED_AT_TEMPLATE)
        self._tags = env.get_template(TAGS_TEMPLATE)

    def render_page(self, title: str, content: str) -> str:
        """Wrap an HTML fragment in a complete document.

        Args:
            title: Plain-text document title (escaped on output).
            content: Rendered HTML body fragment (inserted as is).
        """
        html = self._page.render(
            title=title, content=Markup(content), version=__version__
        )
        return html + "\n"

    def render_created_at(self, created_at: datetime) -> str:
        """Render the creation date fragment."""
        return self._created_at.render(
            created_at=created_at, date_format=self.date_format
        )

    def render_tags(self, tags: tuple[str, ...] | list[str]) -> str:
        """Render the tag list fragment."""
        return self._tags.render(tags=list(tags))

    def render_metadata_header(
        self, created_at: datetime, tags: tuple[str, ...] | list[str]
    ) -> list[str]:
        """Render both metadata fragments in injection order."""
        return [self.render_created_at(created_at), self.render_tags(tags)]
