"""Source discovery and per-document transforms for sitesync.

Key classes:
- SourceDocument: A Markdown or CSS source file and the key it publishes to.
- RenderedArtifact: Final bytes of one output file plus its key and content type.
- FileContentLoader: Discovers source files under a root directory.
- StylesheetBuilder: Turns a CSS source into a minified artifact.
- PageBuilder: Turns a Markdown source into a complete HTML page artifact.

PageBuilder applies its steps in a fixed order that later steps rely on:
front matter (tags, created timestamp, stripping), rendering, metadata header,
stylesheet links, then link rewriting.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from .asset_processors import CSSMinifier
from .extractors import FrontMatter, FrontMatterExtractor
from .html_utils import (
    HTML_EXTENSION,
    MARKDOWN_EXTENSION,
    inject_after_first_heading,
    inject_stylesheet_link,
    rewrite_markdown_links,
    stylesheet_href,
)
from .log import fields
from .protocols import MarkdownConverter, StylesheetMinifier
from .renderers import MarkdownRenderer
from .store import CONTENT_TYPE_CSS, CONTENT_TYPE_HTML
from .templates import TemplateEngine

logger = logging.getLogger(__name__)

CSS_EXTENSION = ".css"
CSS_KEY_PREFIX = "css"


@dataclass(frozen=True)
class SourceDocument:
    """A source file discovered for this build.

    Attributes:
        source_path: Absolute path of the source file.
        relative_path: Path relative to its source root.
        output_key: Key of the artifact, locally and remotely.
        content_type: MIME type the artifact is published with.
    """

    source_path: Path
    relative_path: PurePosixPath
    output_key: str
    content_type: str

    def read(self) -> bytes:
        """Read the raw source bytes."""
        return self.source_path.read_bytes()


@dataclass(frozen=True)
class RenderedArtifact:
    """Final content of one output file.

    Attributes:
        key: Output key (relative POSIX path, no leading slash).
        content: Bytes to write and upload.
        content_type: MIME type for the upload.
    """

    key: str
    content: bytes
    content_type: str


def markdown_output_key(relative_path: PurePosixPath) -> str:
    """Map a Markdown source path to its HTML output key.

    Examples:
        >>> markdown_output_key(PurePosixPath("posts/Hello.MD"))
        'posts/Hello.html'
    """
    name = relative_path.name
    if name.lower().endswith(MARKDOWN_EXTENSION):
        name = name[: -len(MARKDOWN_EXTENSION)] + HTML_EXTENSION
    return relative_path.with_name(name).as_posix()


def stylesheet_output_key(relative_path: PurePosixPath) -> str:
    """Map a CSS source path to its output key under ``css/``."""
    return (PurePosixPath(CSS_KEY_PREFIX) / relative_path).as_posix()


class FileContentLoader:
    """Discovers source files under a directory.

    Attributes:
        root: Directory to search.
    """

    def __init__(self, root: Path):
        self.root = root

    def iter_files(self, extension: str) -> list[Path]:
        """List files with the given extension, case-insensitively, sorted.

        Args:
            extension: Extension including the dot, e.g. ``".md"``.

        Returns:
            Sorted list of matching file paths.
        """
        if not self.root.is_dir():
            return []
        wanted = extension.lower()
        return sorted(
            path
            for path in self.root.rglob("*")
            if path.is_file() and path.name.lower().endswith(wanted)
        )

    def relative(self, path: Path) -> PurePosixPath:
        return PurePosixPath(path.relative_to(self.root).as_posix())

    def markdown_documents(self) -> list[SourceDocument]:
        """Discover Markdown documents and their HTML output keys."""
        documents = []
        for path in self.iter_files(MARKDOWN_EXTENSION):
            rel = self.relative(path)
            documents.append(
                SourceDocument(path, rel, markdown_output_key(rel), CONTENT_TYPE_HTML)
            )
        return documents

    def stylesheet_documents(self) -> list[SourceDocument]:
        """Discover stylesheets and their ``css/`` output keys."""
        documents = []
        for path in self.iter_files(CSS_EXTENSION):
            rel = self.relative(path)
            documents.append(
                SourceDocument(path, rel, stylesheet_output_key(rel), CONTENT_TYPE_CSS)
            )
        return documents


class StylesheetBuilder:
    """Builds minified stylesheet artifacts.

    Attributes:
        minifier: Stylesheet minifier.
    """

    def __init__(self, minifier: StylesheetMinifier | None = None):
        self.minifier = minifier or CSSMinifier()

    def build(self, document: SourceDocument, raw: bytes) -> RenderedArtifact:
        """Minify a stylesheet.

        Raises:
            MinifyError: If the stylesheet is malformed.
            UnicodeDecodeError: If the source is not UTF-8.
        """
        minified = self.minifier.minify(raw.decode("utf-8"))
        return RenderedArtifact(
            document.output_key, minified.encode("utf-8"), document.content_type
        )


class PageBuilder:
    """Builds complete HTML pages from Markdown sources.

    Attributes:
        renderer: Markdown to HTML converter.
        template_engine: Engine rendering the metadata header fragments.
        extractor: Front-matter extractor.
        build_root_name: Name of the build directory, the first segment of every
            page destination used for relative stylesheet hrefs.
    """

    def __init__(
        self,
        renderer: MarkdownConverter | None = None,
        template_engine: TemplateEngine | None = None,
        extractor: FrontMatterExtractor | None = None,
        build_root_name: str = "build",
    ):
        self.template_engine = template_engine or TemplateEngine()
        self.renderer = renderer or MarkdownRenderer(self.template_engine)
        self.extractor = extractor or FrontMatterExtractor()
        self.build_root_name = build_root_name or "build"

    def destination(self, document: SourceDocument) -> PurePosixPath:
        """Page path as laid out in the build, build root included."""
        return PurePosixPath(self.build_root_name, document.output_key)

    def build(
        self,
        document: SourceDocument,
        raw: bytes,
        stylesheet_keys: Sequence[str] = (),
    ) -> tuple[RenderedArtifact, FrontMatter]:
        """Transform a Markdown source into an HTML page.

        Args:
            document: Source document.
            raw: Raw source bytes.
            stylesheet_keys: Output keys of every built stylesheet to link.

        Returns:
            Tuple of (page artifact, extracted front matter).

        Raises:
            MetadataParseError: If the created line is malformed.
            NoHeadTagError: If the rendered page has no head tag.
            UnicodeDecodeError: If the source is not UTF-8.
        """
        text = raw.decode("utf-8")
        front_matter, body = self.extractor.extract(text)

        html = self.renderer.render(body, document.source_path)
        html = inject_after_first_heading(
            html,
            self.template_engine.render_metadata_header(
                front_matter.created_at, front_matter.tags
            ),
        )

        destination = self.destination(document)
        # Injected in reverse so the links end up in sorted key order.
        for key in sorted(stylesheet_keys, reverse=True):
            html = inject_stylesheet_link(html, stylesheet_href(destination, key))

        html = rewrite_markdown_links(html)
        logger.debug(
            "rendered page",
            extra=fields(path=document.relative_path, key=document.output_key),
        )
        artifact = RenderedArtifact(
            document.output_key, html.encode("utf-8"), document.content_type
        )
        return artifact, front_matter
