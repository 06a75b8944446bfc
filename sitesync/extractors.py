"""Front-matter extraction for Markdown documents.

Documents may start with a metadata block delimited by two ``---`` lines::

    ---
    tags:
      - go
      - build
    created: 2024-01-02 10:00
    ---
    # Title

Key functions and classes:
- split_frontmatter: Separate the metadata block from the body.
- extract_tags: Ordered tags listed under ``tags:``.
- extract_created_at: Creation timestamp from the ``created:`` line.
- strip_frontmatter: Body with the metadata block removed.
- FrontMatterExtractor: Runs the three steps above in their fixed order.

A block counts as front matter only when its opening marker is the first non-blank
line and a closing marker follows. Anything else (no marker, an unterminated block)
is a document without metadata, left unchanged by strip_frontmatter.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

METADATA_BRACE = "---"
TAG_BULLET = "  - "
TAGS_KEY = "tags:"
CREATED_KEY = "created:"
CREATED_FORMAT = "%Y-%m-%d %H:%M"

# Value used when a document has no created line.
ZERO_TIMESTAMP = datetime(1, 1, 1)


class MetadataParseError(ValueError):
    """Raised when a ``created:`` line is present but cannot be parsed."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f"Invalid created timestamp {value!r}, expected format YYYY-MM-DD HH:MM"
        )


@dataclass(frozen=True)
class FrontMatter:
    """Metadata extracted from a document's front-matter block.

    Attributes:
        tags: Tags in the order they were listed.
        created_at: Creation timestamp, ZERO_TIMESTAMP when absent.
        found: Whether a well-formed block was present at all.
    """

    tags: tuple[str, ...] = ()
    created_at: datetime = ZERO_TIMESTAMP
    found: bool = False

    @property
    def has_created_at(self) -> bool:
        return self.created_at != ZERO_TIMESTAMP


@dataclass(frozen=True)
class SplitDocument:
    """A document split into its front-matter lines and body text."""

    block: list[str] | None
    body: str


def _is_marker(line: str) -> bool:
    return line.strip() == METADATA_BRACE


def split_frontmatter(text: str) -> SplitDocument:
    """Split a document into its front-matter block and body.

    Args:
        text: Full document text.

    Returns:
        SplitDocument whose ``block`` holds the lines between the two markers
        (exclusive), or None when the document has no well-formed block.
    """
    lines = text.splitlines(keepends=True)
    start = next((i for i, line in enumerate(lines) if line.strip()), None)
    if start is None or not _is_marker(lines[start]):
        return SplitDocument(block=None, body=text)
    for end in range(start + 1, len(lines)):
        if _is_marker(lines[end]):
            block = [line.rstrip("\r\n") for line in lines[start + 1 : end]]
            body = "".join(lines[:start] + lines[end + 1 :])
            return SplitDocument(block=block, body=body)
    return SplitDocument(block=None, body=text)


def extract_tags(text: str, bullet: str = TAG_BULLET) -> list[str]:
    """Extract the ordered tag list from a document's front matter.

    Tags are the run of bullet lines that follows the ``tags:`` key. Collection
    stops at the first line without the bullet prefix.

    Examples:
        >>> extract_tags("---\\ntags:\\n  - go\\n  - build\\n---\\n")
        ['go', 'build']
    """
    block = split_frontmatter(text).block
    if block is None:
        return []
    tags: list[str] = []
    collecting = False
    for line in block:
        if collecting:
            if not line.startswith(bullet):
                break
            tag = line[len(bullet) :].strip()
            if tag:
                tags.append(tag)
            continue
        if line.strip().startswith(TAGS_KEY):
            collecting = True
    return tags


def extract_created_at(text: str) -> datetime:
    """Extract the creation timestamp from a document's front matter.

    Returns:
        The parsed timestamp, or ZERO_TIMESTAMP when there is no created line.

    Raises:
        MetadataParseError: If the created line does not match CREATED_FORMAT.
    """
    block = split_frontmatter(text).block
    if block is None:
        return ZERO_TIMESTAMP
    for line in block:
        if line.startswith(CREATED_KEY):
            value = line[len(CREATED_KEY) :].strip()
            try:
                return datetime.strptime(value, CREATED_FORMAT)
            except ValueError as exc:
                raise MetadataParseError(value) from exc
    return ZERO_TIMESTAMP


def strip_frontmatter(text: str) -> str:
    """Remove the front-matter block, markers included."""
    return split_frontmatter(text).body


class FrontMatterExtractor:
    """Extracts metadata and the stripped body from a document.

    Steps run in a fixed order: tags, created timestamp, then stripping.

    Attributes:
        bullet: Line prefix that marks a tag entry.
    """

    def __init__(self, bullet: str = TAG_BULLET):
        self.bullet = bullet

    def extract(self, text: str) -> tuple[FrontMatter, str]:
        """Extract front matter from a document.

        Args:
            text: Full document text.

        Returns:
            Tuple of (FrontMatter, body without the block).

        Raises:
            MetadataParseError: If the created line is malformed.
        """
        found = split_frontmatter(text).block is not None
        tags = extract_tags(text, self.bullet)
        created_at = extract_created_at(text)
        body = strip_frontmatter(text)
        return FrontMatter(tags=tuple(tags), created_at=created_at, found=found), body
