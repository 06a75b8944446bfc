"""Protocol definitions for sitesync.

This module defines the narrow interfaces the build pipeline consumes. Concrete
implementations live in renderers.py, asset_processors.py and store.py; tests can
substitute fakes for any of them.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class StoredObject:
    """An entry of an object store listing.

    Attributes:
        key: Object key.
        is_directory_marker: Whether the key is a folder placeholder.
    """

    key: str
    is_directory_marker: bool = False


@runtime_checkable
class MarkdownConverter(Protocol):
    """Protocol for turning a Markdown body into a complete HTML document."""

    @abstractmethod
    def render(self, body: str, source_path: Path | None = None) -> str:
        """Render Markdown to HTML.

        Args:
            body: Markdown text without front matter.
            source_path: Source file, for titles and diagnostics.

        Returns:
            Complete HTML document.
        """
        ...


@runtime_checkable
class StylesheetMinifier(Protocol):
    """Protocol for CSS minifiers."""

    @abstractmethod
    def minify(self, css: str) -> str:
        """Minify stylesheet text.

        Raises:
            MinifyError: If the stylesheet is malformed.
        """
        ...


@runtime_checkable
class ObjectStore(Protocol):
    """Protocol for the remote object store sitesync publishes to.

    Every method raises StoreError on failure.
    """

    @abstractmethod
    def list_objects(self) -> list[StoredObject]:
        """List every object in the store."""
        ...

    @abstractmethod
    def get_object(self, key: str) -> bytes:
        """Download the full body of an object."""
        ...

    @abstractmethod
    def put_object(self, key: str, content_type: str, data: bytes) -> None:
        """Upload an object, replacing any existing one."""
        ...
