"""Directory mirroring for sitesync.

Key class:
- DirectoryMirror: Recreates a source directory tree under a build directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .log import fields

logger = logging.getLogger(__name__)


class DirectoryMirror:
    """Replicates every directory of a source tree under a destination root.

    Attributes:
        source_root: Tree to mirror.
        dest_root: Directory that receives the copy of the structure.
    """

    def __init__(self, source_root: Path, dest_root: Path):
        self.source_root = source_root
        self.dest_root = dest_root

    def directories(self) -> list[Path]:
        """List the source root and every directory below it, parents first."""
        if not self.source_root.is_dir():
            return []
        nested = sorted(p for p in self.source_root.rglob("*") if p.is_dir())
        return [self.source_root, *nested]

    def target_for(self, directory: Path) -> Path:
        return self.dest_root / directory.relative_to(self.source_root)

    def create(self, target: Path) -> bool:
        """Create one directory.

        Returns:
            True if it was created, False if it already existed.

        Raises:
            OSError: For any failure other than the directory already existing.
        """
        try:
            target.mkdir(parents=True)
        except FileExistsError:
            if not target.is_dir():
                raise
            logger.debug("directory already exists", extra=fields(dir=target))
            return False
        return True

    def mirror(self) -> list[Path]:
        """Recreate the source structure under the destination root.

        Returns:
            Directories that were newly created.

        Raises:
            OSError: If a directory cannot be created.
        """
        created = []
        for directory in self.directories():
            target = self.target_for(directory)
            if self.create(target):
                created.append(target)
        return created
