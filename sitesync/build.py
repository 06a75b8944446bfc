"""Incremental site building for sitesync.

This module sequences a whole run: it fetches the remote snapshot, mirrors the
source directories into the build output, minifies stylesheets, renders every
Markdown page, and uploads only the artifacts whose digest differs from the
remote copy.

Key classes and functions:
- SiteBuilder: Runs one build and owns all of its state.
- build_site: Build with the default collaborators for a configuration.
- BuildResult: What a run wrote, uploaded and skipped.

Failure policy:
- Fatal conditions (I/O errors, undecodable sources, bad front matter, missing
  head tags, minification failures, duplicate output keys, deadline) raise
  BuildError.
- A failed snapshot fetch degrades to an empty snapshot, so everything uploads.
- Upload failures are logged and recorded in BuildResult.failed_uploads.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from .asset_processors import MinifyError
from .changes import (
    RemoteSnapshot,
    UploadDispatcher,
    UploadReport,
    fetch_remote_snapshot,
    should_upload,
)
from .config import SiteConfig
from .content import (
    FileContentLoader,
    PageBuilder,
    RenderedArtifact,
    SourceDocument,
    StylesheetBuilder,
)
from .extractors import MetadataParseError
from .hashing import Hasher
from .html_utils import NoHeadTagError
from .log import fields
from .mirror import DirectoryMirror
from .protocols import ObjectStore
from .store import StoreError, create_store

logger = logging.getLogger(__name__)


class BuildError(Exception):
    """Fatal error during a build, with file context.

    Attributes:
        source_path: Path of the file or directory that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


class DuplicateOutputKeyError(BuildError):
    """Two or more sources map to the same output key.

    Attributes:
        conflicts: Output key to the sorted source paths claiming it.
    """

    def __init__(self, root: Path, conflicts: dict[str, list[Path]]):
        self.conflicts = conflicts
        details = "; ".join(
            f"{key} <- {', '.join(str(p) for p in paths)}"
            for key, paths in sorted(conflicts.items())
        )
        super().__init__(root, f"duplicate output keys: {details}")


class BuildTimeoutError(BuildError):
    """The run exceeded its configured deadline."""


@dataclass
class BuildResult:
    """Result of a build run.

    Attributes:
        output_dir: Directory the build was written to.
        local_hashes: Output key to digest of every artifact built.
        uploaded: Keys uploaded successfully this run. With upload disabled these
            are the keys that would have been uploaded.
        skipped: Keys whose remote copy was already current.
        failed_uploads: (key, error) pairs for uploads that failed.
        snapshot_available: False when the remote snapshot could not be fetched.
    """

    output_dir: Path
    local_hashes: dict[str, str] = field(default_factory=dict)
    uploaded: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed_uploads: list[tuple[str, Exception]] = field(default_factory=list)
    snapshot_available: bool = True

    @property
    def pages(self) -> list[str]:
        return [key for key in self.local_hashes if key.endswith(".html")]

    @property
    def stylesheets(self) -> list[str]:
        return [key for key in self.local_hashes if key.endswith(".css")]


class SiteBuilder:
    """Runs one incremental build.

    Attributes:
        config: Site configuration.
        store: Object store artifacts are published to.
        hasher: Digest used for local and remote content.
        page_builder: Markdown page pipeline.
        stylesheet_builder: Stylesheet pipeline.
        dispatcher: Concurrent upload dispatcher.
    """

    def __init__(
        self,
        config: SiteConfig,
        store: ObjectStore,
        hasher: Hasher | None = None,
        page_builder: PageBuilder | None = None,
        stylesheet_builder: StylesheetBuilder | None = None,
    ):
        self.config = config
        self.store = store
        self.hasher = hasher or Hasher(config.hash_algorithm)
        self.page_builder = page_builder or PageBuilder(
            build_root_name=config.output_dir.name
        )
        self.stylesheet_builder = stylesheet_builder or StylesheetBuilder()
        self._cancel = threading.Event()
        self.dispatcher = UploadDispatcher(
            store, config.upload_concurrency, cancel_event=self._cancel
        )
        self._deadline: float | None = None
        self._pending: list[RenderedArtifact] = []

    # Run steps

    def build(self) -> BuildResult:
        """Run the build.

        Returns:
            BuildResult describing what was built and uploaded.

        Raises:
            BuildError: On any fatal condition.
        """
        config = self.config
        if config.timeout:
            self._deadline = time.monotonic() + float(config.timeout)
        result = BuildResult(output_dir=config.output_dir)
        self._pending = []

        if not config.markdown_dir.is_dir():
            raise BuildError(config.markdown_dir, "markdown directory not found")
        markdown_loader = FileContentLoader(config.markdown_dir)
        css_loader = FileContentLoader(config.css_dir)
        if not config.css_dir.is_dir():
            logger.warning(
                "css directory not found, building without stylesheets",
                extra=fields(path=config.css_dir),
            )
        stylesheets = css_loader.stylesheet_documents()
        documents = markdown_loader.markdown_documents()
        self._check_unique_keys([*stylesheets, *documents])

        snapshot = self._fetch_snapshot(result)

        if config.local_output:
            self._mirror(config.markdown_dir, config.output_dir)
            self._mirror(config.css_dir, config.css_output_dir)

        built_keys = []
        for document in stylesheets:
            self._check_deadline(document.source_path)
            artifact = self._build_stylesheet(document)
            self._publish(artifact, document.source_path, snapshot, result)
            built_keys.append(artifact.key)

        stylesheet_keys = (
            self._built_stylesheet_keys() if config.local_output else built_keys
        )

        for document in documents:
            self._check_deadline(document.source_path)
            artifact = self._build_page(document, stylesheet_keys)
            self._publish(artifact, document.source_path, snapshot, result)

        self._flush(result)

        logger.info(
            "files written to remote"
            if config.upload
            else "upload disabled, files that would be written",
            extra=fields(count=len(result.uploaded), keys=result.uploaded),
        )
        logger.info("local hashes", extra=fields(hashes=result.local_hashes))
        if result.failed_uploads:
            logger.warning(
                "some uploads failed",
                extra=fields(
                    count=len(result.failed_uploads),
                    keys=[key for key, _ in result.failed_uploads],
                ),
            )
        return result

    def _check_unique_keys(self, documents: Iterable[SourceDocument]) -> None:
        claims: dict[str, list[Path]] = defaultdict(list)
        for document in documents:
            claims[document.output_key].append(document.source_path)
        conflicts = {
            key: sorted(paths) for key, paths in claims.items() if len(paths) > 1
        }
        if conflicts:
            raise DuplicateOutputKeyError(self.config.markdown_dir, conflicts)

    def _fetch_snapshot(self, result: BuildResult) -> RemoteSnapshot:
        try:
            snapshot = fetch_remote_snapshot(self.store, self.hasher)
        except StoreError as exc:
            logger.error(
                "error fetching remote hashes, every file will be uploaded",
                extra=fields(error=exc),
            )
            result.snapshot_available = False
            return RemoteSnapshot()
        logger.info("remote hashes", extra=fields(objects=len(snapshot)))
        logger.debug("remote hash map", extra=fields(hashes=dict(snapshot)))
        return snapshot

    def _mirror(self, source_root: Path, dest_root: Path) -> None:
        try:
            created = DirectoryMirror(source_root, dest_root).mirror()
        except OSError as exc:
            logger.error(
                "error making directory for build path",
                extra=fields(path=source_root, error=exc),
            )
            raise BuildError(source_root, f"cannot create build directory: {exc}", exc) from exc
        logger.debug(
            "mirrored directories",
            extra=fields(source=source_root, dest=dest_root, created=len(created)),
        )

    def _build_stylesheet(self, document: SourceDocument) -> RenderedArtifact:
        raw = self._read(document)
        try:
            artifact = self.stylesheet_builder.build(document, raw)
        except (MinifyError, UnicodeDecodeError) as exc:
            logger.error(
                "error minifying css file",
                extra=fields(path=document.source_path, error=exc),
            )
            raise BuildError(document.source_path, f"cannot minify stylesheet: {exc}", exc) from exc
        if self.config.local_output:
            self._write(self.config.css_output_dir / document.relative_path, artifact)
        return artifact

    def _built_stylesheet_keys(self) -> list[str]:
        built = FileContentLoader(self.config.css_output_dir).stylesheet_documents()
        return [document.output_key for document in built]

    def _build_page(
        self, document: SourceDocument, stylesheet_keys: list[str]
    ) -> RenderedArtifact:
        raw = self._read(document)
        try:
            artifact, front_matter = self.page_builder.build(document, raw, stylesheet_keys)
        except MetadataParseError as exc:
            logger.error(
                "error getting created date from markdown",
                extra=fields(path=document.source_path, error=exc),
            )
            raise BuildError(document.source_path, str(exc), exc) from exc
        except NoHeadTagError as exc:
            logger.error(
                "error injecting css into html",
                extra=fields(path=document.source_path, error=exc),
            )
            raise BuildError(document.source_path, str(exc), exc) from exc
        except UnicodeDecodeError as exc:
            raise BuildError(document.source_path, f"not valid UTF-8: {exc}", exc) from exc

        if not front_matter.found:
            logger.warning(
                "no front matter found", extra=fields(path=document.relative_path)
            )
        elif not front_matter.has_created_at:
            logger.warning(
                "no created date in front matter",
                extra=fields(path=document.relative_path),
            )
        if self.config.local_output:
            self._write(self.config.output_dir / document.output_key, artifact)
        return artifact

    # Publishing

    def _publish(
        self,
        artifact: RenderedArtifact,
        source_path: Path,
        snapshot: RemoteSnapshot,
        result: BuildResult,
    ) -> None:
        digest = self.hasher.hexdigest(artifact.content)
        result.local_hashes[artifact.key] = digest
        if not should_upload(snapshot, artifact.key, digest):
            logger.debug("remote copy is current", extra=fields(key=artifact.key))
            result.skipped.append(artifact.key)
            return
        logger.info(
            "no matching hash, queueing upload",
            extra=fields(key=artifact.key, path=source_path),
        )
        self._pending.append(artifact)
        if len(self._pending) >= self.config.upload_batch_size:
            self._flush(result)

    def _flush(self, result: BuildResult) -> UploadReport:
        batch, self._pending = self._pending, []
        report = self.dispatcher.dispatch(batch)
        result.uploaded.extend(report.uploaded)
        result.failed_uploads.extend(report.failed)
        if not report.ok:
            logger.error(
                "upload batch finished with errors",
                extra=fields(failed=len(report.failed), first_error=report.first_error),
            )
        return report

    # File I/O

    def _read(self, document: SourceDocument) -> bytes:
        try:
            return document.read()
        except OSError as exc:
            logger.error(
                "error reading source file",
                extra=fields(path=document.source_path, error=exc),
            )
            raise BuildError(document.source_path, f"cannot read file: {exc}", exc) from exc

    def _write(self, target: Path, artifact: RenderedArtifact) -> None:
        try:
            with open(target, "wb") as f:
                f.write(artifact.content)
        except OSError as exc:
            logger.error(
                "error writing build output",
                extra=fields(path=target, key=artifact.key, error=exc),
            )
            raise BuildError(target, f"cannot write file: {exc}", exc) from exc

    def _check_deadline(self, path: Path) -> None:
        if self._deadline is None or time.monotonic() < self._deadline:
            return
        self._cancel.set()
        self._pending = []
        raise BuildTimeoutError(path, f"build exceeded its {self.config.timeout}s timeout")


def build_site(config: SiteConfig, store: ObjectStore | None = None) -> BuildResult:
    """Build and publish a site with the default collaborators.

    Args:
        config: Site configuration.
        store: Optional object store; built from the configuration when omitted.

    Returns:
        BuildResult for the run.
    """
    return SiteBuilder(config, store or create_store(config)).build()
