"""Content-addressed change detection and upload dispatch.

Key functions and classes:
- RemoteSnapshot: Read-only mapping of remote key to content digest.
- fetch_remote_snapshot: Download and hash every remote object.
- should_upload: Decide whether a local artifact differs from the remote copy.
- UploadDispatcher: Send a batch of artifacts through a bounded thread pool.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from .content import RenderedArtifact
from .hashing import Hasher
from .log import fields
from .protocols import ObjectStore

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_CONCURRENCY = 8


class RemoteSnapshot(Mapping[str, str]):
    """Immutable mapping of remote object key to content digest."""

    def __init__(self, hashes: Mapping[str, str] | None = None):
        self._hashes = dict(hashes or {})

    def __getitem__(self, key: str) -> str:
        return self._hashes[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._hashes)

    def __len__(self) -> int:
        return len(self._hashes)

    def __repr__(self) -> str:
        return f"RemoteSnapshot({self._hashes!r})"


def fetch_remote_snapshot(store: ObjectStore, hasher: Hasher) -> RemoteSnapshot:
    """Build the authoritative remote state for a run.

    Lists every object, skips directory markers, and hashes each object's full
    body with the same hasher used for local artifacts.

    Raises:
        StoreError: If listing or downloading any object fails.
    """
    hashes: dict[str, str] = {}
    for stored in store.list_objects():
        if stored.is_directory_marker or stored.key.endswith("/"):
            continue
        hashes[stored.key] = hasher.hexdigest(store.get_object(stored.key))
    logger.debug("fetched remote snapshot", extra=fields(objects=len(hashes)))
    return RemoteSnapshot(hashes)


def should_upload(remote: Mapping[str, str], key: str, local_hash: str) -> bool:
    """Return True when ``key`` is missing remotely or its content differs."""
    remote_hash = remote.get(key)
    return remote_hash is None or remote_hash != local_hash


class UploadCancelledError(Exception):
    """Raised for uploads skipped because their batch was cancelled."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"upload of {key} cancelled")


@dataclass
class UploadReport:
    """Outcome of one upload batch.

    Attributes:
        uploaded: Keys written successfully, in submission order.
        failed: (key, error) pairs in completion order.
    """

    uploaded: list[str] = field(default_factory=list)
    failed: list[tuple[str, Exception]] = field(default_factory=list)

    @property
    def first_error(self) -> Exception | None:
        return self.failed[0][1] if self.failed else None

    @property
    def ok(self) -> bool:
        return not self.failed


class UploadDispatcher:
    """Uploads artifacts concurrently with a bounded worker pool.

    Upload tasks only read their artifact and call the store; results are
    collected on the calling thread.

    Attributes:
        store: Destination object store.
        max_workers: Upper bound on concurrent uploads.
        cancel_event: Shared cancellation scope; once set, tasks that have not
            started yet are skipped.
    """

    def __init__(
        self,
        store: ObjectStore,
        max_workers: int = DEFAULT_UPLOAD_CONCURRENCY,
        cancel_event: threading.Event | None = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.store = store
        self.max_workers = max_workers
        self.cancel_event = cancel_event or threading.Event()

    def _upload(self, artifact: RenderedArtifact) -> str:
        if self.cancel_event.is_set():
            raise UploadCancelledError(artifact.key)
        self.store.put_object(artifact.key, artifact.content_type, artifact.content)
        return artifact.key

    def dispatch(self, artifacts: Sequence[RenderedArtifact]) -> UploadReport:
        """Upload a batch and wait for every task to finish.

        Args:
            artifacts: Artifacts to upload.

        Returns:
            UploadReport; ``first_error`` is the first failure to complete.
        """
        report = UploadReport()
        if not artifacts:
            return report
        succeeded: set[str] = set()
        workers = min(self.max_workers, len(artifacts))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="upload") as pool:
            futures = {pool.submit(self._upload, artifact): artifact for artifact in artifacts}
            for future in as_completed(futures):
                artifact = futures[future]
                try:
                    succeeded.add(future.result())
                except Exception as exc:
                    logger.error(
                        "error uploading file",
                        extra=fields(key=artifact.key, error=exc),
                    )
                    report.failed.append((artifact.key, exc))
                else:
                    logger.info(
                        "uploaded file",
                        extra=fields(key=artifact.key, content_type=artifact.content_type),
                    )
        report.uploaded = [a.key for a in artifacts if a.key in succeeded]
        return report
