"""Content hashing for change detection.

The same Hasher is used for local artifacts and for remote object bodies, so two
digests are comparable whenever they come from one run.

Key class:
- Hasher: Computes hex digests of byte strings and buffered streams.
"""

from __future__ import annotations

import hashlib
from typing import BinaryIO

DEFAULT_ALGORITHM = "sha256"


class Hasher:
    """Computes content digests with a hashlib algorithm.

    Attributes:
        algorithm: Name of the hashlib algorithm in use.
    """

    def __init__(self, algorithm: str = DEFAULT_ALGORITHM):
        """Initialize the hasher.

        Args:
            algorithm: Any name accepted by ``hashlib.new``.

        Raises:
            ValueError: If the algorithm is not available or has no fixed digest
                size (the shake family).
        """
        if algorithm not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported hash algorithm: {algorithm}")
        if hashlib.new(algorithm).digest_size == 0:
            raise ValueError(f"Variable-length hash algorithm not supported: {algorithm}")
        self.algorithm = algorithm

    def hexdigest(self, data: bytes) -> str:
        """Return the hex digest of ``data``.

        Examples:
            >>> Hasher("md5").hexdigest(b"")
            'd41d8cd98f00b204e9800998ecf8427e'
        """
        return hashlib.new(self.algorithm, data).hexdigest()

    def digest_stream(self, stream: BinaryIO) -> tuple[str, bytes]:
        """Buffer a one-shot stream and hash it.

        The stream is read to the end exactly once. The buffered bytes are returned
        alongside the digest so the caller can still write or upload them.

        Args:
            stream: Binary file-like object.

        Returns:
            Tuple of (hex digest, buffered bytes).
        """
        data = stream.read()
        return self.hexdigest(data), data
