"""
Content hashing for intake sources and written library files.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

from config import DEFAULT_HASH_CHUNK_BYTES


class Hasher:
    """Compute SHA-256 fingerprints over files and in-memory bytes."""

    algorithm = "sha256"

    def __init__(self, chunk_bytes: int = DEFAULT_HASH_CHUNK_BYTES) -> None:
        self.chunk_bytes = max(int(chunk_bytes), 1)

    def hash_file(self, path: Path) -> str:
        """Compute a full SHA-256 hash in streaming mode."""
        hasher = hashlib.sha256()
        with path.open("rb") as handle:
            while True:
                data = handle.read(self.chunk_bytes)
                if not data:
                    break
                hasher.update(data)
        return hasher.hexdigest()

    def hash_bytes(self, data: bytes) -> str:
        """Compute a SHA-256 hash over bytes already in memory."""
        return hashlib.sha256(data).hexdigest()
