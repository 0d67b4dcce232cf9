"""
Identity resolution: fingerprint and size for a source.
"""

from __future__ import annotations

from typing import Optional

from discovery.sources import ArchiveEntrySource, FileSource, Source
from utils.errors import SourceUnavailable

from .hasher import Hasher


class IdentityResolver:
    """Derive the (fingerprint, size) pair used as a content identity."""

    def __init__(self, hasher: Optional[Hasher] = None) -> None:
        self.hasher = hasher or Hasher()

    def fingerprint_and_size(self, source: Source) -> tuple[str, int]:
        """Return the SHA-256 hex digest and catalog size for a source.

        Standalone files are measured on disk. Archive members report the
        size declared by their container, not the length of the bytes read.
        """
        if isinstance(source, ArchiveEntrySource):
            return self.hasher.hash_bytes(source.content), int(source.declared_size)
        if isinstance(source, FileSource):
            try:
                size = source.path.stat().st_size
                fingerprint = self.hasher.hash_file(source.path)
            except OSError as exc:
                raise SourceUnavailable(str(source.path), str(exc)) from exc
            return fingerprint, int(size)
        raise TypeError(f"Unsupported source type: {type(source).__name__}")
