"""
Record types persisted in the catalog.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional

METADATA_VERSION = 1


@dataclass(frozen=True)
class Origin:
    """Where a source was first seen: a standalone path or an archive member.

    Filesystem paths are stored resolved so that one file reached through
    different spellings keeps a single origin.
    """

    path: str
    archive_path: Optional[str] = None

    @classmethod
    def standalone(cls, path: Path) -> "Origin":
        return cls(path=str(Path(path).resolve()))

    @classmethod
    def archive_entry(cls, archive_path: Path, entry_name: str) -> "Origin":
        return cls(path=entry_name, archive_path=str(Path(archive_path).resolve()))

    @property
    def in_archive(self) -> bool:
        return self.archive_path is not None

    @property
    def file_name(self) -> str:
        """Final name component of the source file or archive member."""
        if self.in_archive:
            return PurePosixPath(self.path.replace("\\", "/")).name
        return Path(self.path).name

    def __str__(self) -> str:
        if self.in_archive:
            return f"{self.archive_path}!{self.path}"
        return self.path


@dataclass(frozen=True)
class TagSet:
    """Descriptive tags used to place a file in the library."""

    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    track: Optional[int] = None
    disk: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return all(
            value is None for value in (self.title, self.artist, self.album, self.track, self.disk)
        )

    def as_dict(self) -> dict:
        return {
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "track": self.track,
            "disk": self.disk,
        }


@dataclass(frozen=True)
class FileRecord:
    """One catalog row: a distinct source and, once placed, its library path."""

    id: int
    fingerprint: str
    size: int
    origin: Origin
    destination_path: Optional[str] = None
    tags: Optional[TagSet] = None
    metadata_version: Optional[int] = None

    @property
    def has_metadata(self) -> bool:
        return self.metadata_version == METADATA_VERSION

    @property
    def is_placed(self) -> bool:
        return self.destination_path is not None


@dataclass(frozen=True)
class CatalogSummary:
    """Aggregate counts for reporting."""

    records: int
    placed: int
    with_metadata: int
    archive_members: int
    duplicates_unplaced: int
