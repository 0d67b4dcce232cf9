"""
Source descriptors flowing through the intake pipeline.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from catalog import Origin

ExtractTarget = Union[Path, bytes]


@dataclass(frozen=True)
class FileSource:
    """A standalone media file on disk."""

    path: Path

    @property
    def origin(self) -> Origin:
        return Origin.standalone(self.path)

    @property
    def extract_target(self) -> ExtractTarget:
        return self.path

    def write_to(self, destination: Path) -> None:
        """Copy the file's bytes to destination."""
        shutil.copyfile(self.path, destination)

    def __str__(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class ArchiveEntrySource:
    """A media member of an archive, already read into memory.

    ``declared_size`` is the size recorded by the container and is what the
    catalog stores; the actual byte length is only checked indirectly when
    the written file is verified against the fingerprint.
    """

    archive_path: Path
    entry_name: str
    content: bytes = field(repr=False)
    declared_size: int

    @property
    def origin(self) -> Origin:
        return Origin.archive_entry(self.archive_path, self.entry_name)

    @property
    def extract_target(self) -> ExtractTarget:
        return self.content

    def write_to(self, destination: Path) -> None:
        """Write the in-memory bytes to destination."""
        with destination.open("wb") as handle:
            handle.write(self.content)

    def __str__(self) -> str:
        return str(self.origin)


Source = Union[FileSource, ArchiveEntrySource]
