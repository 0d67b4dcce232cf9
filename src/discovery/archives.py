"""
Archive traversal: stream members of zip and tar containers one at a time.
"""

from __future__ import annotations

import tarfile
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, Optional

from utils.errors import SourceUnavailable

NameFilter = Callable[[str], bool]
EntryErrorHandler = Callable[[str, Exception], None]


@dataclass(frozen=True)
class ArchiveEntry:
    """A regular-file member of an archive."""

    name: str
    content: bytes = field(repr=False)
    declared_size: int


def iter_archive_entries(
    archive_path: Path,
    name_filter: Optional[NameFilter] = None,
    on_entry_error: Optional[EntryErrorHandler] = None,
) -> Iterator[ArchiveEntry]:
    """Yield regular-file members of a zip or tar archive.

    ``name_filter`` decides from the member name whether its bytes are read.
    A member that cannot be read is passed to ``on_entry_error`` and skipped;
    without a handler it aborts traversal with SourceUnavailable.
    """
    try:
        if zipfile.is_zipfile(archive_path):
            yield from _iter_zip(archive_path, name_filter, on_entry_error)
            return
        if tarfile.is_tarfile(archive_path):
            yield from _iter_tar(archive_path, name_filter, on_entry_error)
            return
    except (OSError, zipfile.BadZipFile, tarfile.TarError) as exc:
        raise SourceUnavailable(str(archive_path), str(exc)) from exc
    raise SourceUnavailable(str(archive_path), "unsupported archive format")


def _iter_zip(
    archive_path: Path, name_filter: Optional[NameFilter], on_entry_error: Optional[EntryErrorHandler]
) -> Iterator[ArchiveEntry]:
    with zipfile.ZipFile(archive_path, "r") as archive:
        for info in archive.infolist():
            if info.is_dir():
                continue
            if name_filter is not None and not name_filter(info.filename):
                continue
            try:
                with archive.open(info, "r") as handle:
                    content = handle.read()
            except (OSError, zipfile.BadZipFile, RuntimeError) as exc:
                _entry_failed(archive_path, info.filename, exc, on_entry_error)
                continue
            yield ArchiveEntry(name=info.filename, content=content, declared_size=int(info.file_size))


def _iter_tar(
    archive_path: Path, name_filter: Optional[NameFilter], on_entry_error: Optional[EntryErrorHandler]
) -> Iterator[ArchiveEntry]:
    with tarfile.open(archive_path, "r:*") as archive:
        for member in archive:
            if not member.isfile():
                continue
            if name_filter is not None and not name_filter(member.name):
                continue
            try:
                handle = archive.extractfile(member)
                if handle is None:
                    continue
                with handle:
                    content = handle.read()
            except (OSError, tarfile.TarError) as exc:
                _entry_failed(archive_path, member.name, exc, on_entry_error)
                continue
            yield ArchiveEntry(name=member.name, content=content, declared_size=int(member.size))


def _entry_failed(
    archive_path: Path, name: str, exc: Exception, on_entry_error: Optional[EntryErrorHandler]
) -> None:
    if on_entry_error is None:
        raise SourceUnavailable(f"{archive_path}!{name}", str(exc)) from exc
    on_entry_error(name, exc)
