"""
Input discovery: turn command-line paths into intake sources.
"""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from config import AppConfig
from utils.errors import SourceUnavailable

from .archives import iter_archive_entries
from .sources import ArchiveEntrySource, FileSource, Source

ErrorHandler = Callable[[str, Exception], None]


class Scanner:
    """Walk input paths and yield standalone files and archive members."""

    def __init__(
        self,
        config: AppConfig,
        logger: Optional[logging.Logger] = None,
        excluded_paths: Optional[Iterable[Path]] = None,
    ) -> None:
        self.config = config
        self.logger = logger or logging.getLogger("media_intake")
        self.skip_hidden = bool(self.config.get("intake", "skip_hidden", default=True))
        self.follow_symlinks = bool(self.config.get("intake", "follow_symlinks", default=False))
        self.media_extensions = self.config.media_extensions()
        self.archive_patterns = [pattern.lower() for pattern in self.config.archive_patterns()]
        self.excluded_paths = [Path(path).resolve() for path in (excluded_paths or [])]

    def iter_sources(self, paths: Iterable[Path], on_error: Optional[ErrorHandler] = None) -> Iterator[Source]:
        """Yield sources for every input path, one at a time.

        Unreadable inputs are reported through ``on_error`` and skipped;
        without a handler they raise SourceUnavailable.
        """
        for path in paths:
            path = Path(path).expanduser().resolve()
            if not path.exists():
                self._report(on_error, str(path), SourceUnavailable(str(path), "path does not exist"))
                continue
            if path.is_dir():
                for file_path in self._iter_files(path, on_error):
                    yield from self._sources_for_file(file_path, on_error)
            else:
                yield from self._sources_for_file(path, on_error)

    def is_media_name(self, name: str) -> bool:
        """Return True if a file or member name has a media extension."""
        return os.path.splitext(name)[1].lower() in self.media_extensions

    def is_archive_name(self, name: str) -> bool:
        """Return True if a file name matches an archive pattern."""
        lowered = name.lower()
        return any(fnmatch.fnmatch(lowered, pattern) for pattern in self.archive_patterns)

    def _sources_for_file(self, path: Path, on_error: Optional[ErrorHandler]) -> Iterator[Source]:
        if self.is_archive_name(path.name):
            yield from self._sources_for_archive(path, on_error)
        elif self.is_media_name(path.name):
            yield FileSource(path=path)
        else:
            self.logger.debug("Skipping non-media file: %s", path)

    def _sources_for_archive(self, archive_path: Path, on_error: Optional[ErrorHandler]) -> Iterator[Source]:
        self.logger.info("Reading archive: %s", archive_path)

        def entry_failed(name: str, exc: Exception) -> None:
            label = f"{archive_path}!{name}"
            self._report(on_error, label, SourceUnavailable(label, str(exc)))

        try:
            for entry in iter_archive_entries(
                archive_path,
                name_filter=lambda name: self.is_media_name(name) and not self._is_hidden_member(name),
                on_entry_error=entry_failed,
            ):
                yield ArchiveEntrySource(
                    archive_path=archive_path,
                    entry_name=entry.name,
                    content=entry.content,
                    declared_size=entry.declared_size,
                )
        except SourceUnavailable as exc:
            self._report(on_error, str(archive_path), exc)

    def _iter_files(self, root: Path, on_error: Optional[ErrorHandler]) -> Iterator[Path]:
        """Yield file paths under a root, handling permission errors."""
        def walk_error(error: OSError) -> None:
            label = str(error.filename or root)
            self._report(on_error, label, SourceUnavailable(label, str(error)))

        for dirpath, dirnames, filenames in os.walk(
            root, topdown=True, onerror=walk_error, followlinks=self.follow_symlinks
        ):
            current = Path(dirpath)
            if self._matches_excluded_paths(current):
                dirnames[:] = []
                continue
            dirnames[:] = sorted(
                name
                for name in dirnames
                if not self._is_hidden_name(name) and not self._matches_excluded_paths(current / name)
            )
            for filename in sorted(filenames):
                file_path = current / filename
                if not self.follow_symlinks and file_path.is_symlink():
                    continue
                if self._is_hidden_name(filename):
                    continue
                yield file_path

    def _is_hidden_name(self, name: str) -> bool:
        return self.skip_hidden and name.startswith(".")

    def _is_hidden_member(self, name: str) -> bool:
        if not self.skip_hidden:
            return False
        parts = name.replace("\\", "/").split("/")
        return any(part.startswith(".") or part == "__MACOSX" for part in parts if part)

    def _matches_excluded_paths(self, path: Path) -> bool:
        """Check whether the path sits under an excluded path prefix."""
        path_value = os.path.normcase(os.path.normpath(str(path)))
        for excluded in self.excluded_paths:
            excluded_value = os.path.normcase(os.path.normpath(str(excluded)))
            if path_value == excluded_value:
                return True
            if path_value.startswith(excluded_value.rstrip(os.sep) + os.sep):
                return True
        return False

    def _report(self, on_error: Optional[ErrorHandler], label: str, exc: SourceUnavailable) -> None:
        if on_error is None:
            raise exc
        on_error(label, exc)
