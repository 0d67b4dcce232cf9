"""
Canonical library paths derived from a record's tags.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from catalog import FileRecord, TagSet

UNKNOWN = "unknown"

_WHITESPACE = re.compile(r"\s+")
_SEPARATORS = re.compile(r"[/\\]+")


def _segment(value: Optional[str]) -> str:
    """Render one path component: whitespace runs and separators become '-'."""
    if value is None:
        return UNKNOWN
    text = _SEPARATORS.sub("-", _WHITESPACE.sub("-", value))
    if text in ("", ".", ".."):
        return UNKNOWN
    return text


def source_extension(file_name: str) -> Optional[str]:
    """Return the text after the final '.' of a file name, unmodified."""
    if "." not in file_name:
        return None
    return file_name.rsplit(".", 1)[1]


class PlacementPlanner:
    """Compute library destinations.

    Layout: ``<root>/<artist>/<album[-disk-N]>/[NN-]<title>[-i].<ext>``.
    ``plan_path`` does no I/O, so the materializer can probe successive
    collision indices deterministically.
    """

    def __init__(self, library_root: Path) -> None:
        self.library_root = library_root

    def plan_path(self, record: FileRecord, collision_index: Optional[int] = None) -> Path:
        tags = record.tags or TagSet()
        artist_dir = _segment(tags.artist)
        album_dir = _segment(tags.album)
        if tags.disk is not None:
            album_dir = f"{album_dir}-disk-{tags.disk}"

        stem = _segment(tags.title)
        if tags.track is not None:
            stem = f"{tags.track:02d}-{stem}"
        if collision_index is not None:
            stem = f"{stem}-{collision_index}"
        extension = source_extension(record.origin.file_name)
        file_name = f"{stem}.{extension}" if extension is not None else stem
        return self.library_root / artist_dir / album_dir / file_name
