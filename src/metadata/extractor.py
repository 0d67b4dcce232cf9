"""
Tag extraction backed by mutagen.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Mapping, Optional, Union

from mutagen import File as MutagenFile
from mutagen import MutagenError

logger = logging.getLogger("media_intake")

TAG_FIELDS = ("title", "artist", "album", "track", "disk")

# easy-tag keys checked in order for each field
_FIELD_KEYS = {
    "title": ("title",),
    "artist": ("artist", "albumartist", "album artist"),
    "album": ("album",),
    "track": ("tracknumber", "track"),
    "disk": ("discnumber", "disc", "disknumber"),
}


def _first_value(value: object) -> object:
    if isinstance(value, (list, tuple)):
        return _first_value(value[0]) if value else None
    if hasattr(value, "text"):
        return _first_value(value.text)
    return value


def tags_from_mapping(tags: Mapping) -> dict[str, object]:
    """Pick the raw title/artist/album/track/disk values out of an easy-tag mapping."""
    values: dict[str, object] = {field: None for field in TAG_FIELDS}
    for field, keys in _FIELD_KEYS.items():
        for key in keys:
            value = _first_value(tags.get(key))
            if value not in (None, ""):
                values[field] = value
                break
    return values


def extract_tags(target: Union[Path, bytes]) -> dict[str, object]:
    """Read tags from a file path or in-memory bytes.

    Unrecognised or unreadable content yields all-empty values rather than
    an error.
    """
    filething: Union[str, io.BytesIO]
    filething = io.BytesIO(target) if isinstance(target, (bytes, bytearray)) else str(target)
    try:
        audio = MutagenFile(filething, easy=True)
    except (MutagenError, OSError) as exc:
        logger.warning("Tag extraction failed for %s: %s", _describe(target), exc)
        return {field: None for field in TAG_FIELDS}
    tags: Optional[Mapping] = getattr(audio, "tags", None) if audio is not None else None
    if not tags:
        return {field: None for field in TAG_FIELDS}
    return tags_from_mapping(tags)


def _describe(target: Union[Path, bytes]) -> str:
    if isinstance(target, (bytes, bytearray)):
        return f"<{len(target)} bytes>"
    return str(target)
