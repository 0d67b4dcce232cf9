"""
Metadata attachment: extract tags once per record and persist them.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Mapping, Optional, Union

from catalog import CatalogStore, FileRecord, TagSet
from discovery.sources import Source

from .extractor import extract_tags

TagExtractor = Callable[[Union[Path, bytes]], Mapping[str, object]]

_LEADING_INT = re.compile(r"^\s*(\d+)")


def _normalize_text(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _normalize_number(value: object) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def normalize_tags(raw: Mapping[str, object]) -> TagSet:
    """Convert extractor output into a TagSet; empty values become None."""
    return TagSet(
        title=_normalize_text(raw.get("title")),
        artist=_normalize_text(raw.get("artist")),
        album=_normalize_text(raw.get("album")),
        track=_normalize_number(raw.get("track")),
        disk=_normalize_number(raw.get("disk")),
    )


class MetadataAttacher:
    """Run the tag extractor at most once per catalog record."""

    def __init__(
        self,
        catalog: CatalogStore,
        extractor: Optional[TagExtractor] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.catalog = catalog
        self.extractor = extractor or extract_tags
        self.logger = logger or logging.getLogger("media_intake")

    def attach_metadata(self, record: FileRecord, source: Source) -> FileRecord:
        """Extract, normalize and persist tags unless already done."""
        if record.has_metadata:
            return record
        try:
            raw = self.extractor(source.extract_target) or {}
        except Exception as exc:
            # a broken extractor must not abort the run; the file is placed untagged
            self.logger.warning("Tag extraction failed for %s: %s", record.origin, exc)
            raw = {}
        tags = normalize_tags(raw)
        if tags.is_empty:
            self.logger.info("No tags found for %s; placing under 'unknown'", record.origin)
        return self.catalog.update_tags(record.id, tags)
