"""
Read-only audit of placed library files against their catalog fingerprints.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from catalog import CatalogStore
from hashing import Hasher


@dataclass
class VerificationStats:
    """Summary of a library verification pass."""

    checked: int = 0
    ok: int = 0
    missing: list[str] = field(default_factory=list)
    mismatched: list[str] = field(default_factory=list)
    unreadable: list[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not (self.missing or self.mismatched or self.unreadable)


class LibraryVerifier:
    """Re-hash every placed file and report drift; the catalog is never modified."""

    def __init__(
        self,
        catalog: CatalogStore,
        hasher: Optional[Hasher] = None,
        logger: Optional[logging.Logger] = None,
        progress_log_interval: int = 1000,
    ) -> None:
        self.catalog = catalog
        self.hasher = hasher or Hasher()
        self.logger = logger or logging.getLogger("media_intake")
        self.progress_log_interval = progress_log_interval

    def run(self) -> VerificationStats:
        stats = VerificationStats()
        for record in self.catalog.iter_placed():
            stats.checked += 1
            path = Path(record.destination_path)
            if not path.is_file():
                stats.missing.append(str(path))
                self.logger.warning("Library file missing: %s (record %s)", path, record.id)
                continue
            try:
                actual = self.hasher.hash_file(path)
            except OSError as exc:
                stats.unreadable.append(str(path))
                self.logger.warning("Library file unreadable: %s (%s)", path, exc)
                continue
            if actual != record.fingerprint:
                stats.mismatched.append(str(path))
                self.logger.error("Library file altered: %s (record %s)", path, record.id)
                continue
            stats.ok += 1
            if self.progress_log_interval > 0 and stats.checked % self.progress_log_interval == 0:
                self.logger.info("Verification progress: %s checked, %s ok", stats.checked, stats.ok)
        return stats
