"""
Find-or-create registration of sources in the catalog.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from catalog import CatalogStore, FileRecord, Origin
from discovery.sources import Source
from hashing import IdentityResolver
from utils.errors import DuplicateOriginError


@dataclass(frozen=True)
class Registration:
    """Outcome of registering a source."""

    record: FileRecord
    created: bool


class IntakeRegistrar:
    """Guarantee exactly one catalog record per origin."""

    def __init__(
        self,
        catalog: CatalogStore,
        resolver: Optional[IdentityResolver] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.catalog = catalog
        self.resolver = resolver or IdentityResolver()
        self.logger = logger or logging.getLogger("media_intake")

    def register(self, origin: Origin, size: int, fingerprint: str) -> FileRecord:
        """Return the record for an origin, inserting it on first encounter."""
        return self._find_or_create(origin, size, fingerprint).record

    def register_source(self, source: Source) -> Registration:
        """Register a source, hashing it only when its origin is new."""
        origin = source.origin
        existing = self.catalog.find_by_origin(origin)
        if existing is not None:
            self.logger.debug("Origin already registered as record %s: %s", existing.id, origin)
            return Registration(record=existing, created=False)
        fingerprint, size = self.resolver.fingerprint_and_size(source)
        return self._find_or_create(origin, size, fingerprint)

    def _find_or_create(self, origin: Origin, size: int, fingerprint: str) -> Registration:
        existing = self.catalog.find_by_origin(origin)
        if existing is not None:
            return Registration(record=existing, created=False)
        try:
            record = self.catalog.insert(origin, fingerprint, size)
        except DuplicateOriginError:
            record = self.catalog.find_by_origin(origin)
            if record is None:
                raise
            return Registration(record=record, created=False)
        self.logger.debug("Registered record %s for %s", record.id, origin)
        return Registration(record=record, created=True)
