"""
Materialization: duplicate short-circuit, collision resolution, write, verify, commit.
"""

from __future__ import annotations

import errno
import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from catalog import CatalogStore, FileRecord
from config import DEFAULT_MAX_COLLISION_ATTEMPTS
from discovery.sources import Source
from hashing import Hasher
from placement import PlacementPlanner
from utils.errors import CollisionStormExceeded, WriteVerificationFailed


class MaterializeState(str, Enum):
    """Where a record ended up after a materialization attempt."""

    PLANNED = "planned"
    DUPLICATE_SKIPPED = "duplicate_skipped"
    WRITE_FAILED = "write_failed"
    VERIFIED = "verified"
    ALREADY_PLACED = "already_placed"


@dataclass(frozen=True)
class MaterializeOutcome:
    """Result of materializing one record."""

    state: MaterializeState
    record: FileRecord
    destination: Optional[Path] = None
    duplicate_of: Optional[FileRecord] = None
    collision_index: Optional[int] = None


class Materializer:
    """Write a record's content into the library and commit its path."""

    def __init__(
        self,
        catalog: CatalogStore,
        planner: PlacementPlanner,
        hasher: Optional[Hasher] = None,
        max_collision_attempts: int = DEFAULT_MAX_COLLISION_ATTEMPTS,
        logger: Optional[logging.Logger] = None,
        movement_logger: Optional[logging.Logger] = None,
    ) -> None:
        if max_collision_attempts < 1:
            raise ValueError("max_collision_attempts must be at least 1")
        self.catalog = catalog
        self.planner = planner
        self.hasher = hasher or Hasher()
        self.max_collision_attempts = max_collision_attempts
        self.logger = logger or logging.getLogger("media_intake")
        self.movement_logger = movement_logger or logging.getLogger("media_intake.movement")

    def materialize(self, record: FileRecord, source: Source) -> MaterializeOutcome:
        """Place a record's content in the library.

        Raises CollisionStormExceeded or WriteVerificationFailed; in both
        cases the record's destination stays unset.
        """
        current = self.catalog.require(record.id)
        if current.is_placed:
            return MaterializeOutcome(
                state=MaterializeState.ALREADY_PLACED,
                record=current,
                destination=Path(current.destination_path),
            )

        original = self.catalog.find_placed_by_content(current.fingerprint, current.size, exclude_id=current.id)
        if original is not None:
            self.logger.info(
                "Duplicate content: %s matches %s (already at %s); not copied",
                current.origin,
                original.origin,
                original.destination_path,
            )
            self.movement_logger.info("DUPLICATE %s == %s", current.origin, original.destination_path)
            return MaterializeOutcome(
                state=MaterializeState.DUPLICATE_SKIPPED,
                record=current,
                destination=Path(original.destination_path),
                duplicate_of=original,
            )

        destination, collision_index = self.resolve_destination(current)
        self._write(source, destination)
        self._verify(destination, current.fingerprint)
        placed = self.catalog.set_destination(current.id, str(destination))
        self.movement_logger.info("WRITE %s -> %s", current.origin, destination)
        return MaterializeOutcome(
            state=MaterializeState.VERIFIED,
            record=placed,
            destination=destination,
            collision_index=collision_index,
        )

    def resolve_destination(self, record: FileRecord) -> tuple[Path, Optional[int]]:
        """Return the first planned path that is neither catalogued nor on disk.

        Checking the filesystem also catches untracked files and, on
        case-insensitive volumes, paths differing from a catalogued one only
        by case.
        """
        collision_index: Optional[int] = None
        for attempt in range(self.max_collision_attempts):
            collision_index = None if attempt == 0 else attempt
            candidate = self.planner.plan_path(record, collision_index)
            if not self.catalog.destination_taken(str(candidate)) and not candidate.exists():
                if collision_index is not None:
                    self.logger.debug("Resolved collision for %s with index %s", record.origin, collision_index)
                return candidate, collision_index
        base_path = self.planner.plan_path(record)
        raise CollisionStormExceeded(str(base_path), self.max_collision_attempts)

    def _write(self, source: Source, destination: Path) -> None:
        partial = destination.with_name(f".{destination.name}.partial")
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            source.write_to(partial)
            # existing library files are never replaced
            if destination.exists():
                raise FileExistsError(errno.EEXIST, "destination already exists", str(destination))
            os.replace(partial, destination)
        except OSError as exc:
            self._discard(partial)
            raise WriteVerificationFailed(str(destination), f"write failed: {exc}") from exc

    def _verify(self, destination: Path, fingerprint: str) -> None:
        if not destination.is_file():
            raise WriteVerificationFailed(str(destination), "file was not created")
        try:
            actual = self.hasher.hash_file(destination)
        except OSError as exc:
            self._discard(destination)
            raise WriteVerificationFailed(str(destination), f"not readable: {exc}") from exc
        if actual != fingerprint:
            self._discard(destination)
            raise WriteVerificationFailed(
                str(destination),
                f"hash mismatch (expected {fingerprint}, got {actual})",
                actual=actual,
            )

    def _discard(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            self.logger.warning("Could not remove rejected file %s: %s", path, exc)
