"""
Per-source intake pipeline: register, attach metadata, materialize.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from catalog import CatalogStore
from config import DEFAULT_MAX_COLLISION_ATTEMPTS
from discovery import Scanner, Source
from hashing import Hasher, IdentityResolver
from intake import IntakeRegistrar
from materialize import MaterializeState, Materializer
from metadata import MetadataAttacher, TagExtractor
from placement import PlacementPlanner
from utils import IntakeError, ResourceMonitor, WriteVerificationFailed


@dataclass
class SourceResult:
    """What happened to one source."""

    origin: str
    state: str
    record_id: Optional[int] = None
    destination: Optional[str] = None
    duplicate_of: Optional[str] = None
    error: Optional[str] = None
    created: bool = False


@dataclass
class IngestStats:
    """Summary statistics for an ingest run."""

    processed: int = 0
    registered: int = 0
    placed: int = 0
    duplicates: int = 0
    already_placed: int = 0
    failed: int = 0
    elapsed_seconds: float = 0.0
    results: list[SourceResult] = field(default_factory=list)

    def totals(self) -> dict:
        return {
            "processed": self.processed,
            "registered": self.registered,
            "placed": self.placed,
            "duplicates": self.duplicates,
            "already_placed": self.already_placed,
            "failed": self.failed,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }

    def as_dict(self) -> dict:
        payload = self.totals()
        payload["results"] = [asdict(result) for result in self.results]
        return payload


class IngestPipeline:
    """Drive sources one at a time through the intake stages."""

    def __init__(
        self,
        catalog: CatalogStore,
        registrar: IntakeRegistrar,
        attacher: MetadataAttacher,
        materializer: Materializer,
        logger: Optional[logging.Logger] = None,
        monitor: Optional[ResourceMonitor] = None,
        progress_log_interval: int = 500,
    ) -> None:
        self.catalog = catalog
        self.registrar = registrar
        self.attacher = attacher
        self.materializer = materializer
        self.logger = logger or logging.getLogger("media_intake")
        self.monitor = monitor
        self.progress_log_interval = progress_log_interval

    @classmethod
    def create(
        cls,
        catalog: CatalogStore,
        library_root: Path,
        extractor: Optional[TagExtractor] = None,
        hasher: Optional[Hasher] = None,
        max_collision_attempts: int = DEFAULT_MAX_COLLISION_ATTEMPTS,
        logger: Optional[logging.Logger] = None,
        movement_logger: Optional[logging.Logger] = None,
        monitor: Optional[ResourceMonitor] = None,
    ) -> "IngestPipeline":
        """Wire the standard components around one catalog."""
        hasher = hasher or Hasher()
        return cls(
            catalog,
            registrar=IntakeRegistrar(catalog, IdentityResolver(hasher), logger=logger),
            attacher=MetadataAttacher(catalog, extractor=extractor, logger=logger),
            materializer=Materializer(
                catalog,
                PlacementPlanner(library_root),
                hasher=hasher,
                max_collision_attempts=max_collision_attempts,
                logger=logger,
                movement_logger=movement_logger,
            ),
            logger=logger,
            monitor=monitor,
        )

    def process(self, source: Source) -> SourceResult:
        """Run one source through every stage; IntakeError aborts only this source."""
        registration = self.registrar.register_source(source)
        record = self.attacher.attach_metadata(registration.record, source)
        outcome = self.materializer.materialize(record, source)
        return SourceResult(
            origin=str(source.origin),
            state=outcome.state.value,
            record_id=outcome.record.id,
            destination=str(outcome.destination) if outcome.destination is not None else None,
            duplicate_of=str(outcome.duplicate_of.origin) if outcome.duplicate_of is not None else None,
            created=registration.created,
        )

    def ingest(self, sources: Iterable[Source], stats: Optional[IngestStats] = None) -> IngestStats:
        """Process every source, continuing past per-source failures."""
        stats = stats or IngestStats()
        started = time.monotonic()
        for source in sources:
            if self.monitor is not None:
                self.monitor.throttle()
            self.ingest_source(source, stats)
            if self.progress_log_interval > 0 and stats.processed % self.progress_log_interval == 0:
                self.logger.info(
                    "Ingest progress: processed=%s placed=%s duplicates=%s failed=%s",
                    stats.processed,
                    stats.placed,
                    stats.duplicates,
                    stats.failed,
                )
        stats.elapsed_seconds += time.monotonic() - started
        return stats

    def ingest_paths(self, scanner: Scanner, paths: Iterable[Path]) -> IngestStats:
        """Discover sources under paths and ingest them."""
        stats = IngestStats()

        def discovery_failed(label: str, exc: Exception) -> None:
            self.record_failure(stats, label, exc)

        return self.ingest(scanner.iter_sources(paths, on_error=discovery_failed), stats)

    def ingest_source(self, source: Source, stats: IngestStats) -> SourceResult:
        """Process one source and fold its result into stats."""
        try:
            result = self.process(source)
        except IntakeError as exc:
            return self.record_failure(stats, str(source.origin), exc)
        except Exception:
            self.logger.exception("Unexpected failure while ingesting %s", source.origin)
            raise
        stats.processed += 1
        if result.created:
            stats.registered += 1
        if result.state == MaterializeState.VERIFIED.value:
            stats.placed += 1
            self.logger.info("Placed %s at %s", result.origin, result.destination)
        elif result.state == MaterializeState.DUPLICATE_SKIPPED.value:
            stats.duplicates += 1
        elif result.state == MaterializeState.ALREADY_PLACED.value:
            stats.already_placed += 1
        stats.results.append(result)
        return result

    def record_failure(self, stats: IngestStats, label: str, exc: Exception) -> SourceResult:
        """Log and count a per-source failure."""
        stats.processed += 1
        stats.failed += 1
        self.logger.error("Skipping %s: %s", label, exc)
        state = MaterializeState.WRITE_FAILED.value if isinstance(exc, WriteVerificationFailed) else "failed"
        result = SourceResult(origin=label, state=state, error=str(exc))
        stats.results.append(result)
        return result

