"""
Primary orchestration entry point for the media intake pipeline.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from catalog import CatalogStore
from config import DEFAULT_HASH_CHUNK_BYTES, DEFAULT_MAX_COLLISION_ATTEMPTS, AppConfig, ensure_directories
from discovery import Scanner
from hashing import Hasher
from materialize import LibraryVerifier, VerificationStats
from metadata import TagExtractor
from orchestrator.pipeline import IngestPipeline, IngestStats
from utils import InstanceLockError, ResourceMonitor, acquire_instance_lock, lock_path_for, setup_logging

ALLOW_MULTI_INSTANCE_ENV = "MEDIA_INTAKE_ALLOW_MULTI_INSTANCE"


class Orchestrator:
    """Build the pipeline from configuration and run CLI commands."""

    def __init__(self, config: AppConfig, extractor: Optional[TagExtractor] = None) -> None:
        self.config = config
        self.library_root = self.config.resolve_path("paths", "library_root", default="library")
        self.logs_root = self.config.resolve_path("paths", "logs", default="logs")
        self.catalog_path = self.config.resolve_path("databases", "catalog", default="data/catalog.sqlite")
        self.loggers = setup_logging(self.logs_root)
        self.logger = self.loggers["main"]
        self.catalog = CatalogStore(self.catalog_path)
        self.hasher = Hasher(
            chunk_bytes=int(self.config.get("hashing", "chunk_bytes", default=DEFAULT_HASH_CHUNK_BYTES))
        )
        self.resource_monitor = ResourceMonitor(
            max_cpu_percent=float(self.config.get("resource_limits", "max_cpu_percent", default=0)),
            max_ram_percent=float(self.config.get("resource_limits", "max_ram_percent", default=0)),
            max_throttle_seconds=float(
                self.config.get("resource_limits", "max_throttle_seconds", default=15)
            ),
        )
        self.pipeline = IngestPipeline.create(
            self.catalog,
            self.library_root,
            extractor=extractor,
            hasher=self.hasher,
            max_collision_attempts=int(
                self.config.get(
                    "placement", "max_collision_attempts", default=DEFAULT_MAX_COLLISION_ATTEMPTS
                )
            ),
            logger=self.logger,
            movement_logger=self.loggers["movement"],
            monitor=self.resource_monitor if self.resource_monitor.enabled else None,
        )
        self.scanner = Scanner(config, logger=self.logger, excluded_paths=[self.library_root])
        self.reports_enabled = bool(self.config.get("reports", "enabled", default=True))

    def ingest(self, paths: Sequence[Path]) -> IngestStats:
        """Ingest every source found under paths, recording the run in the catalog."""
        ensure_directories([self.library_root, self.logs_root, self.catalog_path.parent])
        lock = None
        if os.environ.get(ALLOW_MULTI_INSTANCE_ENV) != "1":
            lock = acquire_instance_lock(lock_path_for(self.catalog_path))
        self.catalog.initialize()
        run_id = self.catalog.start_run()
        self.logger.info("Starting ingest run %s into %s", run_id, self.library_root)
        try:
            stats = self.pipeline.ingest_paths(self.scanner, [path.expanduser() for path in paths])
            report_path = self._write_report(run_id, stats) if self.reports_enabled else None
            details = stats.totals()
            if report_path is not None:
                details["report_path"] = str(report_path)
            self.catalog.complete_run(run_id, status="completed", details=details)
            self.loggers["runs"].info("Ingest run %s: %s", run_id, details)
            self.logger.info(
                "Ingest run %s completed. Placed=%s Duplicates=%s AlreadyPlaced=%s Failed=%s",
                run_id,
                stats.placed,
                stats.duplicates,
                stats.already_placed,
                stats.failed,
            )
            return stats
        except Exception:
            self.catalog.complete_run(run_id, status="failed")
            self.logger.exception("Ingest run %s failed.", run_id)
            raise
        finally:
            self.catalog.close()
            if lock is not None:
                lock.release()

    def stats(self) -> dict:
        """Return catalog summary counts."""
        self.catalog.initialize()
        try:
            summary = self.catalog.summary()
        finally:
            self.catalog.close()
        return {
            "catalog": str(self.catalog_path),
            "library_root": str(self.library_root),
            "records": summary.records,
            "placed": summary.placed,
            "with_metadata": summary.with_metadata,
            "archive_members": summary.archive_members,
            "duplicates_unplaced": summary.duplicates_unplaced,
        }

    def verify(self) -> VerificationStats:
        """Re-hash placed library files without modifying the catalog."""
        self.catalog.initialize()
        try:
            stats = LibraryVerifier(self.catalog, hasher=self.hasher, logger=self.logger).run()
        finally:
            self.catalog.close()
        self.logger.info(
            "Verification complete. Checked=%s Ok=%s Missing=%s Mismatched=%s Unreadable=%s",
            stats.checked,
            stats.ok,
            len(stats.missing),
            len(stats.mismatched),
            len(stats.unreadable),
        )
        return stats

    def _write_report(self, run_id: int, stats: IngestStats) -> Path:
        report = {
            "generated_at": datetime.utcnow().isoformat(),
            "run_id": run_id,
            "library_root": str(self.library_root),
            "catalog": str(self.catalog_path),
        }
        report.update(stats.as_dict())
        report_path = self.logs_root / f"ingest_report_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}_{run_id}.json"
        report_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
        return report_path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="media-intake",
        description="Consolidate media files and archives into a deduplicated library.",
    )
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--library-root", type=Path, default=None, help="Override paths.library_root")
    parser.add_argument("--catalog", type=Path, default=None, help="Override databases.catalog")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest_parser = subparsers.add_parser("ingest", help="Ingest files, directories and archives")
    ingest_parser.add_argument("paths", nargs="+", type=Path)
    subparsers.add_parser("stats", help="Show catalog summary counts")
    subparsers.add_parser("verify", help="Re-hash placed library files")
    return parser


def load_config(args: argparse.Namespace) -> AppConfig:
    config = AppConfig.load(args.config)
    return config.with_overrides(
        {
            "paths": {"library_root": str(args.library_root.resolve()) if args.library_root else None},
            "databases": {"catalog": str(args.catalog.resolve()) if args.catalog else None},
        }
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    orchestrator = Orchestrator(load_config(args))

    if args.command == "ingest":
        try:
            stats = orchestrator.ingest(args.paths)
        except InstanceLockError:
            message = (
                "ERROR: Another media-intake process is writing to this catalog.\n"
                f"Close it or set {ALLOW_MULTI_INSTANCE_ENV}=1 to override.\n"
            )
            print(message, file=sys.stderr)
            return 2
        print(json.dumps(stats.totals(), indent=2))
        return 1 if stats.failed else 0

    if args.command == "stats":
        print(json.dumps(orchestrator.stats(), indent=2))
        return 0

    if args.command == "verify":
        stats = orchestrator.verify()
        print(
            json.dumps(
                {
                    "checked": stats.checked,
                    "ok": stats.ok,
                    "missing": stats.missing,
                    "mismatched": stats.mismatched,
                    "unreadable": stats.unreadable,
                },
                indent=2,
            )
        )
        return 0 if stats.clean else 1

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
