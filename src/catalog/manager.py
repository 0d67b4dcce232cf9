"""
SQLite access layer for the media catalog.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from utils.errors import CatalogError, DuplicateOriginError

from .records import METADATA_VERSION, CatalogSummary, FileRecord, Origin, TagSet
from .schema import create_catalog_db

_RECORD_COLUMNS = (
    "id, fingerprint, size, orig_archive, orig_path, path, "
    "artist, album, title, disk, track, metadata_version"
)


class CatalogStore:
    """Own the persisted FileRecords; every write is committed immediately."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None

    def initialize(self) -> None:
        """Create the database file and tables."""
        create_catalog_db(self.db_path)

    def connect(self) -> None:
        """Open the database connection if it is not already open."""
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.execute("PRAGMA journal_mode=WAL;")

    def close(self) -> None:
        """Close the open database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def find_by_origin(self, origin: Origin) -> Optional[FileRecord]:
        """Return the record registered for an origin, if any."""
        self.connect()
        row = self._conn.execute(
            f"SELECT {_RECORD_COLUMNS} FROM file WHERE orig_archive IS ? AND orig_path = ?",
            (origin.archive_path, origin.path),
        ).fetchone()
        return _row_to_record(row) if row else None

    def get(self, record_id: int) -> Optional[FileRecord]:
        """Return a record by id."""
        self.connect()
        row = self._conn.execute(
            f"SELECT {_RECORD_COLUMNS} FROM file WHERE id = ?",
            (record_id,),
        ).fetchone()
        return _row_to_record(row) if row else None

    def require(self, record_id: int) -> FileRecord:
        """Return a record by id or raise CatalogError."""
        record = self.get(record_id)
        if record is None:
            raise CatalogError(f"Unknown catalog record: {record_id}")
        return record

    def insert(self, origin: Origin, fingerprint: str, size: int) -> FileRecord:
        """Insert a fresh record; raise DuplicateOriginError if the origin exists."""
        self.connect()
        try:
            cursor = self._conn.execute(
                "INSERT INTO file (fingerprint, size, orig_archive, orig_path) VALUES (?, ?, ?, ?)",
                (fingerprint, size, origin.archive_path, origin.path),
            )
            self._conn.commit()
        except sqlite3.IntegrityError as exc:
            self._conn.rollback()
            raise DuplicateOriginError(origin) from exc
        return FileRecord(
            id=int(cursor.lastrowid),
            fingerprint=fingerprint,
            size=size,
            origin=origin,
        )

    def update_tags(self, record_id: int, tags: TagSet) -> FileRecord:
        """Persist all tag fields and mark metadata as extracted."""
        self.connect()
        cursor = self._conn.execute(
            """
            UPDATE file
            SET title = ?,
                artist = ?,
                album = ?,
                track = ?,
                disk = ?,
                metadata_version = ?
            WHERE id = ?
            """,
            (tags.title, tags.artist, tags.album, tags.track, tags.disk, METADATA_VERSION, record_id),
        )
        self._conn.commit()
        if cursor.rowcount == 0:
            raise CatalogError(f"Unknown catalog record: {record_id}")
        return self.require(record_id)

    def set_destination(self, record_id: int, destination_path: str) -> FileRecord:
        """Commit a record's library path; a path is never overwritten."""
        self.connect()
        try:
            cursor = self._conn.execute(
                "UPDATE file SET path = ? WHERE id = ? AND path IS NULL",
                (destination_path, record_id),
            )
            self._conn.commit()
        except sqlite3.IntegrityError as exc:
            self._conn.rollback()
            raise CatalogError(f"Destination already assigned to another record: {destination_path}") from exc
        if cursor.rowcount == 0:
            existing = self.require(record_id)
            raise CatalogError(
                f"Record {record_id} already placed at {existing.destination_path}"
            )
        return self.require(record_id)

    def find_placed_by_content(
        self, fingerprint: str, size: int, exclude_id: Optional[int] = None
    ) -> Optional[FileRecord]:
        """Return a placed record with identical content, if one exists."""
        self.connect()
        query = (
            f"SELECT {_RECORD_COLUMNS} FROM file "
            "WHERE fingerprint = ? AND size = ? AND path IS NOT NULL"
        )
        params: list = [fingerprint, size]
        if exclude_id is not None:
            query += " AND id != ?"
            params.append(exclude_id)
        query += " ORDER BY id ASC LIMIT 1"
        row = self._conn.execute(query, tuple(params)).fetchone()
        return _row_to_record(row) if row else None

    def find_by_destination(self, destination_path: str) -> Optional[FileRecord]:
        """Return the record occupying a library path, if any."""
        self.connect()
        row = self._conn.execute(
            f"SELECT {_RECORD_COLUMNS} FROM file WHERE path = ?",
            (destination_path,),
        ).fetchone()
        return _row_to_record(row) if row else None

    def destination_taken(self, destination_path: str) -> bool:
        """Check whether any record already claims a library path."""
        self.connect()
        cursor = self._conn.execute(
            "SELECT 1 FROM file WHERE path = ? LIMIT 1",
            (destination_path,),
        )
        return cursor.fetchone() is not None

    def iter_placed(self) -> Iterable[FileRecord]:
        """Yield every record that has a library path."""
        self.connect()
        cursor = self._conn.execute(
            f"SELECT {_RECORD_COLUMNS} FROM file WHERE path IS NOT NULL ORDER BY id ASC"
        )
        for row in cursor.fetchall():
            yield _row_to_record(row)

    def count_records(self) -> int:
        """Count catalog records."""
        return self._count("SELECT COUNT(*) FROM file")

    def summary(self) -> CatalogSummary:
        """Return aggregate counts over the catalog."""
        return CatalogSummary(
            records=self.count_records(),
            placed=self._count("SELECT COUNT(*) FROM file WHERE path IS NOT NULL"),
            with_metadata=self._count(
                "SELECT COUNT(*) FROM file WHERE metadata_version = ?", (METADATA_VERSION,)
            ),
            archive_members=self._count("SELECT COUNT(*) FROM file WHERE orig_archive IS NOT NULL"),
            duplicates_unplaced=self._count(
                """
                SELECT COUNT(*) FROM file AS f
                WHERE f.path IS NULL AND EXISTS (
                    SELECT 1 FROM file AS g
                    WHERE g.path IS NOT NULL AND g.fingerprint = f.fingerprint AND g.size = f.size
                )
                """
            ),
        )

    def start_run(self) -> int:
        """Record the start of an ingest run and return its id."""
        self.connect()
        cursor = self._conn.execute(
            "INSERT INTO ingest_run (started_at, status) VALUES (?, ?)",
            (datetime.utcnow().isoformat(), "in_progress"),
        )
        self._conn.commit()
        return int(cursor.lastrowid)

    def complete_run(self, run_id: int, status: str = "completed", details: Optional[dict] = None) -> None:
        """Mark an ingest run finished."""
        self.connect()
        self._conn.execute(
            """
            UPDATE ingest_run
            SET finished_at = ?, status = ?, details_json = ?
            WHERE id = ?
            """,
            (
                datetime.utcnow().isoformat(),
                status,
                json.dumps(details) if details is not None else None,
                run_id,
            ),
        )
        self._conn.commit()

    def get_run(self, run_id: int) -> Optional[dict]:
        """Return an ingest run row as a dict."""
        self.connect()
        row = self._conn.execute(
            "SELECT id, started_at, finished_at, status, details_json FROM ingest_run WHERE id = ?",
            (run_id,),
        ).fetchone()
        if not row:
            return None
        return {
            "id": int(row[0]),
            "started_at": str(row[1]) if row[1] else "",
            "finished_at": str(row[2]) if row[2] else "",
            "status": str(row[3]) if row[3] else "",
            "details": json.loads(row[4]) if row[4] else None,
        }

    def _count(self, query: str, params: tuple = ()) -> int:
        self.connect()
        row = self._conn.execute(query, params).fetchone()
        return int(row[0]) if row else 0


def _row_to_record(row: tuple) -> FileRecord:
    (
        record_id,
        fingerprint,
        size,
        orig_archive,
        orig_path,
        path,
        artist,
        album,
        title,
        disk,
        track,
        metadata_version,
    ) = row
    tags = None
    if metadata_version is not None:
        tags = TagSet(
            title=title,
            artist=artist,
            album=album,
            track=int(track) if track is not None else None,
            disk=int(disk) if disk is not None else None,
        )
    return FileRecord(
        id=int(record_id),
        fingerprint=str(fingerprint),
        size=int(size),
        origin=Origin(path=str(orig_path), archive_path=orig_archive),
        destination_path=str(path) if path is not None else None,
        tags=tags,
        metadata_version=int(metadata_version) if metadata_version is not None else None,
    )
