"""
SQLite schema for the media catalog.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path


def create_catalog_db(db_path: Path) -> None:
    """Create the catalog database and its tables."""
    conn = _connect(db_path)
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS file (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            fingerprint TEXT NOT NULL,
            size INTEGER NOT NULL,
            orig_archive TEXT,
            orig_path TEXT NOT NULL,
            path TEXT,
            artist TEXT,
            album TEXT,
            title TEXT,
            disk INTEGER,
            track INTEGER,
            metadata_version INTEGER,
            UNIQUE (orig_archive, orig_path)
        )
        """
    )
    # NULL archives never collide under the table constraint; fold them to ''.
    conn.execute(
        "CREATE UNIQUE INDEX IF NOT EXISTS idx_file_origin "
        "ON file(COALESCE(orig_archive, ''), orig_path)"
    )
    conn.execute(
        "CREATE UNIQUE INDEX IF NOT EXISTS idx_file_path ON file(path) WHERE path IS NOT NULL"
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_file_content ON file(fingerprint, size)")
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS ingest_run (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            started_at TIMESTAMP,
            finished_at TIMESTAMP,
            status TEXT,
            details_json TEXT
        )
        """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_ingest_run_status ON ingest_run(status)")
    conn.commit()
    conn.close()


def _connect(db_path: Path) -> sqlite3.Connection:
    """Create a SQLite connection with WAL enabled."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA journal_mode=WAL;")
    return conn
