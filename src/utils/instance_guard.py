"""
Single-writer guard for the catalog.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO


class InstanceLockError(RuntimeError):
    """Raised when another process already holds the catalog lock."""


@dataclass(frozen=True)
class InstanceLock:
    """Holds the lock file handle to keep the lock alive."""

    handle: TextIO
    path: Path

    def release(self) -> None:
        """Close the handle, dropping the OS-level lock."""
        if not self.handle.closed:
            self.handle.close()


def lock_path_for(catalog_path: Path) -> Path:
    """Return the lock file path that guards a catalog file."""
    return catalog_path.with_name(catalog_path.name + ".lock")


def _lock_file(handle: TextIO) -> None:
    if os.name == "nt":
        import msvcrt

        try:
            handle.seek(0)
            msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)
        except OSError as exc:
            raise InstanceLockError("Another instance is already writing to this catalog.") from exc
    else:
        import fcntl

        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as exc:
            raise InstanceLockError("Another instance is already writing to this catalog.") from exc


def _write_lock_info(handle: TextIO) -> None:
    handle.seek(0)
    handle.truncate()
    info = [
        f"pid={os.getpid()}",
        f"python={sys.executable}",
        f"argv={' '.join(sys.argv)}",
    ]
    handle.write("\n".join(info))
    handle.flush()


def acquire_instance_lock(lock_path: Path) -> InstanceLock:
    """Acquire a non-blocking instance lock or raise InstanceLockError."""
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    handle = lock_path.open("a+", encoding="utf-8")
    try:
        _lock_file(handle)
        _write_lock_info(handle)
    except Exception:
        handle.close()
        raise
    return InstanceLock(handle=handle, path=lock_path)
