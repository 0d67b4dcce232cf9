"""
Utility helpers for the media intake pipeline.
"""

from .errors import (
    CatalogError,
    CollisionStormExceeded,
    DuplicateOriginError,
    IntakeError,
    SourceUnavailable,
    WriteVerificationFailed,
)
from .instance_guard import InstanceLock, InstanceLockError, acquire_instance_lock, lock_path_for
from .logging_setup import setup_logging
from .resource_monitor import ResourceMonitor

__all__ = [
    "setup_logging",
    "ResourceMonitor",
    "InstanceLock",
    "InstanceLockError",
    "acquire_instance_lock",
    "lock_path_for",
    "IntakeError",
    "CatalogError",
    "DuplicateOriginError",
    "SourceUnavailable",
    "CollisionStormExceeded",
    "WriteVerificationFailed",
]
