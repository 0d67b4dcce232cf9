"""
Exception types raised by the intake pipeline.
"""

from __future__ import annotations

from typing import Optional


class IntakeError(RuntimeError):
    """Base class for conditions that abort processing of a single source."""


class CatalogError(IntakeError):
    """Raised when a catalog write would break a record invariant."""


class DuplicateOriginError(CatalogError):
    """Raised when inserting a record for an origin that is already registered."""

    def __init__(self, origin: object) -> None:
        super().__init__(f"Origin already registered: {origin}")
        self.origin = origin


class SourceUnavailable(IntakeError):
    """Raised when a source cannot be read."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Source unavailable: {source} ({reason})")
        self.source = source
        self.reason = reason


class CollisionStormExceeded(IntakeError):
    """Raised when every candidate destination path is already taken."""

    def __init__(self, base_path: str, attempts: int) -> None:
        super().__init__(f"No free destination after {attempts} attempts: {base_path}")
        self.base_path = base_path
        self.attempts = attempts


class WriteVerificationFailed(IntakeError):
    """Raised when written content cannot be proven to match its fingerprint."""

    def __init__(self, path: str, reason: str, actual: Optional[str] = None) -> None:
        super().__init__(f"Write verification failed for {path}: {reason}")
        self.path = path
        self.reason = reason
        self.actual = actual
