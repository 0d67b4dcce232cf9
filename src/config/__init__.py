"""
Configuration package for the media intake pipeline.
"""

from .settings import (
    DEFAULT_ARCHIVE_PATTERNS,
    DEFAULT_HASH_CHUNK_BYTES,
    DEFAULT_MAX_COLLISION_ATTEMPTS,
    DEFAULT_MEDIA_EXTENSIONS,
    AppConfig,
    ensure_directories,
)

__all__ = [
    "AppConfig",
    "ensure_directories",
    "DEFAULT_ARCHIVE_PATTERNS",
    "DEFAULT_HASH_CHUNK_BYTES",
    "DEFAULT_MAX_COLLISION_ATTEMPTS",
    "DEFAULT_MEDIA_EXTENSIONS",
]
