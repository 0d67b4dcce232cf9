"""
Catalog package: persisted records and their SQLite store.
"""

from .manager import CatalogStore
from .records import METADATA_VERSION, CatalogSummary, FileRecord, Origin, TagSet
from .schema import create_catalog_db

__all__ = [
    "CatalogStore",
    "CatalogSummary",
    "FileRecord",
    "Origin",
    "TagSet",
    "METADATA_VERSION",
    "create_catalog_db",
]
