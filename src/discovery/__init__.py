"""
Input discovery: filesystem walking, archive traversal and source descriptors.
"""

from .archives import ArchiveEntry, iter_archive_entries
from .scanner import Scanner
from .sources import ArchiveEntrySource, FileSource, Source

__all__ = [
    "Scanner",
    "FileSource",
    "ArchiveEntrySource",
    "Source",
    "ArchiveEntry",
    "iter_archive_entries",
]
