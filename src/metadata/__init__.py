"""
Tag extraction and metadata attachment.
"""

from .attacher import MetadataAttacher, TagExtractor, normalize_tags
from .extractor import extract_tags, tags_from_mapping

__all__ = [
    "MetadataAttacher",
    "TagExtractor",
    "extract_tags",
    "normalize_tags",
    "tags_from_mapping",
]
