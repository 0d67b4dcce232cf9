"""
Content hashing and identity resolution.
"""

from .hasher import Hasher
from .identity import IdentityResolver

__all__ = ["Hasher", "IdentityResolver"]
