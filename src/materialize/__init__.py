"""
Materialization of catalog records into the library tree.
"""

from .materializer import MaterializeOutcome, MaterializeState, Materializer
from .verifier import LibraryVerifier, VerificationStats

__all__ = [
    "Materializer",
    "MaterializeOutcome",
    "MaterializeState",
    "LibraryVerifier",
    "VerificationStats",
]
