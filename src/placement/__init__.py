"""
Library placement planning.
"""

from .planner import UNKNOWN, PlacementPlanner, source_extension

__all__ = ["PlacementPlanner", "UNKNOWN", "source_extension"]
