"""
Compass LK maintenance toolkit.

Duplicate resolution, local image matching and fallback descriptions for
the destinations table of the Compass LK travel planner.
"""

__version__ = "1.0.0"
