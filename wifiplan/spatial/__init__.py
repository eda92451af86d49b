"""Relative per-floor spatial model built by dead reckoning."""

from .reckoning import DeadReckoner, DeadReckoningConfig
from .layout import BoundingBox, FloorLayout, SpatialLayout, build_layout

__all__ = [
    "BoundingBox",
    "DeadReckoner",
    "DeadReckoningConfig",
    "FloorLayout",
    "SpatialLayout",
    "build_layout",
]
