"""Calibration captures and the capture session.

Main components:
    - CalibrationPoint: one labeled, floor-tagged, positioned measurement
    - LocationType: room / hallway / staircase tag
    - CalibrationSession: append-only point log with lifecycle
    - session_to_records: flat record export
"""

from .records import point_to_record, session_to_records
from .session import CalibrationSession
from .types import CalibrationPoint, LocationType, SessionState, Vector2, Vector3

__all__ = [
    "CalibrationPoint",
    "CalibrationSession",
    "LocationType",
    "SessionState",
    "Vector2",
    "Vector3",
    "point_to_record",
    "session_to_records",
]
