"""Type definitions for calibration captures.

A calibration point is one labeled, floor-tagged signal measurement with a
position derived by dead reckoning. Points are created only by a session
capture and are immutable afterwards.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

import numpy as np

from wifiplan.sensors.types import SignalReading

# Relative position: floor-local x, y plus global z offset, meters
Vector3 = Tuple[float, float, float]
# Floor-local horizontal position, meters
Vector2 = Tuple[float, float]


class LocationType(enum.Enum):
    """Kind of place a capture was taken in."""

    ROOM = "Room"
    HALLWAY = "Hallway"
    STAIRCASE = "Staircase"

    @property
    def icon(self) -> str:
        if self is LocationType.ROOM:
            return "house.fill"
        if self is LocationType.HALLWAY:
            return "rectangle.split.3x1"
        return "stairs"

    @property
    def description(self) -> str:
        if self is LocationType.ROOM:
            return "Living space or specific room"
        if self is LocationType.HALLWAY:
            return "Corridor or passage"
        return "Stairway between floors"


class SessionState(enum.Enum):
    """Lifecycle state of a calibration session."""

    NOT_STARTED = "not_started"
    ACTIVE = "active"
    ENDED = "ended"


@dataclass(frozen=True)
class CalibrationPoint:
    """
    One captured measurement.

    Attributes:
        id: Unique identifier assigned by the session.
        label: Operator-supplied name (e.g. "Kitchen"), never blank.
        floor: Positive floor number. Floors are ordinal, not contiguous.
        reading: Normalized signal reading.
        position: (x, y, z) in meters. x, y are relative to the first
                  capture on the same floor; z is the vertical offset from
                  the first capture of the session.
        captured_at: Capture timestamp.
        location_type: Kind of place.
    """

    id: str
    label: str
    floor: int
    reading: SignalReading
    position: Vector3
    captured_at: datetime
    location_type: LocationType = LocationType.ROOM

    @property
    def strength(self) -> float:
        return self.reading.strength

    @property
    def confidence(self) -> float:
        return self.reading.confidence

    @property
    def xy(self) -> np.ndarray:
        """Floor-local horizontal position, shape (2,)."""
        return np.array(self.position[:2], dtype=float)
