"""
Sensor data structures and frame conventions for walk surveys.

This module defines what a capture knows about the world besides the signal
itself: the raw signal level as reported by the radio, and a snapshot of the
auxiliary sensors (compass, barometer, pedometer/accelerometer) that drive
dead reckoning between captures.

Frame Conventions:
    - M: Map frame of one floor (horizontal plane), ENU by default
    - Compass headings are degrees clockwise from magnetic north, as reported
      by phone location services, and are converted into the map frame via
      FrameConvention.compass_to_heading().

Design principles:
    - Sensor packets are frozen dataclasses
    - Unavailable sensors are represented by None, never by sentinel numbers
"""

import enum
from dataclasses import dataclass, field
from typing import Literal, Optional

import numpy as np


class SignalScale(enum.Enum):
    """Scale on which a raw signal level is reported."""

    DBM = "dBm"
    PERCENT = "percent"
    FRACTION = "fraction"


@dataclass(frozen=True)
class FrameConvention:
    """
    Map frame convention for per-floor dead reckoning.

    Attributes:
        map_frame: Name of the map frame.
                   'ENU': x=East, y=North, heading 0 = East, CCW positive.
                   'NED': x=North, y=East, heading 0 = North, CW positive.
        heading_zero_direction: Direction corresponding to heading = 0.
        heading_increases_towards: Direction of increasing heading angle.

    Notes:
        - The step update p_k = p_{k-1} + L*[cos(psi), sin(psi)] holds in both
          frames; only the meaning of psi changes.
        - Floors are independent sheets, so the frame only fixes orientation.

    Example:
        >>> frame = FrameConvention.create_enu()
        >>> frame.compass_to_heading(90.0)  # compass East
        0.0
    """

    map_frame: Literal['ENU', 'NED'] = 'ENU'
    heading_zero_direction: Literal['East', 'North'] = 'East'
    heading_increases_towards: Literal['North', 'East'] = 'North'

    def __post_init__(self) -> None:
        """Validate frame convention consistency."""
        if self.map_frame == 'ENU':
            expected = ('East', 'North')
        elif self.map_frame == 'NED':
            expected = ('North', 'East')
        else:
            raise ValueError(
                f"map_frame must be 'ENU' or 'NED', got '{self.map_frame}'"
            )

        actual = (self.heading_zero_direction, self.heading_increases_towards)
        if actual != expected:
            raise ValueError(
                f"For {self.map_frame}, heading convention should be "
                f"{expected}, got {actual}"
            )

    @classmethod
    def create_enu(cls) -> "FrameConvention":
        """Create ENU (East-North-Up) frame convention (default)."""
        return cls(
            map_frame='ENU',
            heading_zero_direction='East',
            heading_increases_towards='North',
        )

    @classmethod
    def create_ned(cls) -> "FrameConvention":
        """Create NED (North-East-Down) frame convention."""
        return cls(
            map_frame='NED',
            heading_zero_direction='North',
            heading_increases_towards='East',
        )

    def compass_to_heading(self, compass_deg: float) -> float:
        """
        Convert a compass bearing into a map-frame heading angle.

        Args:
            compass_deg: Bearing in degrees clockwise from north.

        Returns:
            Heading in radians, wrapped to [-pi, pi].
            ENU: psi = pi/2 - bearing. NED: psi = bearing.
        """
        bearing = np.deg2rad(compass_deg)
        if self.map_frame == 'ENU':
            psi = np.pi / 2.0 - bearing
        else:
            psi = bearing
        return float(np.arctan2(np.sin(psi), np.cos(psi)))

    def heading_to_unit_vector(self, heading_rad: float) -> np.ndarray:
        """
        Convert heading angle to unit direction vector in the floor plane.

        Returns:
            Shape (2,). [cos(psi), sin(psi)] in map-frame axes.
        """
        return np.array([np.cos(heading_rad), np.sin(heading_rad)])


@dataclass(frozen=True)
class RawSignal:
    """
    Raw signal level as reported by the radio.

    Attributes:
        value: Measured level. None or NaN means the radio gave no reading.
        scale: Scale of value. None lets the normalizer infer it:
               negative -> dBm, [0, 1] -> fraction, (1, 100] -> percent.
    """

    value: Optional[float]
    scale: Optional[SignalScale] = None


def _is_finite(value: Optional[float]) -> bool:
    return value is not None and bool(np.isfinite(value))


@dataclass(frozen=True)
class AuxiliarySensors:
    """
    Snapshot of auxiliary sensors at capture time.

    Every field is optional; None marks the sensor as unavailable. Non-finite
    compass or altitude values, and non-finite or non-positive pressures,
    are also treated as unavailable.

    Attributes:
        compass_deg: Heading in degrees clockwise from north, taken while
                     walking from the previous capture to this one.
        relative_altitude_m: Barometric altitude relative to the session
                             start, in meters (phone altimeter style).
        pressure_pa: Raw barometric pressure in Pa. Used only when
                     relative_altitude_m is unavailable.
        step_count: Steps walked since the previous capture (pedometer).
        accel_window: Accelerometer samples recorded since the previous
                      capture, shape (N, 3), m/s^2, gravity included.
                      Used to count steps when step_count is unavailable.
    """

    compass_deg: Optional[float] = None
    relative_altitude_m: Optional[float] = None
    pressure_pa: Optional[float] = None
    step_count: Optional[int] = None
    accel_window: Optional[np.ndarray] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.step_count is not None and self.step_count < 0:
            raise ValueError(
                f"step_count must be non-negative, got {self.step_count}"
            )
        if self.accel_window is not None:
            window = np.asarray(self.accel_window, dtype=float)
            if window.ndim != 2 or window.shape[1] != 3:
                raise ValueError(
                    f"accel_window must have shape (N, 3), got {window.shape}"
                )
            window.setflags(write=False)
            object.__setattr__(self, 'accel_window', window)

    @property
    def has_compass(self) -> bool:
        return _is_finite(self.compass_deg)

    @property
    def has_altimeter(self) -> bool:
        return _is_finite(self.relative_altitude_m)

    @property
    def has_pressure(self) -> bool:
        return _is_finite(self.pressure_pa) and self.pressure_pa > 0

    @property
    def has_barometer(self) -> bool:
        """Altimeter reading or a usable (finite, positive) raw pressure."""
        return self.has_altimeter or self.has_pressure

    @property
    def has_pedometer(self) -> bool:
        return _is_finite(self.step_count)

    @property
    def has_step_source(self) -> bool:
        return self.has_pedometer or self.accel_window is not None

    @classmethod
    def unavailable(cls) -> "AuxiliarySensors":
        """Snapshot with every auxiliary sensor missing."""
        return cls()


@dataclass(frozen=True)
class SignalReading:
    """
    Normalized signal measurement attached to a calibration point.

    Attributes:
        strength: Normalized signal strength in [0, 1] (1 = best).
        confidence: Trust in the capture in [0, 1], reduced when auxiliary
                    sensors were unavailable.

    Notes:
        - Both fields are clamped to [0, 1] at construction.
        - NaN is rejected; a reading is never partial.

    Example:
        >>> SignalReading(strength=1.3, confidence=0.5).strength
        1.0
    """

    strength: float
    confidence: float = 1.0

    def __post_init__(self) -> None:
        for name in ('strength', 'confidence'):
            value = float(getattr(self, name))
            if np.isnan(value):
                raise ValueError(f"{name} must not be NaN")
            object.__setattr__(self, name, min(1.0, max(0.0, value)))

    @property
    def weight(self) -> float:
        """Placement weight w = (1 - strength) * confidence."""
        return (1.0 - self.strength) * self.confidence
