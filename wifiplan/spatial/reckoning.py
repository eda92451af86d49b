"""
Incremental dead reckoning of capture positions.

Each capture is placed relative to the previous capture on the same floor:

    p_k = p_{k-1} + n_k * L * [cos(psi_k), sin(psi_k)]

where n_k is the number of steps walked since the previous capture, L the
stride length and psi_k the heading in the map frame. The first capture of
each floor defines that floor's local origin (0, 0). z is the barometric
altitude relative to the session's first capture.
"""

import warnings
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from wifiplan.sensors.environment import detect_floor_change, pressure_to_altitude
from wifiplan.sensors.pdr import count_steps, pdr_step_update, step_length
from wifiplan.sensors.types import AuxiliarySensors, FrameConvention


@dataclass(frozen=True)
class DeadReckoningConfig:
    """
    Dead-reckoning parameters.

    Attributes:
        stride_length_m: Distance per step. Units: m. Default: 0.7 m.
        floor_height_m: Floor-to-floor height used when no barometer is
                        available and for floor-change checks. Default: 3.0 m.
        frame: Map frame convention. Default: ENU.
        accel_dt: Sample interval of accelerometer windows. Units: s.
        min_peak_height: Step detector peak threshold. Units: m/s².
        min_peak_distance: Step detector refractory period. Units: s.
    """

    stride_length_m: float = 0.7
    floor_height_m: float = 3.0
    frame: FrameConvention = FrameConvention()
    accel_dt: float = 0.01
    min_peak_height: float = 1.0
    min_peak_distance: float = 0.3

    def __post_init__(self) -> None:
        if self.stride_length_m <= 0:
            raise ValueError(
                f"stride_length_m must be positive, got {self.stride_length_m}"
            )
        if self.floor_height_m <= 0:
            raise ValueError(
                f"floor_height_m must be positive, got {self.floor_height_m}"
            )
        if self.accel_dt <= 0:
            raise ValueError(f"accel_dt must be positive, got {self.accel_dt}")

    @classmethod
    def from_user_height(
        cls,
        height_m: float,
        f_step: float = 1.8,
        c: float = 0.5,
        **kwargs,
    ) -> "DeadReckoningConfig":
        """
        Derive the stride from the operator's height (Weinberg model).

        Args:
            height_m: Operator height. Units: m.
            f_step: Typical step frequency. Units: Hz. Default: 1.8 Hz.
            c: Personal scaling constant of the Weinberg model.
               Default: 0.5, which gives ~0.7 m for a 1.75 m adult.
            **kwargs: Remaining DeadReckoningConfig fields.
        """
        return cls(stride_length_m=step_length(height_m, f_step, c=c), **kwargs)


@dataclass
class _FloorTrack:
    xy: np.ndarray
    heading: float
    z: float


class DeadReckoner:
    """
    Incremental position assignment for consecutive captures.

    One instance belongs to one session and is only driven from the
    session's capture path, which is already serialized.

    Example:
        >>> dr = DeadReckoner(DeadReckoningConfig(stride_length_m=1.0))
        >>> dr.advance(1, AuxiliarySensors(compass_deg=90.0, step_count=0))
        (0.0, 0.0, 0.0)
        >>> dr.advance(1, AuxiliarySensors(compass_deg=90.0, step_count=3))
        (3.0, 0.0, 0.0)
    """

    def __init__(self, config: Optional[DeadReckoningConfig] = None) -> None:
        self.config = config if config is not None else DeadReckoningConfig()
        self._tracks: Dict[int, _FloorTrack] = {}
        self._first_floor: Optional[int] = None
        self._last_floor: Optional[int] = None
        self._last_altitude: Optional[float] = None
        self._altitude_ref: Optional[float] = None
        self._pressure_ref: Optional[float] = None

    def _altitude(self, sensors: AuxiliarySensors) -> Optional[float]:
        if sensors.has_altimeter:
            return float(sensors.relative_altitude_m)
        if sensors.has_pressure:
            p = float(sensors.pressure_pa)
            p0 = self._pressure_ref if self._pressure_ref is not None else p
            altitude = pressure_to_altitude(p, p0=p0)
            # Reference is only kept once a reading has converted cleanly
            self._pressure_ref = p0
            return altitude
        return None

    def _steps(self, sensors: AuxiliarySensors) -> int:
        if sensors.has_pedometer:
            return int(sensors.step_count)
        if sensors.accel_window is not None:
            return count_steps(
                sensors.accel_window,
                self.config.accel_dt,
                min_peak_height=self.config.min_peak_height,
                min_peak_distance=self.config.min_peak_distance,
            )
        return 0

    def _vertical_offset(self, floor: int, altitude: Optional[float]) -> float:
        track = self._tracks.get(floor)

        if altitude is None:
            if track is not None:
                return track.z
            return (floor - self._first_floor) * self.config.floor_height_m

        if self._altitude_ref is None:
            # Barometer came online mid-survey; anchor it to the z estimate
            # we would otherwise have used.
            if track is not None:
                fallback = track.z
            else:
                fallback = (floor - self._first_floor) * self.config.floor_height_m
            self._altitude_ref = altitude - fallback

        return altitude - self._altitude_ref

    def _check_floor_change(self, floor: int, altitude: Optional[float]) -> None:
        if altitude is None or self._last_altitude is None:
            return
        detected = detect_floor_change(
            self._last_altitude,
            altitude,
            floor_height=self.config.floor_height_m,
            threshold=0.5 * self.config.floor_height_m,
        )
        declared = floor - self._last_floor
        if detected != declared:
            warnings.warn(
                f"Barometer suggests a change of {detected:+d} floor(s) but the "
                f"capture declares {declared:+d} (floor {self._last_floor} -> {floor}). "
                "Check the floor number or the barometer.",
                RuntimeWarning,
            )

    def advance(self, floor: int, sensors: Optional[AuxiliarySensors] = None) -> Tuple[float, float, float]:
        """
        Assign the position of the next capture.

        Args:
            floor: Declared floor of the capture (positive integer).
            sensors: Auxiliary sensor snapshot. None means all unavailable.

        Returns:
            (x, y, z) position in meters.

        Notes:
            - A floor's first capture sits at (0, 0) whatever the sensors say.
            - Missing compass: the last heading on this floor is reused (0 if
              none). Missing step source: zero displacement.
            - Returning to a floor continues from its last position.
        """
        if sensors is None:
            sensors = AuxiliarySensors.unavailable()
        if self._first_floor is None:
            self._first_floor = floor

        altitude = self._altitude(sensors)
        self._check_floor_change(floor, altitude)
        z = self._vertical_offset(floor, altitude)

        track = self._tracks.get(floor)
        if sensors.has_compass:
            heading = self.config.frame.compass_to_heading(sensors.compass_deg)
        elif track is not None:
            heading = track.heading
        else:
            heading = 0.0

        if track is None:
            xy = np.zeros(2)
        else:
            distance = self._steps(sensors) * self.config.stride_length_m
            xy = pdr_step_update(track.xy, distance, heading, self.config.frame)

        self._tracks[floor] = _FloorTrack(xy=xy, heading=heading, z=z)
        self._last_floor = floor
        if altitude is not None:
            self._last_altitude = altitude

        return (float(xy[0]), float(xy[1]), float(z))
