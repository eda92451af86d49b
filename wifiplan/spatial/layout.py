"""
Relative spatial model of a walk survey.

No absolute indoor coordinates exist, so capture positions come from
dead reckoning (see reckoning.py). Floors are modeled as independent 2D
sheets stacked along z. A SpatialLayout is an immutable per-floor snapshot
of the captures, rebuilt from scratch whenever analysis runs.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Sequence, Tuple

import numpy as np

from wifiplan.calibration.types import CalibrationPoint, Vector2


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box on one floor. Units: meters."""

    min_xy: Vector2
    max_xy: Vector2

    @classmethod
    def from_positions(cls, positions: np.ndarray) -> "BoundingBox":
        """Tight box around positions of shape (N, 2), N >= 1."""
        if positions.ndim != 2 or positions.shape[1] != 2 or len(positions) == 0:
            raise ValueError(
                f"positions must have shape (N, 2) with N >= 1, got {positions.shape}"
            )
        lo = positions.min(axis=0)
        hi = positions.max(axis=0)
        return cls(min_xy=(float(lo[0]), float(lo[1])),
                   max_xy=(float(hi[0]), float(hi[1])))

    @property
    def width(self) -> float:
        return self.max_xy[0] - self.min_xy[0]

    @property
    def height(self) -> float:
        return self.max_xy[1] - self.min_xy[1]

    @property
    def diagonal(self) -> float:
        return float(np.hypot(self.width, self.height))

    @property
    def center(self) -> Vector2:
        return (0.5 * (self.min_xy[0] + self.max_xy[0]),
                0.5 * (self.min_xy[1] + self.max_xy[1]))

    def expanded(self, margin_fraction: float) -> "BoundingBox":
        """Box grown on every side by margin_fraction * diagonal."""
        if margin_fraction < 0:
            raise ValueError(
                f"margin_fraction must be non-negative, got {margin_fraction}"
            )
        m = margin_fraction * self.diagonal
        return BoundingBox(
            min_xy=(self.min_xy[0] - m, self.min_xy[1] - m),
            max_xy=(self.max_xy[0] + m, self.max_xy[1] + m),
        )

    def contains(self, xy: Sequence[float], tol: float = 1e-9) -> bool:
        return (self.min_xy[0] - tol <= xy[0] <= self.max_xy[0] + tol
                and self.min_xy[1] - tol <= xy[1] <= self.max_xy[1] + tol)


@dataclass(frozen=True)
class FloorLayout:
    """
    Snapshot of the captures on one floor.

    Attributes:
        floor: Floor number.
        points: Captures on this floor in capture order.
        positions: Horizontal positions, shape (N, 2), read-only.
        bounding_box: Tight box around positions.
        centroid: Unweighted mean of positions.
    """

    floor: int
    points: Tuple[CalibrationPoint, ...]
    positions: np.ndarray = field(compare=False, repr=False)
    bounding_box: BoundingBox
    centroid: Vector2

    @property
    def n_points(self) -> int:
        return len(self.points)

    @property
    def strengths(self) -> np.ndarray:
        return np.array([p.strength for p in self.points], dtype=float)

    @property
    def weights(self) -> np.ndarray:
        """Placement weights w_i = (1 - strength_i) * confidence_i."""
        return np.array([p.reading.weight for p in self.points], dtype=float)


@dataclass(frozen=True)
class SpatialLayout:
    """
    Per-floor spatial model of a session, derived and never mutated.

    Attributes:
        floors: Mapping floor number -> FloorLayout, in ascending floor order.
        points: All captures in capture order.
    """

    floors: Mapping[int, FloorLayout]
    points: Tuple[CalibrationPoint, ...]

    @property
    def n_points(self) -> int:
        return len(self.points)

    @property
    def floor_numbers(self) -> Tuple[int, ...]:
        return tuple(self.floors.keys())


def build_layout(points: Sequence[CalibrationPoint]) -> SpatialLayout:
    """
    Group captured points by floor into an immutable SpatialLayout.

    Args:
        points: Captures in capture order (e.g. CalibrationSession.snapshot()).

    Returns:
        SpatialLayout with one FloorLayout per floor that has points.
        Duplicate positions are retained.

    Example:
        >>> layout = build_layout(session.snapshot())
        >>> layout.floor_numbers
        (1, 2)
    """
    points = tuple(points)
    by_floor: Dict[int, list] = {}
    for point in points:
        by_floor.setdefault(point.floor, []).append(point)

    floors = {}
    for floor in sorted(by_floor):
        floor_points = tuple(by_floor[floor])
        positions = np.array([p.position[:2] for p in floor_points], dtype=float)
        positions.setflags(write=False)
        centroid = positions.mean(axis=0)
        floors[floor] = FloorLayout(
            floor=floor,
            points=floor_points,
            positions=positions,
            bounding_box=BoundingBox.from_positions(positions),
            centroid=(float(centroid[0]), float(centroid[1])),
        )

    return SpatialLayout(floors=MappingProxyType(floors), points=points)
