"""
Coverage summaries and per-point remediation hints.

These helpers describe how well the surveyed space is served today:
    - analyze_coverage: share of captures with good signal
    - signal_tier: coarse quality class of one reading, with advice
    - suggest_extenders: one extender suggestion per weak capture
    - predict_signal: expected strength at each capture for a proposed
      access point
"""

import enum
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from wifiplan.calibration.types import CalibrationPoint, LocationType, Vector3

# Readings at or above this strength count as well covered
WELL_COVERED_THRESHOLD = 0.7


@dataclass(frozen=True)
class CoverageAnalysis:
    """
    Coverage statistics of a survey.

    Attributes:
        total_points: Number of captures.
        well_covered: Captures with strength >= WELL_COVERED_THRESHOLD.
        weak_count: Captures below the weak threshold.
        coverage_percentage: 100 * well_covered / total_points (0 if empty).
    """

    total_points: int
    well_covered: int
    weak_count: int
    coverage_percentage: float


def analyze_coverage(
    points: Sequence[CalibrationPoint],
    weak_threshold: float = 0.4,
) -> CoverageAnalysis:
    """
    Summarize how many captures are well served and how many are weak.

    Example:
        >>> analyze_coverage(points).coverage_percentage
        33.33...
    """
    total = len(points)
    well = sum(1 for p in points if p.strength >= WELL_COVERED_THRESHOLD)
    weak = sum(1 for p in points if p.strength < weak_threshold)
    percentage = 100.0 * well / total if total else 0.0
    return CoverageAnalysis(
        total_points=total,
        well_covered=well,
        weak_count=weak,
        coverage_percentage=percentage,
    )


class SignalTier(enum.Enum):
    """Coarse quality class of a normalized strength."""

    POOR = "poor"
    MODERATE = "moderate"
    GOOD = "good"
    EXCELLENT = "excellent"

    @property
    def advice(self) -> str:
        if self is SignalTier.POOR:
            return "Poor signal - consider a WiFi extender"
        if self is SignalTier.MODERATE:
            return "Moderate signal - may need a signal boost"
        if self is SignalTier.GOOD:
            return "Good signal strength"
        return "Excellent signal strength"


def signal_tier(strength: float) -> SignalTier:
    """Classify strength: <0.3 poor, <0.6 moderate, <0.8 good, else excellent."""
    if strength < 0.3:
        return SignalTier.POOR
    if strength < 0.6:
        return SignalTier.MODERATE
    if strength < 0.8:
        return SignalTier.GOOD
    return SignalTier.EXCELLENT


class ExtenderKind(enum.Enum):
    ROOM_EXTENDER = "Room WiFi Extender"
    HALLWAY_EXTENDER = "Hallway WiFi Extender"


@dataclass(frozen=True)
class ExtenderSuggestion:
    """Where to add an extender, and why."""

    label: str
    floor: int
    kind: ExtenderKind
    reason: str


def suggest_extenders(weak_areas: Sequence[CalibrationPoint]) -> Tuple[ExtenderSuggestion, ...]:
    """
    One extender suggestion per weak capture, in the given order.

    Hallway captures get a hallway extender; everything else a room
    extender.
    """
    suggestions = []
    for point in weak_areas:
        if point.location_type is LocationType.HALLWAY:
            kind = ExtenderKind.HALLWAY_EXTENDER
        else:
            kind = ExtenderKind.ROOM_EXTENDER
        suggestions.append(
            ExtenderSuggestion(
                label=point.label,
                floor=point.floor,
                kind=kind,
                reason=f"Signal strength only {int(round(point.strength * 100))}% "
                       f"at {point.label}",
            )
        )
    return tuple(suggestions)


# Linear falloff of predicted signal: 1 at the access point, 0 at this range.
PREDICTION_RANGE_M = 50.0
# Predictions never drop below this strength.
MIN_PREDICTED_SIGNAL = 0.1


@dataclass(frozen=True)
class PredictedSignal:
    """
    Predicted strength at one capture for a proposed access point.

    Attributes:
        label: Capture label.
        floor: Capture floor.
        position: Capture position snapped to the map resolution. Units: m.
        measured: Strength measured during the survey.
        predicted: Strength expected with the access point in place.
    """

    label: str
    floor: int
    position: Vector3
    measured: float
    predicted: float

    @property
    def gain(self) -> float:
        return self.predicted - self.measured


@dataclass(frozen=True)
class SignalPredictionMap:
    """
    Predicted strength at every capture, in capture order.

    Attributes:
        predictions: One PredictedSignal per capture.
        resolution_m: Grid step the stored positions are snapped to.
    """

    predictions: Tuple[PredictedSignal, ...]
    resolution_m: float

    def __len__(self) -> int:
        return len(self.predictions)

    def for_floor(self, floor: int) -> Tuple[PredictedSignal, ...]:
        return tuple(p for p in self.predictions if p.floor == floor)

    @property
    def improved_labels(self) -> List[str]:
        """Labels of captures where the prediction beats the measurement."""
        return [p.label for p in self.predictions if p.gain > 0]


def predict_signal(
    points: Sequence[CalibrationPoint],
    access_point: Vector3,
    range_m: float = PREDICTION_RANGE_M,
    min_signal: float = MIN_PREDICTED_SIGNAL,
    resolution_m: float = 1.0,
) -> SignalPredictionMap:
    """
    Predict the strength at each capture from its distance to an access point.

        s_pred = max(min_signal, 1 - d / range_m)

    Args:
        points: Captures to predict for.
        access_point: Proposed (x, y, z) access-point position. Units: m.
        range_m: Distance at which the linear falloff reaches 0. Units: m.
        min_signal: Lower bound of every prediction.
        resolution_m: Grid step the reported positions are snapped to.
                      Distances use the unsnapped positions.

    Returns:
        SignalPredictionMap in capture order.

    Example:
        >>> predict_signal(points, (0.0, 0.0, 0.0)).predictions[0].predicted
        1.0
    """
    if range_m <= 0:
        raise ValueError(f"range_m must be positive, got {range_m}")
    if resolution_m <= 0:
        raise ValueError(f"resolution_m must be positive, got {resolution_m}")

    ap = np.asarray(access_point, dtype=float)
    predictions = []
    for point in points:
        position = np.asarray(point.position, dtype=float)
        distance = float(np.linalg.norm(position - ap))
        snapped = np.round(position / resolution_m) * resolution_m
        predictions.append(
            PredictedSignal(
                label=point.label,
                floor=point.floor,
                position=(float(snapped[0]), float(snapped[1]), float(snapped[2])),
                measured=point.strength,
                predicted=max(min_signal, 1.0 - distance / range_m),
            )
        )
    return SignalPredictionMap(predictions=tuple(predictions), resolution_m=resolution_m)
