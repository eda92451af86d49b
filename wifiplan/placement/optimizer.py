"""
Access-point placement by grid search over the surveyed floors.

For every floor, a uniform grid of candidate positions is laid over the
floor's bounding box, expanded by a margin so that candidates may sit
slightly outside the walked envelope. Each candidate c is scored against
the captures p_i of its floor:

    score(c) = sum_i w_i * (1 - ||c - p_i|| / D)
    w_i      = (1 - strength_i) * confidence_i

where D is the diagonal of the expanded box, so every term lies in [0, 1].
Weak, trustworthy captures pull the recommendation towards them; strong or
low-confidence captures barely matter.

Ties (scores within tie_tolerance) are broken by distance to the floor's
unweighted centroid, then by lowest floor number, then by grid order, so
repeated analyses of the same layout are identical.

The scan is read-only over an immutable SpatialLayout and is evaluated in
chunks of candidates; a CancellationToken is checked between chunks.
"""

import threading
import warnings
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from wifiplan.calibration.types import CalibrationPoint, Vector2
from wifiplan.errors import (
    AnalysisCancelledError,
    DegenerateLayoutError,
    InsufficientSamplesError,
)
from wifiplan.placement.coverage import (
    CoverageAnalysis,
    SignalPredictionMap,
    analyze_coverage,
    predict_signal,
)
from wifiplan.spatial.layout import FloorLayout, SpatialLayout

# Extent below which a floor is treated as a single position. Units: m.
EPSILON_EXTENT = 1e-9


class CancellationToken:
    """
    Cooperative cancellation flag shared between a caller and a scan.

    Example:
        >>> token = CancellationToken()
        >>> token.cancel()
        >>> token.cancelled
        True
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise AnalysisCancelledError("Placement analysis was cancelled")


@dataclass(frozen=True)
class PlacementConfig:
    """
    Parameters of the placement optimizer.

    Attributes:
        grid_resolution: Candidates per axis on each floor (odd values keep
                         the box center on the grid). Default: 41.
        margin_fraction: Box expansion per side, as a fraction of the box
                         diagonal. Default: 0.2.
        weak_threshold: Captures with strength below this are weak areas.
                        Default: 0.4.
        min_points: Minimum number of captures for analysis. Default: 3.
        saturation_count: Sample count at which the sample-size factor of
                          the confidence score reaches 1. Default: 10.
        tie_tolerance: Scores closer than this are treated as equal.
        chunk_size: Candidates scored per vectorized chunk; cancellation is
                    checked between chunks.
        strict_geometry: Raise DegenerateLayoutError instead of falling
                         back when all captures coincide.
    """

    grid_resolution: int = 41
    margin_fraction: float = 0.2
    weak_threshold: float = 0.4
    min_points: int = 3
    saturation_count: int = 10
    tie_tolerance: float = 1e-9
    chunk_size: int = 512
    strict_geometry: bool = False

    def __post_init__(self) -> None:
        if self.grid_resolution < 2:
            raise ValueError(
                f"grid_resolution must be >= 2, got {self.grid_resolution}"
            )
        if self.margin_fraction < 0:
            raise ValueError(
                f"margin_fraction must be non-negative, got {self.margin_fraction}"
            )
        if not 0.0 <= self.weak_threshold <= 1.0:
            raise ValueError(
                f"weak_threshold must be in [0, 1], got {self.weak_threshold}"
            )
        if self.min_points < 1:
            raise ValueError(f"min_points must be >= 1, got {self.min_points}")
        if self.saturation_count < 1:
            raise ValueError(
                f"saturation_count must be >= 1, got {self.saturation_count}"
            )
        if self.tie_tolerance < 0:
            raise ValueError(
                f"tie_tolerance must be non-negative, got {self.tie_tolerance}"
            )
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {self.chunk_size}")

    @classmethod
    def coarse(cls) -> "PlacementConfig":
        """Fast preset for previews (21 x 21 grid)."""
        return cls(grid_resolution=21)

    @classmethod
    def fine(cls) -> "PlacementConfig":
        """Dense preset for final recommendations (81 x 81 grid)."""
        return cls(grid_resolution=81)


@dataclass(frozen=True)
class RecommendedPosition:
    """Proposed access-point position: floor plus floor-local (x, y) in meters."""

    floor: int
    x: float
    y: float

    @property
    def xy(self) -> Vector2:
        return (self.x, self.y)


@dataclass(frozen=True)
class FloorSummary:
    """
    Per-floor outcome of the grid scan.

    Attributes:
        floor: Floor number.
        point_count: Captures on this floor.
        average_signal: Mean strength on this floor.
        weak_count: Weak captures on this floor.
        best_position: Best candidate on this floor.
        best_score: Score of best_position.
        max_distance: Normalizing distance D of this floor (0 if the floor
                      collapses to a single position).
    """

    floor: int
    point_count: int
    average_signal: float
    weak_count: int
    best_position: Vector2
    best_score: float
    max_distance: float


@dataclass(frozen=True)
class OptimizationResult:
    """
    Outcome of one placement analysis.

    Attributes:
        recommended_position: Proposed access-point position.
        confidence_score: min(1, n / saturation_count) * mean(confidence),
                          forced to 0 for degenerate layouts. Advisory only.
        average_signal: Mean strength over all captures.
        weak_areas: Captures below the weak threshold, worst first.
        per_floor_summary: One FloorSummary per floor, ascending floor order.
        coverage: Coverage statistics of the captures.
        signal_prediction: Predicted strength at each capture with the
                           access point at recommended_position, mounted
                           at the mean height of that floor's captures.
        degenerate: True when all captures coincide on every floor.
    """

    recommended_position: RecommendedPosition
    confidence_score: float
    average_signal: float
    weak_areas: Tuple[CalibrationPoint, ...]
    per_floor_summary: Tuple[FloorSummary, ...]
    coverage: CoverageAnalysis
    signal_prediction: SignalPredictionMap
    degenerate: bool = False

    @property
    def weak_labels(self) -> List[str]:
        return [p.label for p in self.weak_areas]

    def summary_for(self, floor: int) -> FloorSummary:
        for summary in self.per_floor_summary:
            if summary.floor == floor:
                return summary
        raise KeyError(f"No summary for floor {floor}")


@dataclass(frozen=True)
class _FloorBest:
    floor: int
    xy: Vector2
    score: float
    centroid_distance: float
    max_distance: float


def _pick_best(
    scores: np.ndarray,
    centroid_distances: np.ndarray,
    tol: float,
) -> int:
    """
    Index of the best candidate: max score, then nearest centroid, then lowest index.

    Non-finite scores never win and non-finite distances lose every tie; if
    nothing is finite the first candidate is returned.
    """
    scores = np.where(np.isfinite(scores), scores, -np.inf)
    centroid_distances = np.where(
        np.isfinite(centroid_distances), centroid_distances, np.inf
    )
    tied = np.flatnonzero(scores >= scores.max() - tol)
    tied_dist = centroid_distances[tied]
    closest = tied[tied_dist <= tied_dist.min() + tol]
    return int(closest[0])


class PlacementOptimizer:
    """
    Grid-search access-point placement.

    Args:
        config: Optimizer parameters. Default: PlacementConfig().

    Example:
        >>> optimizer = PlacementOptimizer(PlacementConfig.coarse())
        >>> result = optimizer.optimize(build_layout(session.snapshot()))
        >>> result.recommended_position.floor
        1
    """

    def __init__(self, config: Optional[PlacementConfig] = None) -> None:
        self.config = config if config is not None else PlacementConfig()

    def candidate_grid(self, floor_layout: FloorLayout) -> Tuple[np.ndarray, np.ndarray, float]:
        """
        Candidate positions of one floor.

        Returns:
            Tuple of (xs, ys, max_distance):
                xs: Grid x coordinates, shape (R,). Shape (1,) for a floor
                    without extent.
                ys: Grid y coordinates, same shape as xs.
                max_distance: Diagonal of the expanded box (0 if no extent).
        """
        box = floor_layout.bounding_box
        if box.diagonal <= EPSILON_EXTENT:
            cx, cy = floor_layout.centroid
            return np.array([cx]), np.array([cy]), 0.0

        expanded = box.expanded(self.config.margin_fraction)
        R = self.config.grid_resolution
        xs = np.linspace(expanded.min_xy[0], expanded.max_xy[0], R)
        ys = np.linspace(expanded.min_xy[1], expanded.max_xy[1], R)
        return xs, ys, expanded.diagonal

    def score_candidates(
        self,
        candidates: np.ndarray,
        floor_layout: FloorLayout,
        max_distance: float,
        token: Optional[CancellationToken] = None,
    ) -> np.ndarray:
        """
        Score candidate positions against the captures of one floor.

        Args:
            candidates: Candidate positions, shape (M, 2).
            floor_layout: Captures of the floor.
            max_distance: Normalizing distance D. 0 means every capture
                          coincides with every candidate (all terms 1).
            token: Optional cancellation token, checked per chunk.

        Returns:
            Scores, shape (M,).
        """
        weights = floor_layout.weights
        positions = floor_layout.positions
        scores = np.empty(len(candidates))
        chunk = self.config.chunk_size

        for start in range(0, len(candidates), chunk):
            if token is not None:
                token.raise_if_cancelled()
            block = candidates[start:start + chunk]
            if max_distance > 0:
                d = np.linalg.norm(block[:, None, :] - positions[None, :, :], axis=2)
                terms = 1.0 - d / max_distance
            else:
                terms = np.ones((len(block), len(positions)))
            scores[start:start + chunk] = terms @ weights

        return scores

    def score_map(
        self,
        floor_layout: FloorLayout,
        token: Optional[CancellationToken] = None,
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Scores of the whole candidate grid of one floor.

        Returns:
            Tuple of (xs, ys, scores) with scores of shape (len(ys), len(xs)),
            row index = y, suitable for imshow(origin="lower").
        """
        xs, ys, max_distance = self.candidate_grid(floor_layout)
        gx, gy = np.meshgrid(xs, ys)
        candidates = np.column_stack([gx.ravel(), gy.ravel()])
        scores = self.score_candidates(candidates, floor_layout, max_distance, token)
        return xs, ys, scores.reshape(len(ys), len(xs))

    def _scan_floor(
        self,
        floor_layout: FloorLayout,
        token: Optional[CancellationToken],
    ) -> _FloorBest:
        xs, ys, max_distance = self.candidate_grid(floor_layout)
        gx, gy = np.meshgrid(xs, ys)
        candidates = np.column_stack([gx.ravel(), gy.ravel()])
        flat_scores = self.score_candidates(candidates, floor_layout, max_distance, token)

        centroid = np.array(floor_layout.centroid)
        centroid_distances = np.linalg.norm(candidates - centroid, axis=1)
        best = _pick_best(flat_scores, centroid_distances, self.config.tie_tolerance)

        return _FloorBest(
            floor=floor_layout.floor,
            xy=(float(candidates[best, 0]), float(candidates[best, 1])),
            score=float(flat_scores[best]),
            centroid_distance=float(centroid_distances[best]),
            max_distance=max_distance,
        )

    def _pick_floor(self, bests: List[_FloorBest]) -> _FloorBest:
        tol = self.config.tie_tolerance
        scores = [b.score if np.isfinite(b.score) else -np.inf for b in bests]
        top = max(scores)
        tied = [b for b, s in zip(bests, scores) if s >= top - tol]
        dists = [d if np.isfinite(d) else np.inf for d in (b.centroid_distance for b in tied)]
        nearest = min(dists)
        tied = [b for b, d in zip(tied, dists) if d <= nearest + tol]
        return min(tied, key=lambda b: b.floor)

    def optimize(
        self,
        layout: SpatialLayout,
        token: Optional[CancellationToken] = None,
    ) -> OptimizationResult:
        """
        Recommend an access-point position for a surveyed layout.

        Args:
            layout: Immutable spatial snapshot of a session.
            token: Optional cancellation token.

        Returns:
            OptimizationResult, computed from scratch.

        Raises:
            InsufficientSamplesError: Fewer than config.min_points captures.
            DegenerateLayoutError: All captures coincide and
                                   config.strict_geometry is set.
            AnalysisCancelledError: The token was cancelled mid-scan.

        Notes:
            - Without strict_geometry, a degenerate layout yields the shared
              position with confidence_score 0 and a RuntimeWarning.
            - The layout is never modified.
        """
        cfg = self.config
        points = layout.points
        n = len(points)
        if n < cfg.min_points:
            raise InsufficientSamplesError(n, cfg.min_points)

        degenerate = all(
            fl.bounding_box.diagonal <= EPSILON_EXTENT for fl in layout.floors.values()
        )
        if degenerate:
            msg = (
                f"All {n} captures coincide on each floor; distance weighting "
                "carries no information. Walk between captures and retry."
            )
            if cfg.strict_geometry:
                raise DegenerateLayoutError(msg)
            warnings.warn(msg, RuntimeWarning)

        bests = [self._scan_floor(fl, token) for fl in layout.floors.values()]
        chosen = self._pick_floor(bests)

        strengths = np.array([p.strength for p in points])
        confidences = np.array([p.confidence for p in points])
        if degenerate:
            confidence_score = 0.0
        else:
            confidence_score = min(1.0, n / cfg.saturation_count) * float(np.mean(confidences))

        weak_areas = tuple(
            sorted(
                (p for p in points if p.strength < cfg.weak_threshold),
                key=lambda p: p.strength,
            )
        )

        summaries = []
        for best, fl in zip(bests, layout.floors.values()):
            summaries.append(
                FloorSummary(
                    floor=fl.floor,
                    point_count=fl.n_points,
                    average_signal=float(np.mean(fl.strengths)),
                    weak_count=int(np.sum(fl.strengths < cfg.weak_threshold)),
                    best_position=best.xy,
                    best_score=best.score,
                    max_distance=best.max_distance,
                )
            )

        chosen_floor = layout.floors[chosen.floor]
        ap_z = float(np.mean([p.position[2] for p in chosen_floor.points]))
        access_point = (chosen.xy[0], chosen.xy[1], ap_z)

        return OptimizationResult(
            recommended_position=RecommendedPosition(
                floor=chosen.floor, x=chosen.xy[0], y=chosen.xy[1]
            ),
            confidence_score=confidence_score,
            average_signal=float(np.mean(strengths)),
            weak_areas=weak_areas,
            per_floor_summary=tuple(summaries),
            coverage=analyze_coverage(points, cfg.weak_threshold),
            signal_prediction=predict_signal(points, access_point),
            degenerate=degenerate,
        )
