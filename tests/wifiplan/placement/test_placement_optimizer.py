"""Unit and scenario tests for wifiplan.placement.optimizer.

Validates the grid-search placement: scoring, tie-breaking, determinism,
confidence, degenerate layouts, multi-floor selection and cancellation.
"""

import warnings

import numpy as np
import pytest

from wifiplan.errors import (
    AnalysisCancelledError,
    AnalysisError,
    DegenerateLayoutError,
    InsufficientSamplesError,
)
from wifiplan.placement import (
    CancellationToken,
    PlacementConfig,
    PlacementOptimizer,
    RecommendationSet,
    recommend_for,
)
from wifiplan.placement.optimizer import _pick_best
from wifiplan.spatial import build_layout


@pytest.fixture
def optimizer():
    return PlacementOptimizer()


@pytest.fixture
def line_points(make_point):
    """Three captures spread along a line, strong at one end."""
    return [
        make_point("Living Room", strength=0.9, xy=(0.0, 0.0)),
        make_point("Kitchen", strength=0.3, xy=(3.5, 0.0)),
        make_point("Bedroom", strength=0.2, xy=(7.0, 0.0)),
    ]


@pytest.fixture
def square_points(make_point):
    """Four captures on the corners of a 4 m square."""
    def _square(strength=0.5):
        return [
            make_point(f"Corner {i}", strength=strength, xy=xy)
            for i, xy in enumerate([(0.0, 0.0), (4.0, 0.0), (0.0, 4.0), (4.0, 4.0)])
        ]
    return _square


class TestPlacementConfig:
    """Test optimizer parameter validation."""

    def test_defaults(self):
        config = PlacementConfig()

        assert config.grid_resolution == 41
        assert config.weak_threshold == 0.4
        assert config.min_points == 3

    def test_presets(self):
        assert PlacementConfig.coarse().grid_resolution == 21
        assert PlacementConfig.fine().grid_resolution == 81

    @pytest.mark.parametrize("kwargs, match", [
        ({"grid_resolution": 1}, "grid_resolution"),
        ({"margin_fraction": -0.1}, "margin_fraction"),
        ({"weak_threshold": 1.5}, "weak_threshold"),
        ({"min_points": 0}, "min_points"),
        ({"saturation_count": 0}, "saturation_count"),
        ({"tie_tolerance": -1.0}, "tie_tolerance"),
        ({"chunk_size": 0}, "chunk_size"),
    ])
    def test_invalid(self, kwargs, match):
        with pytest.raises(ValueError, match=match):
            PlacementConfig(**kwargs)


class TestScenarios:
    """Scenario-level placement behavior."""

    def test_weak_cluster_attracts_recommendation(self, optimizer, line_points):
        result = optimizer.optimize(build_layout(line_points))
        pos = result.recommended_position

        assert result.weak_labels == ["Bedroom", "Kitchen"]
        assert pos.floor == 1
        # Optimum is flat between Kitchen and Bedroom; never towards Living Room
        assert 3.5 - 1e-6 <= pos.x <= 7.0 + 1e-6
        assert abs(pos.y) < 1e-6
        assert result.average_signal == pytest.approx(1.4 / 3.0)

    def test_strong_coverage_needs_nothing(self, optimizer, make_point):
        points = [
            make_point("A", strength=0.85, xy=(0.0, 0.0)),
            make_point("B", strength=0.9, xy=(5.0, 0.0)),
            make_point("C", strength=0.95, xy=(0.0, 5.0)),
        ]
        result = optimizer.optimize(build_layout(points))

        assert result.weak_areas == ()
        assert recommend_for(result) == RecommendationSet()
        assert recommend_for(result).categories == ()

    def test_coincident_points_fall_back(self, optimizer, make_point):
        points = [make_point(f"P{i}", strength=0.2, xy=(1.0, 2.0)) for i in range(3)]

        with pytest.warns(RuntimeWarning, match="coincide"):
            result = optimizer.optimize(build_layout(points))

        assert result.degenerate
        assert result.confidence_score == 0.0
        assert result.recommended_position.xy == (1.0, 2.0)

    def test_coincident_points_strict(self, make_point):
        points = [make_point(f"P{i}", xy=(1.0, 2.0)) for i in range(3)]
        optimizer = PlacementOptimizer(PlacementConfig(strict_geometry=True))

        with pytest.raises(DegenerateLayoutError):
            optimizer.optimize(build_layout(points))


class TestScoring:
    """Test scoring and tie-breaking."""

    def test_equal_weights_pick_center(self, optimizer, square_points):
        result = optimizer.optimize(build_layout(square_points(0.5)))

        assert result.recommended_position.xy == pytest.approx((2.0, 2.0), abs=1e-6)

    def test_zero_weights_tie_to_centroid(self, optimizer, square_points):
        """All-strong captures give a flat score; the centroid breaks the tie."""
        result = optimizer.optimize(build_layout(square_points(1.0)))

        assert result.recommended_position.xy == pytest.approx((2.0, 2.0), abs=1e-6)

    def test_single_weak_point_wins(self, optimizer, make_point):
        points = [
            make_point("Strong 1", strength=1.0, xy=(0.0, 0.0)),
            make_point("Strong 2", strength=1.0, xy=(6.0, 0.0)),
            make_point("Dead Zone", strength=0.0, xy=(6.0, 6.0)),
        ]
        result = optimizer.optimize(build_layout(points))

        assert result.recommended_position.xy == pytest.approx((6.0, 6.0), abs=0.5)

    def test_position_inside_expanded_box(self, optimizer, make_point):
        rng = np.random.default_rng(7)
        points = [
            make_point(f"P{i}", strength=float(s), xy=tuple(xy))
            for i, (s, xy) in enumerate(zip(rng.uniform(0, 1, 12), rng.uniform(-5, 5, (12, 2))))
        ]
        layout = build_layout(points)
        result = optimizer.optimize(layout)
        box = layout.floors[1].bounding_box.expanded(optimizer.config.margin_fraction)

        assert box.contains(result.recommended_position.xy)

    def test_terms_within_unit_interval(self, optimizer, line_points):
        fl = build_layout(line_points).floors[1]
        xs, ys, scores = optimizer.score_map(fl)

        assert scores.shape == (len(ys), len(xs)) == (41, 41)
        assert np.all(scores >= -1e-12)
        assert np.all(scores <= fl.weights.sum() + 1e-12)

    def test_chunking_does_not_change_result(self, line_points):
        layout = build_layout(line_points)
        a = PlacementOptimizer(PlacementConfig(chunk_size=7)).optimize(layout)
        b = PlacementOptimizer(PlacementConfig(chunk_size=10_000)).optimize(layout)

        assert a.recommended_position == b.recommended_position
        assert a.per_floor_summary[0].best_score == pytest.approx(
            b.per_floor_summary[0].best_score
        )

    def test_low_confidence_captures_matter_less(self, optimizer, make_point):
        points = [
            make_point("Trusted", strength=0.1, xy=(0.0, 0.0), confidence=1.0),
            make_point("Middle", strength=0.9, xy=(5.0, 0.0)),
            make_point("Guess", strength=0.1, xy=(10.0, 0.0), confidence=0.125),
        ]
        result = optimizer.optimize(build_layout(points))

        assert result.recommended_position.x < 5.0


class TestResultProperties:
    """Test invariants of the optimization result."""

    def test_deterministic(self, optimizer, line_points):
        layout = build_layout(line_points)

        assert optimizer.optimize(layout) == optimizer.optimize(layout)

    def test_layout_not_modified(self, optimizer, line_points):
        layout = build_layout(line_points)
        before = layout.floors[1].positions.copy()
        optimizer.optimize(layout)

        np.testing.assert_array_equal(layout.floors[1].positions, before)
        assert layout.points == tuple(line_points)

    def test_confidence_grows_with_samples(self, optimizer, make_point):
        points = [make_point(f"P{i}", strength=0.5, xy=(float(i), 0.0)) for i in range(12)]
        scores = [
            optimizer.optimize(build_layout(points[:n])).confidence_score
            for n in range(3, 13)
        ]

        assert scores == sorted(scores)
        assert scores[0] == pytest.approx(0.3)
        assert scores[-1] == 1.0

    def test_confidence_scaled_by_readings(self, optimizer, make_point):
        points = [make_point(f"P{i}", xy=(float(i), 0.0), confidence=0.5) for i in range(10)]
        result = optimizer.optimize(build_layout(points))

        assert result.confidence_score == pytest.approx(0.5)

    def test_weak_areas_sorted_stably(self, optimizer, make_point):
        points = [
            make_point("A", strength=0.3, xy=(0.0, 0.0)),
            make_point("B", strength=0.1, xy=(1.0, 0.0)),
            make_point("C", strength=0.3, xy=(2.0, 0.0)),
            make_point("D", strength=0.39, xy=(3.0, 0.0)),
            make_point("E", strength=0.4, xy=(4.0, 0.0)),
        ]
        result = optimizer.optimize(build_layout(points))

        assert result.weak_labels == ["B", "A", "C", "D"]
        assert result.coverage.weak_count == 4

    def test_custom_weak_threshold(self, make_point, line_points):
        optimizer = PlacementOptimizer(PlacementConfig(weak_threshold=0.25))
        result = optimizer.optimize(build_layout(line_points))

        assert result.weak_labels == ["Bedroom"]

    def test_two_points_when_allowed(self, make_point):
        points = [
            make_point("A", strength=0.9, xy=(0.0, 0.0)),
            make_point("B", strength=0.2, xy=(2.0, 0.0)),
        ]
        optimizer = PlacementOptimizer(PlacementConfig(min_points=2))
        result = optimizer.optimize(build_layout(points))

        assert result.recommended_position.x == pytest.approx(2.0, abs=0.1)


class TestSignalPrediction:
    """Test the predicted-signal map attached to results."""

    def test_one_prediction_per_capture(self, optimizer, line_points):
        result = optimizer.optimize(build_layout(line_points))
        pos = result.recommended_position

        preds = result.signal_prediction.predictions
        assert [p.label for p in preds] == ["Living Room", "Kitchen", "Bedroom"]
        for pred, point in zip(preds, line_points):
            d = np.hypot(point.position[0] - pos.x, point.position[1] - pos.y)
            assert pred.predicted == pytest.approx(max(0.1, 1.0 - d / 50.0))
            assert pred.measured == point.strength

    def test_access_point_height_from_chosen_floor(self, optimizer, make_point):
        points = [
            make_point("Living", floor=1, strength=0.9, xy=(0.0, 0.0)),
            make_point("Kitchen", floor=1, strength=0.8, xy=(3.0, 0.0)),
            make_point("Bed 1", floor=2, strength=0.1, xy=(0.0, 0.0), z=3.0),
            make_point("Bed 2", floor=2, strength=0.2, xy=(0.0, 4.0), z=3.0),
        ]
        result = optimizer.optimize(build_layout(points))
        pos = result.recommended_position
        living = result.signal_prediction.for_floor(1)[0]

        d = np.linalg.norm([pos.x, pos.y, 3.0])
        assert pos.floor == 2
        assert living.predicted == pytest.approx(1.0 - d / 50.0)

    def test_non_finite_scores_never_win(self):
        scores = np.array([np.nan, 0.5, 0.5])
        distances = np.array([0.0, 2.0, 1.0])

        assert _pick_best(scores, distances, 1e-9) == 2
        assert _pick_best(np.full(3, np.nan), np.full(3, np.nan), 1e-9) == 0


class TestMultiFloor:
    """Test floor selection and per-floor summaries."""

    def test_weak_floor_selected(self, optimizer, make_point):
        points = [
            make_point("Living", floor=1, strength=0.9, xy=(0.0, 0.0)),
            make_point("Kitchen", floor=1, strength=0.8, xy=(3.0, 0.0)),
            make_point("Bed 1", floor=2, strength=0.1, xy=(0.0, 0.0)),
            make_point("Bed 2", floor=2, strength=0.2, xy=(0.0, 4.0)),
        ]
        result = optimizer.optimize(build_layout(points))

        assert result.recommended_position.floor == 2
        assert [s.floor for s in result.per_floor_summary] == [1, 2]
        assert result.summary_for(2).weak_count == 2
        assert result.summary_for(1).weak_count == 0
        assert result.summary_for(1).average_signal == pytest.approx(0.85)

    def test_identical_floors_prefer_lowest(self, optimizer, make_point):
        points = []
        for floor in (3, 1):
            points += [
                make_point(f"F{floor} A", floor=floor, strength=0.2, xy=(0.0, 0.0)),
                make_point(f"F{floor} B", floor=floor, strength=0.4, xy=(5.0, 0.0)),
            ]
        result = optimizer.optimize(build_layout(points))

        assert result.recommended_position.floor == 1

    def test_single_point_floor_not_degenerate(self, optimizer, make_point):
        points = [
            make_point("A", floor=1, strength=0.5, xy=(0.0, 0.0)),
            make_point("B", floor=1, strength=0.5, xy=(4.0, 0.0)),
            make_point("Attic", floor=3, strength=0.9, xy=(0.0, 0.0)),
        ]
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            result = optimizer.optimize(build_layout(points))

        assert not result.degenerate
        assert result.summary_for(3).max_distance == 0.0
        assert result.summary_for(3).best_position == (0.0, 0.0)

    def test_unknown_floor_summary(self, optimizer, line_points):
        result = optimizer.optimize(build_layout(line_points))

        with pytest.raises(KeyError):
            result.summary_for(9)


class TestFailures:
    """Test analysis failures."""

    def test_insufficient_samples(self, optimizer, make_point):
        points = [make_point("A"), make_point("B", xy=(1.0, 0.0))]

        with pytest.raises(InsufficientSamplesError) as excinfo:
            optimizer.optimize(build_layout(points))
        assert excinfo.value.n_points == 2
        assert excinfo.value.min_points == 3

    def test_empty_layout(self, optimizer):
        with pytest.raises(InsufficientSamplesError):
            optimizer.optimize(build_layout([]))

    def test_cancelled_token(self, optimizer, line_points):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(AnalysisCancelledError):
            optimizer.optimize(build_layout(line_points), token)

    def test_cancellation_is_analysis_error(self):
        token = CancellationToken()
        token.cancel()

        assert token.cancelled
        with pytest.raises(AnalysisError):
            token.raise_if_cancelled()

    def test_uncancelled_token_runs(self, optimizer, line_points):
        token = CancellationToken()
        result = optimizer.optimize(build_layout(line_points), token)

        assert not token.cancelled
        assert result.recommended_position.floor == 1
