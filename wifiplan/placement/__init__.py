"""Access-point placement: grid-search optimizer, coverage, recommendations.

Main components:
    - PlacementOptimizer, PlacementConfig: grid-search placement
    - OptimizationResult, FloorSummary, RecommendedPosition: results
    - CancellationToken: cooperative cancellation of a scan
    - analyze_coverage, signal_tier, suggest_extenders, predict_signal:
      coverage helpers
    - recommend, Catalog: remediation categories and products
"""

from .coverage import (
    CoverageAnalysis,
    ExtenderKind,
    ExtenderSuggestion,
    PredictedSignal,
    SignalPredictionMap,
    SignalTier,
    analyze_coverage,
    predict_signal,
    signal_tier,
    suggest_extenders,
)
from .optimizer import (
    CancellationToken,
    FloorSummary,
    OptimizationResult,
    PlacementConfig,
    PlacementOptimizer,
    RecommendedPosition,
)
from .recommend import (
    Catalog,
    Product,
    RecommendationSet,
    RemediationCategory,
    RemediationEntry,
    Severity,
    recommend,
    recommend_for,
)

__all__ = [
    # Coverage
    "CoverageAnalysis",
    "ExtenderKind",
    "ExtenderSuggestion",
    "PredictedSignal",
    "SignalPredictionMap",
    "SignalTier",
    "analyze_coverage",
    "predict_signal",
    "signal_tier",
    "suggest_extenders",
    # Optimizer
    "CancellationToken",
    "FloorSummary",
    "OptimizationResult",
    "PlacementConfig",
    "PlacementOptimizer",
    "RecommendedPosition",
    # Recommendations
    "Catalog",
    "Product",
    "RecommendationSet",
    "RemediationCategory",
    "RemediationEntry",
    "Severity",
    "recommend",
    "recommend_for",
]
