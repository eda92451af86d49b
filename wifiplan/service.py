"""
Survey service: the boundary between presentation code and the core.

The service owns one CalibrationSession and turns capture and analysis
failures into Result values, so callers never receive uncontrolled
exceptions. Analysis snapshots the session, builds a SpatialLayout and runs
the placement optimizer either inline (analyze) or on a background worker
(analyze_async), which returns a one-shot Future. A CancellationToken can
abort a running scan without touching the session.

Example:
    >>> service = SurveyService()
    >>> service.start()
    >>> service.capture(CaptureRequest("Living Room", 1, RawSignal(-40.0)))
    >>> service.capture(CaptureRequest("Kitchen", 1, RawSignal(-80.0),
    ...                                AuxiliarySensors(compass_deg=90, step_count=5)))
    >>> service.capture(CaptureRequest("Bedroom", 1, RawSignal(-86.0),
    ...                                AuxiliarySensors(compass_deg=90, step_count=5)))
    >>> service.end()
    >>> outcome = service.analyze()
    >>> outcome.ok, outcome.value.weak_labels
    (True, ['Bedroom', 'Kitchen'])
"""

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from wifiplan.calibration.session import CalibrationSession
from wifiplan.calibration.types import CalibrationPoint, LocationType
from wifiplan.errors import AnalysisError, CaptureError, Result
from wifiplan.placement.optimizer import (
    CancellationToken,
    OptimizationResult,
    PlacementConfig,
    PlacementOptimizer,
)
from wifiplan.placement.recommend import ProductLookup, RecommendationSet, recommend_for
from wifiplan.sensors.normalize import NormalizerConfig, normalize_reading
from wifiplan.sensors.types import AuxiliarySensors, RawSignal
from wifiplan.spatial.layout import SpatialLayout, build_layout
from wifiplan.spatial.reckoning import DeadReckoningConfig


@dataclass(frozen=True)
class CaptureRequest:
    """
    One capture as delivered by the presentation layer.

    Attributes:
        label: Place name.
        floor: Positive floor number.
        raw_signal: Raw radio level.
        sensors: Auxiliary sensor snapshot (None = all unavailable).
        location_type: Kind of place.
    """

    label: str
    floor: int
    raw_signal: RawSignal
    sensors: Optional[AuxiliarySensors] = None
    location_type: LocationType = LocationType.ROOM


class SurveyService:
    """
    Capture/analysis facade over one calibration session.

    Args:
        session: Session to drive. Default: a new session using
                 dead_reckoning.
        normalizer: Signal normalization constants.
        dead_reckoning: Dead-reckoning parameters for a new session.
        placement: Optimizer parameters.
        executor: Executor for analyze_async. Default: a private
                  single-worker ThreadPoolExecutor created on first use.
    """

    def __init__(
        self,
        session: Optional[CalibrationSession] = None,
        normalizer: Optional[NormalizerConfig] = None,
        dead_reckoning: Optional[DeadReckoningConfig] = None,
        placement: Optional[PlacementConfig] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self.session = session if session is not None else CalibrationSession(dead_reckoning)
        self.normalizer = normalizer if normalizer is not None else NormalizerConfig()
        self.optimizer = PlacementOptimizer(placement)
        self._executor = executor
        self._owns_executor = executor is None

    def __enter__(self) -> "SurveyService":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()

    def start(self) -> Result[None, CaptureError]:
        try:
            self.session.start()
        except CaptureError as exc:
            return Result.failure(exc)
        return Result.success(None)

    def capture(self, request: CaptureRequest) -> Result[CalibrationPoint, CaptureError]:
        """Normalize the raw signal and append a point to the session."""
        try:
            reading = normalize_reading(request.raw_signal, request.sensors, self.normalizer)
            point = self.session.capture(
                request.label,
                request.floor,
                reading,
                sensors=request.sensors,
                location_type=request.location_type,
            )
        except CaptureError as exc:
            return Result.failure(exc)
        return Result.success(point)

    def end(self) -> Result[None, CaptureError]:
        try:
            self.session.end()
        except CaptureError as exc:
            return Result.failure(exc)
        return Result.success(None)

    def abandon(self) -> Result[None, CaptureError]:
        try:
            self.session.abandon()
        except CaptureError as exc:
            return Result.failure(exc)
        return Result.success(None)

    def layout(self) -> SpatialLayout:
        """Fresh spatial snapshot of the session."""
        return build_layout(self.session.snapshot())

    def _run(
        self,
        layout: SpatialLayout,
        token: Optional[CancellationToken],
    ) -> Result[OptimizationResult, AnalysisError]:
        try:
            result = self.optimizer.optimize(layout, token)
        except AnalysisError as exc:
            return Result.failure(exc)
        return Result.success(result)

    def analyze(
        self,
        token: Optional[CancellationToken] = None,
    ) -> Result[OptimizationResult, AnalysisError]:
        """Run placement analysis on the current session snapshot."""
        return self._run(self.layout(), token)

    def analyze_async(
        self,
        token: Optional[CancellationToken] = None,
    ) -> "Future[Result[OptimizationResult, AnalysisError]]":
        """
        Run placement analysis on a background worker.

        The session is snapshotted on the calling thread, so captures made
        after this call do not affect the running analysis.

        Returns:
            Future resolving to the analysis Result.
        """
        layout = self.layout()
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="wifiplan-analysis"
            )
        return self._executor.submit(self._run, layout, token)

    def recommend(
        self,
        result: OptimizationResult,
        catalog: Optional[ProductLookup] = None,
        in_stock_only: bool = False,
    ) -> RecommendationSet:
        return recommend_for(result, catalog, in_stock_only)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the private analysis worker, if one was created."""
        if self._executor is not None and self._owns_executor:
            self._executor.shutdown(wait=wait)
            self._executor = None
