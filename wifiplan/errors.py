"""
Error taxonomy and boundary result type.

Capture and analysis failures are local and recoverable: the caller can ask
the operator to recapture, add more points, or retry. Inside the package
they are raised like any other exception; the survey service boundary
captures them into a Result so presentation code receives a typed value.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")
E = TypeVar("E", bound=Exception)


class CaptureError(Exception):
    """Base class for failures while capturing a calibration point."""


class InvalidStateError(CaptureError):
    """Operation not allowed in the session's current lifecycle state."""


class EmptyLabelError(CaptureError):
    """Capture label is empty or whitespace only."""


class SensorUnavailableError(CaptureError):
    """The radio produced no usable signal level."""


class InvalidFloorError(CaptureError):
    """Floor number is not a positive integer."""


class AnalysisError(Exception):
    """Base class for failures while analyzing a session."""


class InsufficientSamplesError(AnalysisError):
    """Fewer calibration points than the optimizer requires."""

    def __init__(self, n_points: int, min_points: int) -> None:
        super().__init__(
            f"Need at least {min_points} calibration points for analysis, "
            f"got {n_points}"
        )
        self.n_points = n_points
        self.min_points = min_points


class DegenerateLayoutError(AnalysisError):
    """All points coincide, so distance weighting carries no information."""


class AnalysisCancelledError(AnalysisError):
    """The grid scan was cancelled before completion."""


@dataclass(frozen=True)
class Result(Generic[T, E]):
    """
    Outcome of a boundary operation: either a value or an error.

    Attributes:
        value: Operation result when successful, else None.
        error: Exception describing the failure, else None.

    Example:
        >>> r = Result.failure(EmptyLabelError("label must not be blank"))
        >>> r.ok
        False
    """

    value: Optional[T] = None
    error: Optional[E] = None

    @classmethod
    def success(cls, value: T) -> "Result[T, E]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: E) -> "Result[T, E]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value
