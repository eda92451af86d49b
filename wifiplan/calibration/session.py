"""
Calibration session: append-only log of captures with a lifecycle.

State machine:
    NOT_STARTED --start()--> ACTIVE --end()--> ENDED
    NOT_STARTED/ACTIVE --abandon()--> ENDED

Points are never removed or edited in place; a mistaken capture is
corrected by capturing again or by restarting with a new session. This
keeps the dead-reckoning chain consistent, since every position depends
on the previous capture on the same floor.

All state changes go through one re-entrant lock, so concurrent callers
are serialized (single writer). Readers take an immutable snapshot.
"""

import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from wifiplan.calibration.types import CalibrationPoint, LocationType, SessionState
from wifiplan.errors import EmptyLabelError, InvalidFloorError, InvalidStateError
from wifiplan.sensors.types import AuxiliarySensors, SignalReading
from wifiplan.spatial.reckoning import DeadReckoner, DeadReckoningConfig


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CalibrationSession:
    """
    Ordered, append-only log of CalibrationPoints owned by one operator.

    Args:
        dead_reckoning: Configuration of the incremental position builder.
        clock: Timestamp source. Default: timezone-aware UTC now.
        session_id: Identifier. Default: random UUID.

    Example:
        >>> session = CalibrationSession()
        >>> session.start()
        >>> p = session.capture("Kitchen", 1, SignalReading(0.3))
        >>> p.position
        (0.0, 0.0, 0.0)
        >>> session.end()
    """

    def __init__(
        self,
        dead_reckoning: Optional[DeadReckoningConfig] = None,
        clock: Callable[[], datetime] = _utcnow,
        session_id: Optional[str] = None,
    ) -> None:
        self.id = session_id if session_id is not None else str(uuid.uuid4())
        self._clock = clock
        self._reckoner = DeadReckoner(dead_reckoning)
        self._lock = threading.RLock()
        self._points: List[CalibrationPoint] = []
        self._state = SessionState.NOT_STARTED
        self._abandoned = False
        self.started_at: Optional[datetime] = None
        self.ended_at: Optional[datetime] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def abandoned(self) -> bool:
        return self._abandoned

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    def __len__(self) -> int:
        with self._lock:
            return len(self._points)

    def start(self) -> None:
        """Begin capturing. Valid only once, from NOT_STARTED."""
        with self._lock:
            if self._state is not SessionState.NOT_STARTED:
                raise InvalidStateError(
                    f"Cannot start a session that is {self._state.value}"
                )
            self._state = SessionState.ACTIVE
            self.started_at = self._clock()

    def capture(
        self,
        label: str,
        floor: int,
        reading: SignalReading,
        sensors: Optional[AuxiliarySensors] = None,
        location_type: LocationType = LocationType.ROOM,
    ) -> CalibrationPoint:
        """
        Append a new calibration point.

        The position is assigned by dead reckoning from the previous capture
        on the same floor; callers never supply it.

        Args:
            label: Place name, e.g. "Kitchen". Leading/trailing whitespace
                   is stripped.
            floor: Positive floor number.
            reading: Normalized signal reading.
            sensors: Auxiliary sensor snapshot used for dead reckoning.
            location_type: Kind of place.

        Returns:
            The appended, immutable CalibrationPoint.

        Raises:
            InvalidStateError: If the session is not ACTIVE.
            EmptyLabelError: If label is not a string or is blank.
            InvalidFloorError: If floor is not a positive integer.
        """
        with self._lock:
            if self._state is not SessionState.ACTIVE:
                raise InvalidStateError(
                    f"Cannot capture while session is {self._state.value}"
                )
            if not isinstance(label, str) or not label.strip():
                raise EmptyLabelError("Capture label must not be blank")
            if isinstance(floor, bool) or not isinstance(floor, int) or floor < 1:
                raise InvalidFloorError(
                    f"floor must be a positive integer, got {floor!r}"
                )

            position = self._reckoner.advance(floor, sensors)
            point = CalibrationPoint(
                id=str(uuid.uuid4()),
                label=label.strip(),
                floor=floor,
                reading=reading,
                position=position,
                captured_at=self._clock(),
                location_type=location_type,
            )
            self._points.append(point)
            return point

    def end(self) -> None:
        """Finish capturing and freeze the point log."""
        with self._lock:
            if self._state is not SessionState.ACTIVE:
                raise InvalidStateError(
                    f"Cannot end a session that is {self._state.value}"
                )
            self._state = SessionState.ENDED
            self.ended_at = self._clock()

    def abandon(self) -> None:
        """End the session early; captured points stay readable."""
        with self._lock:
            if self._state is SessionState.ENDED:
                raise InvalidStateError("Session has already ended")
            self._state = SessionState.ENDED
            self._abandoned = True
            self.ended_at = self._clock()

    def snapshot(self) -> Tuple[CalibrationPoint, ...]:
        """Immutable copy of the points captured so far, in capture order."""
        with self._lock:
            return tuple(self._points)
