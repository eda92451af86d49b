"""Flat record export of a calibration session.

The record list mirrors the in-memory invariant: one entry per capture, in
capture order, never rewritten. Storing it is left to the caller.

Record layout:
    {
        "sessionId": str,
        "points": [
            {"label", "floor", "strength", "confidence",
             "x", "y", "z", "capturedAt"}, ...
        ]
    }
"""

from typing import Any, Dict, List

from wifiplan.calibration.session import CalibrationSession
from wifiplan.calibration.types import CalibrationPoint


def point_to_record(point: CalibrationPoint) -> Dict[str, Any]:
    """Flatten one point into a JSON-serializable dict."""
    x, y, z = point.position
    return {
        "label": point.label,
        "floor": point.floor,
        "strength": point.strength,
        "confidence": point.confidence,
        "x": x,
        "y": y,
        "z": z,
        "capturedAt": point.captured_at.isoformat(),
    }


def session_to_records(session: CalibrationSession) -> Dict[str, Any]:
    """
    Export a session as a flat record list.

    Example:
        >>> import json
        >>> json.dumps(session_to_records(session))
    """
    points: List[Dict[str, Any]] = [point_to_record(p) for p in session.snapshot()]
    return {"sessionId": session.id, "points": points}
