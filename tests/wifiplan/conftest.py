"""Shared fixtures for wifiplan tests."""

import itertools
from datetime import datetime, timezone

import pytest

from wifiplan.calibration.types import CalibrationPoint, LocationType
from wifiplan.sensors.types import SignalReading

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_point():
    """Factory for calibration points at explicit positions."""
    counter = itertools.count()

    def _make(
        label,
        floor=1,
        strength=0.5,
        xy=(0.0, 0.0),
        confidence=1.0,
        z=0.0,
        location_type=LocationType.ROOM,
    ):
        return CalibrationPoint(
            id=f"p{next(counter)}",
            label=label,
            floor=floor,
            reading=SignalReading(strength, confidence),
            position=(float(xy[0]), float(xy[1]), float(z)),
            captured_at=T0,
            location_type=location_type,
        )

    return _make
