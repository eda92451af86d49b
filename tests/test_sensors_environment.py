"""
Unit tests for wifiplan/sensors/environment.py (barometer helpers).

Tests cover:
    - Barometric altitude
    - Floor change detection
    - Edge cases and validation

Run with: pytest tests/test_sensors_environment.py -v
"""

import unittest
import numpy as np
import pytest

from wifiplan.sensors.environment import detect_floor_change, pressure_to_altitude


class TestPressureToAltitude(unittest.TestCase):
    """Test suite for barometric altitude."""

    def test_pressure_to_altitude_at_reference(self) -> None:
        """Reference pressure maps to zero altitude."""
        h = pressure_to_altitude(101325.0, p0=101325.0)

        assert np.isclose(h, 0.0)

    def test_pressure_to_altitude_one_floor(self) -> None:
        """~36 Pa pressure drop corresponds to ~3 m."""
        h = pressure_to_altitude(101325.0 - 36.0, p0=101325.0)

        assert np.isclose(h, 3.0, atol=0.1)

    def test_pressure_to_altitude_below_reference(self) -> None:
        """Higher pressure means negative altitude."""
        h = pressure_to_altitude(101325.0 + 24.0, p0=101325.0)

        assert h < 0.0
        assert np.isclose(h, -2.0, atol=0.1)

    def test_pressure_to_altitude_relative_reference(self) -> None:
        """Any reference works: only differences are meaningful."""
        h = pressure_to_altitude(99964.0, p0=100000.0)

        assert np.isclose(h, 3.0, atol=0.1)

    def test_pressure_to_altitude_invalid_inputs(self) -> None:
        with pytest.raises(ValueError, match="must be positive"):
            pressure_to_altitude(0.0)

        with pytest.raises(ValueError, match="must be positive"):
            pressure_to_altitude(101325.0, p0=-1.0)

        with pytest.raises(ValueError, match="must be positive"):
            pressure_to_altitude(101325.0, T=0.0)


class TestDetectFloorChange(unittest.TestCase):
    """Test suite for floor change detection."""

    def test_floor_change_no_change(self) -> None:
        assert detect_floor_change(10.0, 10.2) == 0

    def test_floor_change_up_one_floor(self) -> None:
        assert detect_floor_change(10.0, 13.1) == 1

    def test_floor_change_down_one_floor(self) -> None:
        assert detect_floor_change(10.0, 6.9) == -1

    def test_floor_change_large_jump(self) -> None:
        assert detect_floor_change(0.0, 9.2) == 3

    def test_floor_change_exactly_at_threshold(self) -> None:
        """A change at the threshold counts as at least one floor."""
        assert detect_floor_change(0.0, 1.5, floor_height=3.0, threshold=1.5) == 1

    def test_floor_change_invalid_floor_height(self) -> None:
        with pytest.raises(ValueError, match="floor_height"):
            detect_floor_change(0.0, 3.0, floor_height=0.0)


if __name__ == "__main__":
    unittest.main()
