"""Unit tests for wifiplan.spatial.reckoning (incremental dead reckoning).

Tests cover:
    - Per-floor origins and step-and-heading displacement
    - Fallbacks for missing compass, step source and barometer
    - Barometric z and floor-change consistency warnings
    - Step counting from accelerometer windows
"""

import unittest
import warnings

import numpy as np
import pytest

from wifiplan.sensors.types import AuxiliarySensors, FrameConvention
from wifiplan.spatial.reckoning import DeadReckoner, DeadReckoningConfig


def _walk(compass, steps, **kwargs):
    return AuxiliarySensors(compass_deg=compass, step_count=steps, **kwargs)


class TestDeadReckoningConfig(unittest.TestCase):
    """Test suite for dead-reckoning parameters."""

    def test_defaults(self) -> None:
        config = DeadReckoningConfig()

        assert config.stride_length_m == 0.7
        assert config.floor_height_m == 3.0
        assert config.frame.map_frame == 'ENU'

    def test_from_user_height(self) -> None:
        """Weinberg stride for a 1.75 m adult is ~0.7 m."""
        config = DeadReckoningConfig.from_user_height(1.75)

        assert np.isclose(config.stride_length_m, 0.70, atol=0.02)

    def test_from_user_height_passes_kwargs(self) -> None:
        config = DeadReckoningConfig.from_user_height(1.80, floor_height_m=2.7)

        assert config.floor_height_m == 2.7

    def test_invalid_values(self) -> None:
        with pytest.raises(ValueError, match="stride_length_m"):
            DeadReckoningConfig(stride_length_m=0.0)

        with pytest.raises(ValueError, match="floor_height_m"):
            DeadReckoningConfig(floor_height_m=-3.0)

        with pytest.raises(ValueError, match="accel_dt"):
            DeadReckoningConfig(accel_dt=0.0)


class TestHorizontalPositions(unittest.TestCase):
    """Test suite for x, y assignment."""

    def setUp(self) -> None:
        self.dr = DeadReckoner(DeadReckoningConfig(stride_length_m=1.0))

    def test_first_capture_at_origin(self) -> None:
        assert self.dr.advance(1, _walk(123.0, 7)) == (0.0, 0.0, 0.0)

    def test_compass_east_moves_along_x(self) -> None:
        self.dr.advance(1)
        x, y, z = self.dr.advance(1, _walk(90.0, 3))

        assert np.isclose(x, 3.0)
        assert np.isclose(y, 0.0)

    def test_compass_north_moves_along_y(self) -> None:
        self.dr.advance(1)
        x, y, _ = self.dr.advance(1, _walk(0.0, 2))

        assert np.isclose(x, 0.0)
        assert np.isclose(y, 2.0)

    def test_path_accumulates(self) -> None:
        self.dr.advance(1)
        self.dr.advance(1, _walk(90.0, 4))
        x, y, _ = self.dr.advance(1, _walk(0.0, 3))

        assert np.isclose(x, 4.0)
        assert np.isclose(y, 3.0)

    def test_missing_compass_reuses_heading(self) -> None:
        self.dr.advance(1)
        self.dr.advance(1, _walk(0.0, 1))
        x, y, _ = self.dr.advance(1, AuxiliarySensors(step_count=2))

        assert np.isclose(x, 0.0)
        assert np.isclose(y, 3.0)

    def test_missing_compass_without_history_uses_zero_heading(self) -> None:
        self.dr.advance(1)
        x, y, _ = self.dr.advance(1, AuxiliarySensors(step_count=2))

        assert np.isclose(x, 2.0)
        assert np.isclose(y, 0.0)

    def test_missing_steps_no_displacement(self) -> None:
        self.dr.advance(1)
        self.dr.advance(1, _walk(90.0, 2))
        x, y, _ = self.dr.advance(1, AuxiliarySensors(compass_deg=0.0))

        assert np.isclose(x, 2.0)
        assert np.isclose(y, 0.0)

    def test_new_floor_has_own_origin(self) -> None:
        self.dr.advance(1)
        self.dr.advance(1, _walk(90.0, 5))
        x, y, _ = self.dr.advance(2, _walk(90.0, 5))

        assert (x, y) == (0.0, 0.0)

    def test_returning_to_floor_continues(self) -> None:
        self.dr.advance(1)
        self.dr.advance(1, _walk(90.0, 5))
        self.dr.advance(2, _walk(0.0, 3))
        x, y, _ = self.dr.advance(1, _walk(90.0, 1))

        assert np.isclose(x, 6.0)
        assert np.isclose(y, 0.0)

    def test_ned_frame(self) -> None:
        dr = DeadReckoner(DeadReckoningConfig(stride_length_m=1.0,
                                              frame=FrameConvention.create_ned()))
        dr.advance(1)
        x, y, _ = dr.advance(1, _walk(0.0, 2))

        # NED: x = North
        assert np.isclose(x, 2.0)
        assert np.isclose(y, 0.0)


class TestVerticalOffset(unittest.TestCase):
    """Test suite for z assignment."""

    def test_no_barometer_uses_floor_height(self) -> None:
        dr = DeadReckoner(DeadReckoningConfig(floor_height_m=3.0))
        dr.advance(2)
        _, _, z1 = dr.advance(1)
        _, _, z3 = dr.advance(3)

        assert z1 == -3.0
        assert z3 == 3.0

    def test_relative_altitude(self) -> None:
        dr = DeadReckoner()
        dr.advance(1, AuxiliarySensors(relative_altitude_m=0.5))
        _, _, z = dr.advance(2, AuxiliarySensors(relative_altitude_m=3.6))

        assert np.isclose(z, 3.1)

    def test_pressure(self) -> None:
        dr = DeadReckoner()
        _, _, z0 = dr.advance(1, AuxiliarySensors(pressure_pa=101325.0))
        _, _, z1 = dr.advance(2, AuxiliarySensors(pressure_pa=101325.0 - 36.0))

        assert z0 == 0.0
        assert np.isclose(z1, 3.0, atol=0.1)

    def test_barometer_online_mid_survey(self) -> None:
        """A late barometer is anchored to the z that would have been used."""
        dr = DeadReckoner(DeadReckoningConfig(floor_height_m=3.0))
        dr.advance(1)
        dr.advance(2)
        _, _, z = dr.advance(2, AuxiliarySensors(relative_altitude_m=10.0))
        _, _, z_back = dr.advance(1, AuxiliarySensors(relative_altitude_m=7.0))

        assert np.isclose(z, 3.0)
        assert np.isclose(z_back, 0.0)

    def test_missing_barometer_keeps_floor_z(self) -> None:
        dr = DeadReckoner()
        dr.advance(1, AuxiliarySensors(relative_altitude_m=0.0))
        dr.advance(2, AuxiliarySensors(relative_altitude_m=3.2))
        _, _, z = dr.advance(2)

        assert np.isclose(z, 3.2)


class TestFloorChangeCheck(unittest.TestCase):
    """Test suite for barometer vs declared floor consistency."""

    def test_consistent_change_is_silent(self) -> None:
        dr = DeadReckoner()
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            dr.advance(1, AuxiliarySensors(relative_altitude_m=0.0))
            dr.advance(1, AuxiliarySensors(relative_altitude_m=0.3))
            dr.advance(2, AuxiliarySensors(relative_altitude_m=3.1))

    def test_undeclared_floor_change_warns(self) -> None:
        dr = DeadReckoner()
        dr.advance(1, AuxiliarySensors(relative_altitude_m=0.0))

        with pytest.warns(RuntimeWarning, match="Barometer suggests"):
            position = dr.advance(1, AuxiliarySensors(relative_altitude_m=3.2))

        # Declared floor wins
        assert np.isclose(position[2], 3.2)

    def test_declared_change_without_altitude_change_warns(self) -> None:
        dr = DeadReckoner()
        dr.advance(1, AuxiliarySensors(relative_altitude_m=0.0))

        with pytest.warns(RuntimeWarning, match="declares \\+1"):
            dr.advance(2, AuxiliarySensors(relative_altitude_m=0.1))


class TestAccelWindowSteps(unittest.TestCase):
    """Test suite for step counting from raw accelerometer windows."""

    def test_accel_window_drives_displacement(self) -> None:
        t = np.arange(0, 5, 0.01)
        n = len(t)
        accel = np.column_stack([np.zeros(n), np.zeros(n),
                                 -9.81 + 2.5 * np.sin(2 * np.pi * 2.0 * t)])

        dr = DeadReckoner(DeadReckoningConfig(stride_length_m=0.5))
        dr.advance(1)
        x, y, _ = dr.advance(1, AuxiliarySensors(compass_deg=90.0, accel_window=accel))

        assert 2.5 < x < 10.0  # ~10 steps of 0.5 m
        assert np.isclose(x / 0.5, round(x / 0.5))
        assert np.isclose(y, 0.0)

    def test_step_count_preferred_over_window(self) -> None:
        dr = DeadReckoner(DeadReckoningConfig(stride_length_m=1.0))
        dr.advance(1)
        x, _, _ = dr.advance(1, AuxiliarySensors(compass_deg=90.0, step_count=2,
                                                 accel_window=np.zeros((50, 3))))

        assert np.isclose(x, 2.0)


if __name__ == "__main__":
    unittest.main()


class TestUnusableSensorValues(unittest.TestCase):
    """Test suite for non-finite or impossible sensor values."""

    def test_infinite_compass_reuses_heading(self) -> None:
        dr = DeadReckoner(DeadReckoningConfig(stride_length_m=1.0))
        dr.advance(1, AuxiliarySensors(compass_deg=90.0, step_count=0))
        position = dr.advance(1, AuxiliarySensors(compass_deg=float("inf"), step_count=2))

        assert np.allclose(position, (2.0, 0.0, 0.0))

    def test_nan_altitude_ignored(self) -> None:
        dr = DeadReckoner()
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            zs = [
                dr.advance(1, AuxiliarySensors(relative_altitude_m=alt))[2]
                for alt in (0.0, float("nan"), 0.0)
            ]

        assert zs == [0.0, 0.0, 0.0]

    def test_bad_pressure_does_not_become_reference(self) -> None:
        dr = DeadReckoner()
        _, _, z_bad = dr.advance(1, AuxiliarySensors(pressure_pa=0.0))
        _, _, z0 = dr.advance(1, AuxiliarySensors(pressure_pa=101325.0))
        _, _, z1 = dr.advance(2, AuxiliarySensors(pressure_pa=101325.0 - 36.0))

        assert z_bad == 0.0
        assert z0 == 0.0
        assert np.isclose(z1, 3.0, atol=0.1)
