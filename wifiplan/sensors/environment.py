"""
Barometer helpers for multi-floor walk surveys.

The operator declares the floor of each capture; the barometer supplies the
vertical offset that stacks the per-floor sheets along z and lets the
builder sanity-check declared floor changes.

References:
    Barometric formula (standard atmosphere):
        h = (T / L) * (1 - (p / p0)^(R * L / (g * M)))
"""

import numpy as np


def pressure_to_altitude(
    p: float,
    p0: float = 101325.0,
    T: float = 288.15,
) -> float:
    """
    Convert barometric pressure to altitude above the reference pressure.

    Args:
        p: Measured pressure. Units: Pa.
        p0: Reference pressure. Units: Pa. Default: standard sea level.
        T: Temperature. Units: K. Default: 288.15 K.

    Returns:
        Altitude above p0 level. Units: meters.

    Notes:
        - Pressure drops ~12 Pa per meter (~36 Pa per floor).
        - Only differences between captures are used, so weather drift over
          a single survey is negligible.

    Example:
        >>> h = pressure_to_altitude(p=101325 - 36, p0=101325)
        >>> print(f"{h:.1f} m")  # ~3.0 m
    """
    if p <= 0:
        raise ValueError(f"p (pressure) must be positive, got {p}")
    if p0 <= 0:
        raise ValueError(f"p0 (reference pressure) must be positive, got {p0}")
    if T <= 0:
        raise ValueError(f"T (temperature) must be positive, got {T}")

    L = 0.0065  # K/m
    R = 8.31432  # J/(mol·K)
    g = 9.80665  # m/s²
    M = 0.0289644  # kg/mol

    alpha = (R * L) / (g * M)

    return float((T / L) * (1.0 - (p / p0) ** alpha))


def detect_floor_change(
    altitude_prev: float,
    altitude_current: float,
    floor_height: float = 3.0,
    threshold: float = 1.5,
) -> int:
    """
    Estimate the number of floors climbed between two altitude readings.

    Args:
        altitude_prev: Previous altitude. Units: meters.
        altitude_current: Current altitude. Units: meters.
        floor_height: Floor-to-floor height. Units: meters.
        threshold: Minimum change counted as a floor change. Units: meters.

    Returns:
        Signed number of floors: 0 below threshold, otherwise the rounded
        ratio of altitude change to floor height (at least one floor).

    Example:
        >>> detect_floor_change(10.0, 10.2)
        0
        >>> detect_floor_change(10.0, 16.1)
        2
    """
    if floor_height <= 0:
        raise ValueError(f"floor_height must be positive, got {floor_height}")

    delta_h = altitude_current - altitude_prev
    if abs(delta_h) < threshold:
        return 0

    n_floors = max(1, int(np.round(abs(delta_h) / floor_height)))
    return n_floors if delta_h > 0 else -n_floors
