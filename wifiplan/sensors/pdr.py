"""
Pedestrian Dead Reckoning (PDR) primitives for walk surveys.

Between two captures the operator walks a short distance. Without absolute
indoor positioning, the displacement is estimated step-and-heading style:
    - Step count from a pedometer, or from peaks in the accelerometer
      magnitude when only raw samples are available
    - Step length from a fixed stride, or from the Weinberg model
    - 2D update p_k = p_{k-1} + n * L * [cos(psi), sin(psi)]

Frame Conventions:
    - PDR operates in the horizontal plane of a single floor
    - Heading convention follows FrameConvention (0 = East for ENU)

Notes:
    - Heading errors dominate PDR accuracy; a 1 degree error moves the
      estimate ~1.7% of the distance walked sideways.
    - Positions are only ever relative to the first capture on a floor.
"""

from typing import Optional, Tuple

import numpy as np
from scipy import signal

from wifiplan.sensors.types import FrameConvention


def step_length(
    h: float,
    f_step: float,
    a: float = 0.371,
    b: float = 0.227,
    c: float = 1.0,
) -> float:
    """
    Estimate step length using the Weinberg model.

        L = c * h^a * f_step^b

    Args:
        h: User height. Units: meters. Typical range: 1.5-2.0 m.
        f_step: Step frequency. Units: Hz. Typical range: 1.5-3.0 Hz.
        a: Height exponent. Default: 0.371.
        b: Frequency exponent. Default: 0.227.
        c: Personal scaling constant. Default: 1.0.

    Returns:
        Step length L in meters. Typical range: 0.5-1.0 m.

    Example:
        >>> L = step_length(1.75, 2.0)
        >>> print(f"{L:.2f} m")  # ~1.44 m for c=1.0
    """
    if h <= 0:
        raise ValueError(f"h (height) must be positive, got {h}")
    if f_step <= 0:
        raise ValueError(f"f_step must be positive, got {f_step}")
    if c <= 0:
        raise ValueError(f"c must be positive, got {c}")

    return c * (h**a) * (f_step**b)


def detect_steps_peak_detector(
    accel_series: np.ndarray,
    dt: float,
    g: float = 9.81,
    min_peak_height: float = 1.0,
    min_peak_distance: float = 0.3,
    lowpass_cutoff: Optional[float] = 5.0,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Detect steps using peak detection on gravity-removed acceleration magnitude.

    1. a_mag = ||a|| per sample
    2. a_dyn = a_mag - g
    3. Optional 4th order Butterworth low-pass (zero phase)
    4. Peaks above min_peak_height, at least min_peak_distance apart

    Args:
        accel_series: Accelerometer samples, shape (N, 3). Units: m/s².
                      Raw measurements including gravity.
        dt: Sample interval. Units: seconds.
        g: Gravity magnitude. Default: 9.81 m/s².
        min_peak_height: Minimum dynamic peak height. Units: m/s².
        min_peak_distance: Refractory period between steps. Units: seconds.
        lowpass_cutoff: Filter cutoff in Hz, or None to disable filtering.

    Returns:
        Tuple of (step_indices, accel_dynamic):
            step_indices: Sample indices of detected steps, shape (n_steps,).
            accel_dynamic: Processed magnitude, shape (N,).
    """
    if accel_series.ndim != 2 or accel_series.shape[1] != 3:
        raise ValueError(
            f"accel_series must have shape (N, 3), got {accel_series.shape}"
        )
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")
    if min_peak_distance <= 0:
        raise ValueError(f"min_peak_distance must be positive, got {min_peak_distance}")

    accel_dynamic = np.linalg.norm(accel_series, axis=1) - g

    # filtfilt needs more samples than 3x the filter order padding
    if lowpass_cutoff is not None and len(accel_dynamic) > 27:
        normalized_cutoff = lowpass_cutoff / (0.5 / dt)
        if normalized_cutoff < 1.0:
            b, a = signal.butter(4, normalized_cutoff, btype='low')
            accel_dynamic = signal.filtfilt(b, a, accel_dynamic)

    peak_indices, _ = signal.find_peaks(
        accel_dynamic,
        height=min_peak_height,
        distance=max(1, int(min_peak_distance / dt)),
    )

    return peak_indices, accel_dynamic


def count_steps(accel_series: np.ndarray, dt: float, **kwargs) -> int:
    """Number of steps detected in an accelerometer window (0 if empty)."""
    if len(accel_series) == 0:
        return 0
    step_indices, _ = detect_steps_peak_detector(accel_series, dt, **kwargs)
    return int(len(step_indices))


def pdr_step_update(
    p_prev_xy: np.ndarray,
    step_len: float,
    heading_rad: float,
    frame: Optional[FrameConvention] = None,
) -> np.ndarray:
    """
    Update 2D position from a walked distance (step-and-heading PDR).

        p_k = p_{k-1} + L * [cos(psi), sin(psi)]^T

    Args:
        p_prev_xy: Previous 2D position, shape (2,). Units: m.
        step_len: Distance walked along heading. Units: m. May be zero,
                  in which case the position is unchanged.
        heading_rad: Heading in the map frame. Units: radians.
        frame: Frame convention. Default: ENU.

    Returns:
        Updated 2D position, shape (2,).

    Example:
        >>> p1 = pdr_step_update(np.zeros(2), 0.7, np.pi / 2)
        >>> print(p1)  # [0.0, 0.7]
    """
    if p_prev_xy.shape != (2,):
        raise ValueError(f"p_prev_xy must have shape (2,), got {p_prev_xy.shape}")
    if step_len < 0:
        raise ValueError(f"step_len must be non-negative, got {step_len}")

    if frame is None:
        frame = FrameConvention.create_enu()

    return p_prev_xy + step_len * frame.heading_to_unit_vector(heading_rad)


def wrap_heading(heading_rad: float) -> float:
    """Wrap heading angle to [-pi, pi]."""
    return float(np.arctan2(np.sin(heading_rad), np.cos(heading_rad)))
