"""
Signal normalization and dead-reckoning sensor models.

Modules:
    types: Raw signal, auxiliary sensor snapshot, SignalReading, frames
    normalize: Raw level + sensor availability -> SignalReading
    pdr: Step detection, step length, step-and-heading position update
    environment: Barometric altitude and floor change detection

Design principles:
    - Sensor packets and readings are frozen (immutable)
    - Normalization is a pure function of its inputs
    - All numerics use NumPy
"""

from wifiplan.sensors.types import (
    AuxiliarySensors,
    FrameConvention,
    RawSignal,
    SignalReading,
    SignalScale,
)

from wifiplan.sensors.normalize import (
    NormalizerConfig,
    infer_scale,
    normalize_reading,
    normalize_strength,
    sensor_confidence,
)

from wifiplan.sensors.pdr import (
    count_steps,
    detect_steps_peak_detector,
    pdr_step_update,
    step_length,
    wrap_heading,
)

from wifiplan.sensors.environment import (
    detect_floor_change,
    pressure_to_altitude,
)

__all__ = [
    # Data types
    "AuxiliarySensors",
    "FrameConvention",
    "RawSignal",
    "SignalReading",
    "SignalScale",
    # Normalization
    "NormalizerConfig",
    "infer_scale",
    "normalize_reading",
    "normalize_strength",
    "sensor_confidence",
    # PDR
    "count_steps",
    "detect_steps_peak_detector",
    "pdr_step_update",
    "step_length",
    "wrap_heading",
    # Environment
    "detect_floor_change",
    "pressure_to_altitude",
]
