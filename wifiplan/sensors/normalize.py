"""
Signal normalization: raw radio level + sensor snapshot -> SignalReading.

Strength mapping:
    dBm:      s = clamp((raw - dbm_floor) / dbm_span, 0, 1)
    percent:  s = clamp(raw / 100, 0, 1)
    fraction: s = clamp(raw, 0, 1)

Confidence starts at 1.0 and is multiplied by missing_sensor_factor for each
unavailable auxiliary sensor (barometer, compass, step source), so the
derived position and the optimizer weight of a capture reflect reduced
trust.

All functions here are pure: no I/O, no state.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from wifiplan.errors import SensorUnavailableError
from wifiplan.sensors.types import AuxiliarySensors, RawSignal, SignalReading, SignalScale


@dataclass(frozen=True)
class NormalizerConfig:
    """
    Constants of the signal normalizer.

    Attributes:
        dbm_floor: Level mapped to strength 0. Units: dBm. Default: -100.
        dbm_span: Range above dbm_floor mapped onto [0, 1]. Units: dB.
                  Default: 70, so -30 dBm and above is full strength.
        missing_sensor_factor: Confidence multiplier per unavailable
                               auxiliary sensor. Default: 0.5.
        discount_step_source: Count the step source (pedometer or
                              accelerometer window) as a third auxiliary
                              sensor next to barometer and compass.
                              Default: True, so a capture without any
                              sensor gets 0.5**3 = 0.125. With False only
                              barometer and compass count (0.25).
    """

    dbm_floor: float = -100.0
    dbm_span: float = 70.0
    missing_sensor_factor: float = 0.5
    discount_step_source: bool = True

    def __post_init__(self) -> None:
        if self.dbm_span <= 0:
            raise ValueError(f"dbm_span must be positive, got {self.dbm_span}")
        if not 0.0 <= self.missing_sensor_factor <= 1.0:
            raise ValueError(
                f"missing_sensor_factor must be in [0, 1], "
                f"got {self.missing_sensor_factor}"
            )


def infer_scale(value: float) -> SignalScale:
    """Guess the scale of a raw level: negative is dBm, <= 1 fraction, else percent."""
    if value < 0:
        return SignalScale.DBM
    if value <= 1.0:
        return SignalScale.FRACTION
    return SignalScale.PERCENT


def normalize_strength(
    value: float,
    scale: Optional[SignalScale] = None,
    config: Optional[NormalizerConfig] = None,
) -> float:
    """
    Map a raw signal level onto [0, 1].

    Args:
        value: Raw level on the given scale.
        scale: Scale of value, or None to infer it.
        config: Normalizer constants. Default: NormalizerConfig().

    Returns:
        Normalized strength in [0, 1].

    Example:
        >>> normalize_strength(-65.0, SignalScale.DBM)
        0.5
    """
    if config is None:
        config = NormalizerConfig()
    if scale is None:
        scale = infer_scale(value)

    if scale is SignalScale.DBM:
        strength = (value - config.dbm_floor) / config.dbm_span
    elif scale is SignalScale.PERCENT:
        strength = value / 100.0
    else:
        strength = value

    return float(np.clip(strength, 0.0, 1.0))


def sensor_confidence(
    sensors: Optional[AuxiliarySensors],
    config: Optional[NormalizerConfig] = None,
) -> float:
    """Confidence from auxiliary sensor availability (1.0 when all present)."""
    if config is None:
        config = NormalizerConfig()
    if sensors is None:
        sensors = AuxiliarySensors.unavailable()

    available = [sensors.has_barometer, sensors.has_compass]
    if config.discount_step_source:
        available.append(sensors.has_step_source)
    missing = sum(not flag for flag in available)
    return config.missing_sensor_factor ** missing


def normalize_reading(
    raw: RawSignal,
    sensors: Optional[AuxiliarySensors] = None,
    config: Optional[NormalizerConfig] = None,
) -> SignalReading:
    """
    Convert a raw signal level and sensor snapshot into a SignalReading.

    Args:
        raw: Raw radio level.
        sensors: Auxiliary sensor snapshot. None means all unavailable.
        config: Normalizer constants.

    Returns:
        SignalReading with clamped strength and confidence.

    Raises:
        SensorUnavailableError: If the radio produced no level (None or NaN).

    Example:
        >>> reading = normalize_reading(RawSignal(-58.0, SignalScale.DBM),
        ...                             AuxiliarySensors(compass_deg=0.0))
        >>> reading.strength, reading.confidence
        (0.6, 0.25)
    """
    if raw.value is None or np.isnan(raw.value):
        raise SensorUnavailableError("No signal level available from the radio")

    return SignalReading(
        strength=normalize_strength(raw.value, raw.scale, config),
        confidence=sensor_confidence(sensors, config),
    )
