"""Sensor snapshot models and sampler for dvfstool."""

from .models import THERMAL_ZONE_NAMES, FanReading, FreqReading, SensorSnapshot, ThermalReading
from .provider import SensorSampler

__all__ = [
    "FanReading",
    "FreqReading",
    "SensorSampler",
    "SensorSnapshot",
    "THERMAL_ZONE_NAMES",
    "ThermalReading",
]
