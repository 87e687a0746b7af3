"""Typed snapshot models."""

from __future__ import annotations

from dataclasses import dataclass

from dvfstool_sysfs.models import Absent, AttributeValue


THERMAL_ZONE_NAMES: tuple[str, ...] = ("cpu", "gpu", "soc0", "soc1", "soc2", "tj")


@dataclass(frozen=True)
class FreqReading:
    cur: AttributeValue = Absent
    min: AttributeValue = Absent
    max: AttributeValue = Absent
    governor: AttributeValue = Absent


@dataclass(frozen=True)
class FanReading:
    cur_state: AttributeValue = Absent
    max_state: AttributeValue = Absent
    pwm: AttributeValue = Absent


@dataclass(frozen=True)
class ThermalReading:
    cpu: AttributeValue = Absent
    gpu: AttributeValue = Absent
    soc0: AttributeValue = Absent
    soc1: AttributeValue = Absent
    soc2: AttributeValue = Absent
    tj: AttributeValue = Absent

    def ordered(self) -> tuple[AttributeValue, ...]:
        return tuple(getattr(self, name) for name in THERMAL_ZONE_NAMES)


@dataclass(frozen=True)
class SensorSnapshot:
    ts_ns: int
    cpu: FreqReading
    gpu: FreqReading
    fan: FanReading
    thermal: ThermalReading
