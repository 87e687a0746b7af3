"""Typed models for sysfs attribute values and resolved device locations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Union


@dataclass(frozen=True)
class Present:
    text: str

    def __bool__(self) -> bool:
        return True


class _AbsentType:
    """Attribute could not be read: missing, unreadable, or retries exhausted.

    The three causes are intentionally not distinguished yet.
    """

    _instance: "_AbsentType | None" = None

    def __new__(cls) -> "_AbsentType":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Absent"


Absent = _AbsentType()

AttributeValue = Union[Present, _AbsentType]


def text_or(value: AttributeValue, default: str) -> str:
    return value.text if isinstance(value, Present) else default


class DeviceRole(str, Enum):
    CPU_FREQ = "CpuFreqControl"
    GPU_FREQ = "GpuFreqControl"
    FAN = "FanControl"
    FAN_PWM = "FanPwm"
    THERMAL_ZONE = "ThermalZone"


@dataclass(frozen=True)
class DeviceLocation:
    role: DeviceRole
    path: str | None
    name: str | None = None

    @property
    def found(self) -> bool:
        return self.path is not None

    def attr(self, attribute: str) -> str | None:
        if self.path is None:
            return None
        return f"{self.path}/{attribute}"

    def describe(self) -> str:
        return self.path if self.path is not None else "NOT_FOUND"


@dataclass(frozen=True)
class DeviceMap:
    cpu: DeviceLocation
    gpu: DeviceLocation
    fan: DeviceLocation
    fan_pwm: DeviceLocation
    thermal: Mapping[str, DeviceLocation] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "thermal", MappingProxyType(dict(self.thermal)))

    def zone(self, name: str) -> DeviceLocation:
        return self.thermal.get(name, DeviceLocation(DeviceRole.THERMAL_ZONE, None, name=name))
