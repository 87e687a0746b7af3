"""Sysfs access and device discovery for CPU/GPU DVFS, fan and thermal zones."""

from .accessor import SysfsAccessor
from .discovery import (
    DEFAULT_THERMAL_KEYWORDS,
    DeviceDiscovery,
    DiscoveryError,
    DiscoveryKeywords,
    SysfsLayout,
    require_cpu_and_gpu,
)
from .models import Absent, AttributeValue, DeviceLocation, DeviceMap, DeviceRole, Present, text_or

__all__ = [
    "Absent",
    "AttributeValue",
    "DEFAULT_THERMAL_KEYWORDS",
    "DeviceDiscovery",
    "DeviceLocation",
    "DeviceMap",
    "DeviceRole",
    "DiscoveryError",
    "DiscoveryKeywords",
    "Present",
    "SysfsAccessor",
    "SysfsLayout",
    "require_cpu_and_gpu",
    "text_or",
]
