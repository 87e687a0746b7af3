"""Locate CPU/GPU DVFS, fan and thermal-zone directories across kernel naming variants."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from .accessor import SysfsAccessor
from .models import DeviceLocation, DeviceMap, DeviceRole, Present


_LOG = logging.getLogger("dvfstool.sysfs")


@dataclass(frozen=True)
class SysfsLayout:
    cpufreq_root: str = "/sys/devices/system/cpu/cpufreq"
    cpu_legacy_dir: str = "/sys/devices/system/cpu/cpu0/cpufreq"
    devfreq_root: str = "/sys/class/devfreq"
    thermal_root: str = "/sys/class/thermal"
    fan_pwm_path: str = "/sys/devices/platform/pwm-fan/hwmon/hwmon1/pwm1"


DEFAULT_THERMAL_KEYWORDS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "cpu": ("cpu-thermal", "CPU-therm", "cpu", "CPU"),
        "gpu": ("gpu-thermal", "GPU-therm", "gpu", "ga10b", "GPU"),
        "soc0": ("soc0-thermal", "SOC0", "soc0"),
        "soc1": ("soc1-thermal", "SOC1", "soc1"),
        "soc2": ("soc2-thermal", "SOC2", "soc2"),
        "tj": ("tj-thermal", "TJ", "tj"),
    }
)


@dataclass(frozen=True)
class DiscoveryKeywords:
    gpu: tuple[str, ...] = ("ga10b", "gpu")
    gpu_excluded: tuple[str, ...] = ("nvjpg", "nvenc", "nvdec", "vic", "se")
    fan_type: tuple[str, ...] = ("pwm-fan",)
    thermal_zones: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: dict(DEFAULT_THERMAL_KEYWORDS))


class DiscoveryError(RuntimeError):
    pass


def _list_dirs(root: str) -> list[tuple[str, str]]:
    """Child directories of root as (name, path), in native enumeration order."""
    try:
        with os.scandir(root) as it:
            return [(e.name, e.path) for e in it if e.is_dir()]
    except OSError:
        return []


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(kw in text for kw in keywords)


class DeviceDiscovery:
    def __init__(
        self,
        accessor: SysfsAccessor | None = None,
        layout: SysfsLayout | None = None,
        keywords: DiscoveryKeywords | None = None,
    ) -> None:
        self.accessor = accessor or SysfsAccessor()
        self.layout = layout or SysfsLayout()
        self.keywords = keywords or DiscoveryKeywords()

    def _has(self, directory: str, attribute: str) -> bool:
        return self.accessor.exists(os.path.join(directory, attribute))

    def find_cpu_policy_dir(self) -> DeviceLocation:
        for name, path in _list_dirs(self.layout.cpufreq_root):
            if name.startswith("policy") and self._has(path, "scaling_cur_freq"):
                return DeviceLocation(DeviceRole.CPU_FREQ, path)

        legacy = self.layout.cpu_legacy_dir
        if self._has(legacy, "scaling_cur_freq"):
            return DeviceLocation(DeviceRole.CPU_FREQ, legacy)
        return DeviceLocation(DeviceRole.CPU_FREQ, None)

    def find_gpu_devfreq_dir(self) -> DeviceLocation:
        candidates = [
            (name, path)
            for name, path in _list_dirs(self.layout.devfreq_root)
            if not _contains_any(name, self.keywords.gpu_excluded)
            and self._has(path, "cur_freq")
            and self._has(path, "available_frequencies")
        ]

        # Pass 1: GPU-like names. Pass 2: any remaining candidate.
        for name, path in candidates:
            if _contains_any(name, self.keywords.gpu):
                return DeviceLocation(DeviceRole.GPU_FREQ, path)
        if candidates:
            return DeviceLocation(DeviceRole.GPU_FREQ, candidates[0][1])
        return DeviceLocation(DeviceRole.GPU_FREQ, None)

    def find_fan_cooling_device_dir(self) -> DeviceLocation:
        for name, path in _list_dirs(self.layout.thermal_root):
            if not name.startswith("cooling_device"):
                continue
            kind = self.accessor.read_text(os.path.join(path, "type"))
            if isinstance(kind, Present) and _contains_any(kind.text, self.keywords.fan_type):
                return DeviceLocation(DeviceRole.FAN, path)
        return DeviceLocation(DeviceRole.FAN, None)

    def find_fan_pwm_path(self) -> DeviceLocation:
        configured = self.layout.fan_pwm_path
        if self.accessor.exists(configured):
            return DeviceLocation(DeviceRole.FAN_PWM, configured)

        # hwmon indices are assigned at boot, so look at siblings of the configured node.
        hwmon_root = os.path.dirname(os.path.dirname(configured))
        leaf = os.path.basename(configured)
        for name, path in _list_dirs(hwmon_root):
            if name.startswith("hwmon") and self._has(path, leaf):
                return DeviceLocation(DeviceRole.FAN_PWM, os.path.join(path, leaf))
        return DeviceLocation(DeviceRole.FAN_PWM, None)

    def find_thermal_zone(self, name: str, keywords: Sequence[str]) -> DeviceLocation:
        for entry, path in _list_dirs(self.layout.thermal_root):
            if "thermal_zone" not in entry:
                continue
            kind = self.accessor.read_text(os.path.join(path, "type"))
            if isinstance(kind, Present) and _contains_any(kind.text, keywords):
                return DeviceLocation(DeviceRole.THERMAL_ZONE, path, name=name)
        return DeviceLocation(DeviceRole.THERMAL_ZONE, None, name=name)

    def list_thermal_zones(self, limit: int = 12) -> list[dict[str, str]]:
        out: list[dict[str, str]] = []
        for entry, path in _list_dirs(self.layout.thermal_root):
            if "thermal_zone" not in entry:
                continue
            kind = self.accessor.read_text(os.path.join(path, "type"))
            temp = self.accessor.read_text(os.path.join(path, "temp"))
            if isinstance(kind, Present) and isinstance(temp, Present):
                out.append({"zone": entry, "type": kind.text, "temp": temp.text})
                if len(out) >= limit:
                    break
        return out

    def resolve(self) -> DeviceMap:
        devices = DeviceMap(
            cpu=self.find_cpu_policy_dir(),
            gpu=self.find_gpu_devfreq_dir(),
            fan=self.find_fan_cooling_device_dir(),
            fan_pwm=self.find_fan_pwm_path(),
            thermal={
                zone: self.find_thermal_zone(zone, kws)
                for zone, kws in self.keywords.thermal_zones.items()
            },
        )
        _LOG.info(
            "discovery cpu=%s gpu=%s fan=%s fan_pwm=%s",
            devices.cpu.describe(),
            devices.gpu.describe(),
            devices.fan.describe(),
            devices.fan_pwm.describe(),
            extra={"event": "discovery_resolved"},
        )
        return devices


def require_cpu_and_gpu(devices: DeviceMap) -> None:
    if not devices.cpu.found or not devices.gpu.found:
        missing = [loc.role.value for loc in (devices.cpu, devices.gpu) if not loc.found]
        raise DiscoveryError(f"Failed to discover {', '.join(missing)} sysfs dirs. Run: dvfstool probe")
