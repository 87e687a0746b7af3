"""Discovery diagnostics payload for the ``probe`` command."""

from __future__ import annotations

import platform
from datetime import datetime, timezone
from typing import Any

from dvfstool_sysfs import DeviceDiscovery, DeviceLocation, DeviceMap, SysfsAccessor, text_or


_NA = "<N/A>"

CPU_ATTRIBUTES = (
    "scaling_governor",
    "scaling_cur_freq",
    "scaling_min_freq",
    "scaling_max_freq",
    "scaling_available_frequencies",
    "cpuinfo_min_freq",
    "cpuinfo_max_freq",
)
GPU_ATTRIBUTES = ("cur_freq", "min_freq", "max_freq", "available_frequencies", "governor")
FAN_ATTRIBUTES = ("type", "cur_state", "max_state")


def _section(accessor: SysfsAccessor, location: DeviceLocation, attributes: tuple[str, ...]) -> dict[str, Any]:
    if not location.found:
        return {"dir": None, "found": False}
    out: dict[str, Any] = {"dir": location.path, "found": True}
    for name in attributes:
        out[name] = text_or(accessor.read_text(location.attr(name) or ""), _NA)
    return out


def build_probe_payload(
    discovery: DeviceDiscovery,
    devices: DeviceMap | None = None,
    zone_limit: int = 12,
) -> dict[str, Any]:
    accessor = discovery.accessor
    devices = devices or discovery.resolve()

    fan = _section(accessor, devices.fan, FAN_ATTRIBUTES)
    if devices.fan_pwm.found:
        fan["pwm1"] = text_or(accessor.read_text(devices.fan_pwm.path or ""), _NA)
        fan["pwm_path"] = devices.fan_pwm.path

    return {
        "ts_utc": datetime.now(timezone.utc).isoformat(),
        "platform": platform.platform(),
        "cpu": _section(accessor, devices.cpu, CPU_ATTRIBUTES),
        "gpu": _section(accessor, devices.gpu, GPU_ATTRIBUTES),
        "fan": fan,
        "thermal_zones": discovery.list_thermal_zones(limit=zone_limit),
        "resolved_zones": {name: loc.path for name, loc in devices.thermal.items()},
    }
