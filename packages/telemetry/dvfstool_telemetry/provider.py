"""Point-in-time sampler over resolved sysfs locations with graceful sensor fallbacks."""

from __future__ import annotations

from dvfstool_sysfs import Absent, AttributeValue, DeviceLocation, DeviceMap, SysfsAccessor

from .models import THERMAL_ZONE_NAMES, FanReading, FreqReading, SensorSnapshot, ThermalReading


class SensorSampler:
    """Reads every tracked attribute exactly once per call.

    Unresolved roles and failed reads both come back as Absent; a snapshot is
    always produced.
    """

    def __init__(self, accessor: SysfsAccessor, devices: DeviceMap) -> None:
        self._accessor = accessor
        self._devices = devices

    def _read(self, location: DeviceLocation, attribute: str) -> AttributeValue:
        path = location.attr(attribute)
        if path is None:
            return Absent
        return self._accessor.read_text(path)

    def _read_file(self, location: DeviceLocation) -> AttributeValue:
        if location.path is None:
            return Absent
        return self._accessor.read_text(location.path)

    def read(self, ts_ns: int) -> SensorSnapshot:
        d = self._devices
        cpu = FreqReading(
            cur=self._read(d.cpu, "scaling_cur_freq"),
            min=self._read(d.cpu, "scaling_min_freq"),
            max=self._read(d.cpu, "scaling_max_freq"),
            governor=self._read(d.cpu, "scaling_governor"),
        )
        gpu = FreqReading(
            cur=self._read(d.gpu, "cur_freq"),
            min=self._read(d.gpu, "min_freq"),
            max=self._read(d.gpu, "max_freq"),
            governor=self._read(d.gpu, "governor"),
        )
        fan = FanReading(
            cur_state=self._read(d.fan, "cur_state"),
            max_state=self._read(d.fan, "max_state"),
            pwm=self._read_file(d.fan_pwm),
        )
        thermal = ThermalReading(**{name: self._read(d.zone(name), "temp") for name in THERMAL_ZONE_NAMES})
        return SensorSnapshot(ts_ns=ts_ns, cpu=cpu, gpu=gpu, fan=fan, thermal=thermal)
