"""Pin and unlock write plans for CPU/GPU frequency bounds.

Plans are built from discovery results and applied through the accessor.
``apply_plan`` defaults to dry-run: it reports the intended writes and
touches nothing unless ``apply=True``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from dvfstool_sysfs import DeviceLocation, Present, SysfsAccessor, text_or

from .config import UnlockConfig
from .logging_setup import get_logger


@dataclass(frozen=True)
class PlannedWrite:
    path: str
    value: str | None
    note: str = ""

    @property
    def skipped(self) -> bool:
        return self.value is None


@dataclass
class WritePlan:
    cpu_dir: str
    gpu_dir: str
    writes: list[PlannedWrite] = field(default_factory=list)


@dataclass
class WriteResult:
    path: str
    value: str
    ok: bool


@dataclass
class WriteReport:
    applied: bool
    planned: list[PlannedWrite] = field(default_factory=list)
    results: list[WriteResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)


def _attr(location: DeviceLocation, attribute: str) -> str:
    path = location.attr(attribute)
    if path is None:
        raise ValueError(f"{location.role.value} was not discovered")
    return path


def plan_pin(cpu: DeviceLocation, gpu: DeviceLocation, cpu_khz: str, gpu_hz: str) -> WritePlan:
    return WritePlan(
        cpu_dir=cpu.describe(),
        gpu_dir=gpu.describe(),
        writes=[
            PlannedWrite(_attr(cpu, "scaling_min_freq"), cpu_khz),
            PlannedWrite(_attr(cpu, "scaling_max_freq"), cpu_khz),
            PlannedWrite(_attr(gpu, "min_freq"), gpu_hz),
            PlannedWrite(_attr(gpu, "max_freq"), gpu_hz),
        ],
    )


def gpu_bounds_from_available(listing: str) -> tuple[str, str] | None:
    """First and last whitespace-separated tokens of an available_frequencies listing."""
    tokens = listing.split()
    if not tokens:
        return None
    return tokens[0], tokens[-1]


def plan_unlock(
    accessor: SysfsAccessor,
    cpu: DeviceLocation,
    gpu: DeviceLocation,
    cfg: UnlockConfig | None = None,
) -> WritePlan:
    cfg = cfg or UnlockConfig()
    plan = WritePlan(cpu_dir=cpu.describe(), gpu_dir=gpu.describe())

    for bound in ("min", "max"):
        source = f"cpuinfo_{bound}_freq"
        value = accessor.read_text(_attr(cpu, source))
        if isinstance(value, Present):
            plan.writes.append(PlannedWrite(_attr(cpu, f"scaling_{bound}_freq"), value.text, f"({source})"))
        else:
            plan.writes.append(PlannedWrite(_attr(cpu, f"scaling_{bound}_freq"), None, f"({source} missing)"))

    available = accessor.read_text(_attr(gpu, "available_frequencies"))
    bounds = gpu_bounds_from_available(available.text) if isinstance(available, Present) else None
    if bounds is not None:
        gpu_min, gpu_max = bounds
        note = "(available_frequencies)"
    else:
        gpu_min = text_or(accessor.read_text(_attr(gpu, "min_freq")), cfg.gpu_min_fallback_hz)
        gpu_max = text_or(accessor.read_text(_attr(gpu, "max_freq")), cfg.gpu_max_fallback_hz)
        note = "(available_frequencies missing)"
    plan.writes.append(PlannedWrite(_attr(gpu, "min_freq"), gpu_min, note))
    plan.writes.append(PlannedWrite(_attr(gpu, "max_freq"), gpu_max, note))

    governor = _attr(gpu, "governor")
    if accessor.exists(governor):
        plan.writes.append(PlannedWrite(governor, cfg.gpu_governor))
    else:
        plan.writes.append(PlannedWrite(governor, None, "(no governor file)"))
    return plan


def apply_plan(accessor: SysfsAccessor, plan: WritePlan, apply: bool = False) -> WriteReport:
    report = WriteReport(applied=apply, planned=list(plan.writes))
    if not apply:
        return report

    log = get_logger()
    for item in plan.writes:
        if item.value is None:
            continue
        ok = accessor.write_text(item.path, item.value)
        report.results.append(WriteResult(path=item.path, value=item.value, ok=ok))
        log.info(f"sysfs write path={item.path} value={item.value} ok={ok}", extra={"event": "sysfs_write", "path": item.path})
    return report
