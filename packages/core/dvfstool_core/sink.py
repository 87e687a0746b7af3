"""Append-only CSV sink for sensor snapshots."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import IO

from dvfstool_sysfs import text_or
from dvfstool_telemetry import SensorSnapshot


CSV_COLUMNS: tuple[str, ...] = (
    "ts_ns",
    "dt_ns",
    "cpu_khz",
    "cpu_min_khz",
    "cpu_max_khz",
    "cpu_governor",
    "gpu_hz",
    "gpu_min_hz",
    "gpu_max_hz",
    "gpu_governor",
    "fan_cur_state",
    "fan_max_state",
    "fan_pwm",
    "temp_cpu_mC",
    "temp_gpu_mC",
    "temp_soc0_mC",
    "temp_soc1_mC",
    "temp_soc2_mC",
    "temp_tj_mC",
)


class SinkOpenError(RuntimeError):
    pass


def snapshot_row(snapshot: SensorSnapshot, dt_ns: int) -> list[str]:
    cpu, gpu, fan = snapshot.cpu, snapshot.gpu, snapshot.fan
    values = (
        cpu.cur, cpu.min, cpu.max, cpu.governor,
        gpu.cur, gpu.min, gpu.max, gpu.governor,
        fan.cur_state, fan.max_state, fan.pwm,
        *snapshot.thermal.ordered(),
    )
    return [str(snapshot.ts_ns), str(dt_ns), *(text_or(v, "") for v in values)]


class CsvSampleSink:
    """One file per run, created fresh. Flushes every ``flush_every`` rows."""

    def __init__(self, path: Path, flush_every: int = 10) -> None:
        self.path = Path(path)
        self.flush_every = max(1, flush_every)
        self.rows = 0
        self._fh: IO[str] | None = None
        self._writer = None

    @property
    def is_open(self) -> bool:
        return self._fh is not None

    def open(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = self.path.open("w", encoding="utf-8", newline="")
        except OSError as exc:
            raise SinkOpenError(f"Failed to open: {self.path} ({exc})") from exc
        self._writer = csv.writer(self._fh, lineterminator="\n")
        self._writer.writerow(CSV_COLUMNS)
        self._fh.flush()

    def write(self, snapshot: SensorSnapshot, dt_ns: int) -> None:
        if not self.is_open or self._writer is None:
            raise RuntimeError("CSV sink is not open")
        self._writer.writerow(snapshot_row(snapshot, dt_ns))
        self.rows += 1
        if self.rows % self.flush_every == 0:
            self._fh.flush()

    def flush(self) -> None:
        if self.is_open:
            self._fh.flush()

    def close(self) -> None:
        if self.is_open:
            self._fh.flush()
            self._fh.close()
            self._fh = None
            self._writer = None
