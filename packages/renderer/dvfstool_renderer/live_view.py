"""Fixed-line, in-place terminal status view for the sampling loop."""

from __future__ import annotations

import sys
from typing import TextIO

from dvfstool_sysfs import AttributeValue, text_or
from dvfstool_telemetry import SensorSnapshot


LINES = 4
_CURSOR_UP = f"\033[{LINES}A"
_CLEAR_LINE = "\033[2K\r"


def format_temp_c(temp_mc: AttributeValue) -> str:
    """Milli-degree text to degrees with one decimal, or NA."""
    text = text_or(temp_mc, "")
    if not text:
        return "NA"
    try:
        return f"{int(text) / 1000.0:.1f}"
    except ValueError:
        return "NA"


def build_lines(snapshot: SensorSnapshot) -> list[str]:
    def v(value: AttributeValue) -> str:
        return text_or(value, "NA")

    cpu, gpu, fan, t = snapshot.cpu, snapshot.gpu, snapshot.fan, snapshot.thermal
    return [
        f"CPUfreq: cur={v(cpu.cur)} min={v(cpu.min)} max={v(cpu.max)} gov={v(cpu.governor)}",
        f"GPUfreq: cur={v(gpu.cur)} min={v(gpu.min)} max={v(gpu.max)} gov={v(gpu.governor)}",
        f"FAN: cur_state={v(fan.cur_state)}/{v(fan.max_state)} pwm={v(fan.pwm)}",
        (
            f"Temps: CPU {format_temp_c(t.cpu)}C"
            f" | GPU {format_temp_c(t.gpu)}C"
            f" | SOC0 {format_temp_c(t.soc0)}C"
            f" | SOC1 {format_temp_c(t.soc1)}C"
            f" | SOC2 {format_temp_c(t.soc2)}C"
            f" | TJ {format_temp_c(t.tj)}C"
        ),
    ]


class LiveView:
    """Redraws the same block of lines on every render."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stderr
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def render(self, snapshot: SensorSnapshot) -> None:
        out = self._stream
        if not self._initialized:
            out.write("\n" * LINES)
            self._initialized = True
        out.write(_CURSOR_UP)
        for line in build_lines(snapshot):
            out.write(f"{_CLEAR_LINE}{line}\n")
        out.flush()

    def close(self) -> None:
        if self._initialized:
            self._stream.write("\n")
            self._stream.flush()
