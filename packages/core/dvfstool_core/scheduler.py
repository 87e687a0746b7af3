"""Fixed-period sampling loop with drift-free scheduling and throttled live view."""

from __future__ import annotations

import signal
import sys
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, TextIO

from dvfstool_renderer import LiveView
from dvfstool_telemetry import SensorSampler

from .config import DEFAULT_PERIOD_MS, DEFAULT_WATCH_MS
from .logging_setup import get_logger
from .performance import BudgetStatus, OverheadMonitor
from .sink import CsvSampleSink


_NS_PER_MS = 1_000_000


class SchedulerState(str, Enum):
    IDLE = "Idle"
    RUNNING = "Running"
    STOPPED = "Stopped"


@dataclass
class ScheduleReport:
    rows: int = 0
    elapsed_s: float = 0.0
    overruns: int = 0
    budget: BudgetStatus | None = None
    overload_warnings: list[str] = field(default_factory=list)


def install_stop_handlers(stop: threading.Event) -> None:
    """SIGINT/SIGTERM only set the event; the loop notices it at the next tick boundary."""

    def _handler(_signum, _frame) -> None:
        stop.set()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


class SampleScheduler:
    def __init__(
        self,
        sampler: SensorSampler,
        sink: CsvSampleSink,
        period_ms: int = DEFAULT_PERIOD_MS,
        live_view: LiveView | None = None,
        watch_ms: int = DEFAULT_WATCH_MS,
        stop: threading.Event | None = None,
        duration_s: float | None = None,
        overhead: OverheadMonitor | None = None,
        budget_every_rows: int = 50,
        status_stream: TextIO | None = None,
        clock_ns: Callable[[], int] = time.monotonic_ns,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.sampler = sampler
        self.sink = sink
        self.period_ms = period_ms if period_ms > 0 else DEFAULT_PERIOD_MS
        self.watch_ms = watch_ms if watch_ms > 0 else DEFAULT_WATCH_MS
        self.live_view = live_view
        self.stop = stop or threading.Event()
        self.duration_s = duration_s if duration_s and duration_s > 0 else None
        self.overhead = overhead
        self.budget_every_rows = max(1, budget_every_rows)
        self.status_stream = status_stream or sys.stderr
        self._clock_ns = clock_ns
        self._sleep = sleep
        self._state = SchedulerState.IDLE
        self._log = get_logger()

    @property
    def state(self) -> SchedulerState:
        return self._state

    def run(self) -> ScheduleReport:
        # Raises SinkOpenError before the loop starts; state stays Idle.
        self.sink.open()
        self._state = SchedulerState.RUNNING
        self._log.info(
            f"sampling started out={self.sink.path} period_ms={self.period_ms}",
            extra={"event": "sampling_started", "path": str(self.sink.path)},
        )

        report = ScheduleReport()
        period_ns = self.period_ms * _NS_PER_MS
        watch_ns = self.watch_ms * _NS_PER_MS
        duration_ns = int(self.duration_s * 1e9) if self.duration_s else None

        start_ns = self._clock_ns()
        deadline = start_ns
        prev_ts: int | None = None
        last_render: int | None = None

        try:
            while not self.stop.is_set():
                deadline += period_ns

                ts = self._clock_ns()
                dt = 0 if prev_ts is None else ts - prev_ts
                prev_ts = ts

                snapshot = self.sampler.read(ts)
                self.sink.write(snapshot, dt)
                report.rows += 1

                if self.live_view is not None and (last_render is None or ts - last_render >= watch_ns):
                    last_render = ts
                    self.live_view.render(snapshot)

                if self.overhead is not None and report.rows % self.budget_every_rows == 0:
                    self._check_budget(report)

                if duration_ns is not None and self._clock_ns() - start_ns >= duration_ns:
                    break

                remaining = deadline - self._clock_ns()
                if remaining > 0:
                    self._sleep(remaining / 1e9)
                else:
                    report.overruns += 1
        finally:
            self.sink.close()
            self._state = SchedulerState.STOPPED
            if self.live_view is not None:
                self.live_view.close()

        report.elapsed_s = (self._clock_ns() - start_ns) / 1e9
        if self.overhead is not None:
            report.budget = self.overhead.sample()
        self._log.info(
            f"sampling stopped rows={report.rows} overruns={report.overruns} elapsed_s={report.elapsed_s:.3f}",
            extra={"event": "sampling_stopped", "rows": report.rows, "overruns": report.overruns},
        )
        self.status_stream.write(f"Stopped. rows={report.rows} overruns={report.overruns}\n")
        self.status_stream.flush()
        return report

    def _check_budget(self, report: ScheduleReport) -> None:
        budget = self.overhead.sample()  # type: ignore[union-attr]
        report.budget = budget
        if budget.overloaded and budget.warning not in report.overload_warnings:
            report.overload_warnings.append(budget.warning or "overloaded")
            self._log.warning(
                f"sampler over budget cpu_percent={budget.cpu_percent:.1f} rss_mb={budget.rss_mb:.1f}",
                extra={"event": "budget_overload"},
            )
