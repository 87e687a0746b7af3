"""Sampler process overhead budgeting."""

from __future__ import annotations

from dataclasses import dataclass

import psutil


@dataclass(frozen=True)
class OverheadTargets:
    cpu_percent_max: float = 5.0
    rss_mb_max: float = 64.0


@dataclass(frozen=True)
class BudgetStatus:
    cpu_percent: float
    rss_mb: float
    overloaded: bool
    warning: str | None


class OverheadMonitor:
    def __init__(self, targets: OverheadTargets | None = None, process: psutil.Process | None = None) -> None:
        self.targets = targets or OverheadTargets()
        self._process = process or psutil.Process()
        # Prime non-blocking CPU measurement.
        self._process.cpu_percent(interval=None)

    def sample(self) -> BudgetStatus:
        cpu = float(self._process.cpu_percent(interval=None))
        rss_mb = float(self._process.memory_info().rss) / (1024 * 1024)

        warning = None
        if cpu > self.targets.cpu_percent_max:
            warning = "cpu_over_budget"
        elif rss_mb > self.targets.rss_mb_max:
            warning = "rss_over_budget"

        return BudgetStatus(
            cpu_percent=cpu,
            rss_mb=rss_mb,
            overloaded=warning is not None,
            warning=warning,
        )
