"""Core services: settings, sampling loop, CSV sink, write controls, probe and logging."""

from .config import AppConfig, config_path, load_config, save_config
from .controls import PlannedWrite, WritePlan, WriteReport, apply_plan, plan_pin, plan_unlock
from .performance import BudgetStatus, OverheadMonitor, OverheadTargets
from .probe import build_probe_payload
from .scheduler import SampleScheduler, ScheduleReport, SchedulerState, install_stop_handlers
from .sink import CSV_COLUMNS, CsvSampleSink, SinkOpenError

__all__ = [
    "AppConfig",
    "BudgetStatus",
    "CSV_COLUMNS",
    "CsvSampleSink",
    "OverheadMonitor",
    "OverheadTargets",
    "PlannedWrite",
    "SampleScheduler",
    "ScheduleReport",
    "SchedulerState",
    "SinkOpenError",
    "WritePlan",
    "WriteReport",
    "apply_plan",
    "build_probe_payload",
    "config_path",
    "install_stop_handlers",
    "load_config",
    "plan_pin",
    "plan_unlock",
    "save_config",
]
