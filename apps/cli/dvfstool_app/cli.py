"""CLI entrypoints for dvfstool: probe, log, set, unlock and config."""

from __future__ import annotations

import argparse
import json
import sys
import threading
from dataclasses import asdict
from pathlib import Path

from dvfstool_core import (
    AppConfig,
    CsvSampleSink,
    OverheadMonitor,
    OverheadTargets,
    SampleScheduler,
    SinkOpenError,
    apply_plan,
    build_probe_payload,
    config_path,
    install_stop_handlers,
    load_config,
    plan_pin,
    plan_unlock,
    save_config,
)
from dvfstool_core.controls import WritePlan, WriteReport
from dvfstool_core.logging_setup import configure_logging, get_logger, install_crash_hooks
from dvfstool_renderer import LiveView
from dvfstool_sysfs import DeviceDiscovery, DeviceMap, DiscoveryError, SysfsAccessor, require_cpu_and_gpu, text_or
from dvfstool_telemetry import SensorSampler


EXIT_OK = 0
EXIT_SINK = 1
EXIT_DISCOVERY = 3
EXIT_WRITE = 4


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _load(args: argparse.Namespace) -> AppConfig:
    return load_config(Path(args.config).expanduser() if args.config else None)


def _discovery(cfg: AppConfig) -> DeviceDiscovery:
    return DeviceDiscovery(SysfsAccessor(), layout=cfg.layout(), keywords=cfg.keywords())


def _resolve_cpu_gpu(discovery: DeviceDiscovery) -> DeviceMap | None:
    devices = discovery.resolve()
    try:
        require_cpu_and_gpu(devices)
    except DiscoveryError as exc:
        get_logger().error(str(exc), extra={"event": "discovery_failed"})
        print(str(exc), file=sys.stderr)
        return None
    return devices


def _plan_payload(plan: WritePlan, report: WriteReport) -> dict[str, object]:
    payload: dict[str, object] = {
        "cpu_dir": plan.cpu_dir,
        "gpu_dir": plan.gpu_dir,
        "applied": report.applied,
        "writes": [
            {"path": w.path, "value": (w.value if w.value is not None else "<skip>"), "note": w.note}
            for w in report.planned
        ],
    }
    if report.applied:
        payload["results"] = [asdict(r) for r in report.results]
        payload["ok"] = report.ok
    else:
        payload["hint"] = "Dry-run (no sysfs writes). Add --apply to actually write."
    return payload


def cmd_probe(args: argparse.Namespace) -> int:
    cfg = _load(args)
    payload = build_probe_payload(_discovery(cfg), zone_limit=cfg.diagnostics.thermal_zone_listing)
    _print_json(payload)
    return EXIT_OK


def cmd_log(args: argparse.Namespace) -> int:
    cfg = _load(args)
    discovery = _discovery(cfg)
    devices = _resolve_cpu_gpu(discovery)
    if devices is None:
        return EXIT_DISCOVERY

    period_ms = args.period_ms if args.period_ms is not None else cfg.sampling.period_ms
    watch_ms = args.watch_ms if args.watch_ms is not None else cfg.sampling.watch_ms
    out = Path(args.out or cfg.sampling.out).expanduser()

    stop = threading.Event()
    install_stop_handlers(stop)

    overhead = OverheadMonitor(
        OverheadTargets(cpu_percent_max=cfg.performance.cpu_percent_max, rss_mb_max=cfg.performance.rss_mb_max)
    )
    scheduler = SampleScheduler(
        sampler=SensorSampler(discovery.accessor, devices),
        sink=CsvSampleSink(out, flush_every=cfg.sampling.flush_every),
        period_ms=period_ms,
        live_view=(LiveView(sys.stderr) if args.watch else None),
        watch_ms=watch_ms,
        stop=stop,
        duration_s=args.seconds,
        overhead=overhead,
        budget_every_rows=cfg.performance.budget_every_rows,
    )

    if args.watch:
        print(f"Logging to {out} period={scheduler.period_ms}ms (watch={scheduler.watch_ms}ms)", file=sys.stderr)
    else:
        print(f"Logging to {out} period={scheduler.period_ms}ms", file=sys.stderr)
        print(f"cpu_dir={devices.cpu.describe()}", file=sys.stderr)
        print(f"gpu_dir={devices.gpu.describe()}", file=sys.stderr)
        print(f"fan_cd={devices.fan.describe()}", file=sys.stderr)
        print(f"fan_pwm={devices.fan_pwm.describe()}", file=sys.stderr)
        for name, location in devices.thermal.items():
            print(f"tz_{name}={location.describe()}", file=sys.stderr)

    try:
        report = scheduler.run()
    except SinkOpenError as exc:
        get_logger().error(str(exc), extra={"event": "sink_open_failed", "path": str(out)})
        print(str(exc), file=sys.stderr)
        return EXIT_SINK

    if report.overload_warnings and report.budget is not None:
        print(
            f"Over overhead budget ({', '.join(report.overload_warnings)}): "
            f"cpu={report.budget.cpu_percent:.1f}% rss={report.budget.rss_mb:.1f}MB elapsed={report.elapsed_s:.1f}s",
            file=sys.stderr,
        )
    return EXIT_OK


def cmd_set(args: argparse.Namespace) -> int:
    cfg = _load(args)
    discovery = _discovery(cfg)
    devices = _resolve_cpu_gpu(discovery)
    if devices is None:
        return EXIT_DISCOVERY

    accessor = discovery.accessor
    plan = plan_pin(devices.cpu, devices.gpu, cpu_khz=args.cpu_khz, gpu_hz=args.gpu_hz)
    report = apply_plan(accessor, plan, apply=args.apply)
    payload = _plan_payload(plan, report)
    if report.applied:
        payload["readback"] = {
            "cpu_cur_khz": text_or(accessor.read_text(devices.cpu.attr("scaling_cur_freq") or ""), "<N/A>"),
            "gpu_cur_hz": text_or(accessor.read_text(devices.gpu.attr("cur_freq") or ""), "<N/A>"),
            "gpu_min_hz": text_or(accessor.read_text(devices.gpu.attr("min_freq") or ""), "<N/A>"),
            "gpu_max_hz": text_or(accessor.read_text(devices.gpu.attr("max_freq") or ""), "<N/A>"),
        }
    _print_json(payload)
    return EXIT_OK if report.ok else EXIT_WRITE


def cmd_unlock(args: argparse.Namespace) -> int:
    cfg = _load(args)
    discovery = _discovery(cfg)
    devices = _resolve_cpu_gpu(discovery)
    if devices is None:
        return EXIT_DISCOVERY

    plan = plan_unlock(discovery.accessor, devices.cpu, devices.gpu, cfg.unlock)
    report = apply_plan(discovery.accessor, plan, apply=args.apply)
    _print_json(_plan_payload(plan, report))
    return EXIT_OK if report.ok else EXIT_WRITE


def cmd_config_show(args: argparse.Namespace) -> int:
    cfg = _load(args)
    _print_json(asdict(cfg))
    return EXIT_OK


def cmd_config_init(args: argparse.Namespace) -> int:
    path = Path(args.config).expanduser() if args.config else config_path()
    if path.exists() and not args.force:
        print(f"{path} exists; pass --force to overwrite", file=sys.stderr)
        return 2
    written = save_config(AppConfig(), path)
    _print_json({"config_path": str(written)})
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dvfstool",
        description="Probe, log and pin CPU/GPU DVFS state through sysfs",
        epilog="Writes are dry-run unless --apply is given.",
    )
    parser.add_argument("--config", default=None, help="Path to config.json (default: ~/.config/dvfstool)")
    parser.add_argument("--verbose", action="store_true", help="Debug-level file logging")
    sub = parser.add_subparsers(dest="command", required=True)

    probe_cmd = sub.add_parser("probe", help="Print discovered sysfs dirs and attributes")
    probe_cmd.set_defaults(func=cmd_probe)

    log_cmd = sub.add_parser("log", help="Sample DVFS/fan/thermal state into a CSV file")
    log_cmd.add_argument("--out", default=None, help="CSV output path (created fresh)")
    log_cmd.add_argument("--period-ms", type=int, default=None, help="Sampling period (default 100)")
    log_cmd.add_argument("--watch", action="store_true", help="Live status view on stderr")
    log_cmd.add_argument("--watch-ms", type=int, default=None, help="Minimum live view refresh interval (default 200)")
    log_cmd.add_argument("--seconds", type=float, default=None, help="Stop after this many seconds")
    log_cmd.set_defaults(func=cmd_log)

    set_cmd = sub.add_parser("set", help="Pin CPU and GPU to a single frequency")
    set_cmd.add_argument("--cpu-khz", required=True)
    set_cmd.add_argument("--gpu-hz", required=True)
    set_cmd.add_argument("--apply", action="store_true", help="Actually write sysfs")
    set_cmd.set_defaults(func=cmd_set)

    unlock_cmd = sub.add_parser("unlock", help="Restore platform min/max bounds and GPU governor")
    unlock_cmd.add_argument("--apply", action="store_true", help="Actually write sysfs")
    unlock_cmd.set_defaults(func=cmd_unlock)

    config_cmd = sub.add_parser("config", help="Show or initialise the config file")
    config_sub = config_cmd.add_subparsers(dest="config_cmd", required=True)
    show_cmd = config_sub.add_parser("show", help="Print effective config")
    show_cmd.set_defaults(func=cmd_config_show)
    init_cmd = config_sub.add_parser("init", help="Write default config")
    init_cmd.add_argument("--force", action="store_true")
    init_cmd.set_defaults(func=cmd_config_init)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(keep_files=_load(args).diagnostics.keep_log_files, verbose=args.verbose)
    install_crash_hooks()
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
