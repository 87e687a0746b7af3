"""Persistent tool settings schema and load/save helpers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from dvfstool_sysfs import DEFAULT_THERMAL_KEYWORDS, DiscoveryKeywords, SysfsLayout
from dvfstool_telemetry import THERMAL_ZONE_NAMES


CONFIG_VERSION = 1

DEFAULT_PERIOD_MS = 100
DEFAULT_WATCH_MS = 200

_LAYOUT = SysfsLayout()
_KEYWORDS = DiscoveryKeywords()


@dataclass
class SysfsPathsConfig:
    cpufreq_root: str = _LAYOUT.cpufreq_root
    cpu_legacy_dir: str = _LAYOUT.cpu_legacy_dir
    devfreq_root: str = _LAYOUT.devfreq_root
    thermal_root: str = _LAYOUT.thermal_root
    fan_pwm_path: str = _LAYOUT.fan_pwm_path


@dataclass
class DiscoveryConfig:
    gpu_keywords: list[str] = field(default_factory=lambda: list(_KEYWORDS.gpu))
    gpu_excluded_keywords: list[str] = field(default_factory=lambda: list(_KEYWORDS.gpu_excluded))
    fan_type_keywords: list[str] = field(default_factory=lambda: list(_KEYWORDS.fan_type))
    thermal_zones: dict[str, list[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_THERMAL_KEYWORDS.items()}
    )


@dataclass
class SamplingConfig:
    period_ms: int = DEFAULT_PERIOD_MS
    watch_ms: int = DEFAULT_WATCH_MS
    flush_every: int = 10
    out: str = "run.csv"


@dataclass
class UnlockConfig:
    gpu_governor: str = "nvhost_podgov"
    gpu_min_fallback_hz: str = "306000000"
    gpu_max_fallback_hz: str = "1020000000"


@dataclass
class DiagnosticsConfig:
    keep_log_files: int = 7
    thermal_zone_listing: int = 12


@dataclass
class PerformanceConfig:
    cpu_percent_max: float = 5.0
    rss_mb_max: float = 64.0
    budget_every_rows: int = 50


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    sysfs: SysfsPathsConfig = field(default_factory=SysfsPathsConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    unlock: UnlockConfig = field(default_factory=UnlockConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)

    def layout(self) -> SysfsLayout:
        return SysfsLayout(**asdict(self.sysfs))

    def keywords(self) -> DiscoveryKeywords:
        d = self.discovery
        return DiscoveryKeywords(
            gpu=tuple(d.gpu_keywords),
            gpu_excluded=tuple(d.gpu_excluded_keywords),
            fan_type=tuple(d.fan_type_keywords),
            thermal_zones={name: tuple(kws) for name, kws in d.thermal_zones.items()},
        )


def config_root() -> Path:
    override = os.environ.get("DVFSTOOL_HOME")
    if override:
        return Path(override)
    base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / "dvfstool"


def config_path() -> Path:
    return config_root() / "config.json"


def _merge(dataclass_type, raw: Any):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _keyword_list(value: Any, default: list[str]) -> list[str]:
    # A bare string is one keyword, not a sequence of single-character keywords.
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(kw) for kw in value]
    return list(default)


def _normalize_sysfs(cfg: AppConfig) -> None:
    defaults = SysfsPathsConfig()
    for name, default in asdict(defaults).items():
        if not isinstance(getattr(cfg.sysfs, name), str):
            setattr(cfg.sysfs, name, default)


def _normalize_sampling(cfg: AppConfig) -> None:
    s = cfg.sampling
    s.period_ms = int(s.period_ms) if int(s.period_ms) > 0 else DEFAULT_PERIOD_MS
    s.watch_ms = int(s.watch_ms) if int(s.watch_ms) > 0 else DEFAULT_WATCH_MS
    s.flush_every = max(1, int(s.flush_every))


def _normalize_discovery(cfg: AppConfig) -> None:
    d = cfg.discovery
    defaults = DiscoveryConfig()
    zones = d.thermal_zones if isinstance(d.thermal_zones, dict) else {}
    d.thermal_zones = {}
    for name in THERMAL_ZONE_NAMES:
        default = list(DEFAULT_THERMAL_KEYWORDS[name])
        d.thermal_zones[name] = _keyword_list(zones.get(name) or default, default)
    d.gpu_keywords = _keyword_list(d.gpu_keywords, defaults.gpu_keywords)
    d.gpu_excluded_keywords = _keyword_list(d.gpu_excluded_keywords, defaults.gpu_excluded_keywords)
    d.fan_type_keywords = _keyword_list(d.fan_type_keywords, defaults.fan_type_keywords)


def _normalize_performance(cfg: AppConfig) -> None:
    p = cfg.performance
    p.cpu_percent_max = float(max(0.5, float(p.cpu_percent_max)))
    p.rss_mb_max = float(max(16.0, float(p.rss_mb_max)))
    p.budget_every_rows = max(1, int(p.budget_every_rows))


def _fallback(path: Path, reason: object) -> AppConfig:
    logging.getLogger("dvfstool").warning(
        f"config unreadable, using defaults path={path} err={reason}",
        extra={"event": "config_fallback", "path": str(path)},
    )
    return AppConfig()


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:
        return _fallback(path, exc)
    if not isinstance(data, dict):
        return _fallback(path, f"top-level {type(data).__name__}, expected object")

    try:
        cfg = AppConfig(
            config_version=int(data.get("config_version", CONFIG_VERSION)),
            sysfs=_merge(SysfsPathsConfig, data.get("sysfs")),
            discovery=_merge(DiscoveryConfig, data.get("discovery")),
            sampling=_merge(SamplingConfig, data.get("sampling")),
            unlock=_merge(UnlockConfig, data.get("unlock")),
            diagnostics=_merge(DiagnosticsConfig, data.get("diagnostics")),
            performance=_merge(PerformanceConfig, data.get("performance")),
        )
        _normalize_sysfs(cfg)
        _normalize_sampling(cfg)
        _normalize_discovery(cfg)
        _normalize_performance(cfg)
    except (TypeError, ValueError) as exc:
        return _fallback(path, exc)
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
