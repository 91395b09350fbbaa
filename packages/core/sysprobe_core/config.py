"""Persistent settings schema and load/save helpers."""

from __future__ import annotations

import json
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any


CONFIG_VERSION = 2

INTERVAL_MS_MIN = 50
INTERVAL_MS_MAX = 10_000


@dataclass
class SamplingConfig:
    cpu_interval_ms: int = 250
    network_interval_ms: int = 500
    include_loopback: bool = False
    sysfs_root: str = "/sys"

    @property
    def cpu_interval_s(self) -> float:
        return self.cpu_interval_ms / 1000.0

    @property
    def network_interval_s(self) -> float:
        return self.network_interval_ms / 1000.0


@dataclass
class DiagnosticsConfig:
    keep_log_files: int = 7
    console_logging: bool = False


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)


def config_path() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "SysProbe" / "config.json"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "SysProbe" / "config.json"
    return Path.home() / ".config" / "sysprobe" / "config.json"


def _merge(dataclass_type, raw: Any):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k) and not isinstance(getattr(type(defaults), k, None), property):
            setattr(defaults, k, v)
    return defaults


def _clamp_interval(value: Any, default: int) -> int:
    try:
        ms = int(value)
    except (TypeError, ValueError):
        return default
    return max(INTERVAL_MS_MIN, min(INTERVAL_MS_MAX, ms))


def _normalize_sampling(cfg: AppConfig) -> None:
    defaults = SamplingConfig()
    cfg.sampling.cpu_interval_ms = _clamp_interval(cfg.sampling.cpu_interval_ms, defaults.cpu_interval_ms)
    cfg.sampling.network_interval_ms = _clamp_interval(cfg.sampling.network_interval_ms, defaults.network_interval_ms)
    cfg.sampling.include_loopback = bool(cfg.sampling.include_loopback)
    cfg.sampling.sysfs_root = str(cfg.sampling.sysfs_root or defaults.sysfs_root)


def _normalize_diagnostics(cfg: AppConfig) -> None:
    try:
        keep = int(cfg.diagnostics.keep_log_files)
    except (TypeError, ValueError):
        keep = DiagnosticsConfig().keep_log_files
    cfg.diagnostics.keep_log_files = max(2, keep)
    cfg.diagnostics.console_logging = bool(cfg.diagnostics.console_logging)


def _version(raw: dict[str, Any], default: int) -> int:
    try:
        return int(raw.get("config_version", default))
    except (TypeError, ValueError):
        return default


def _migrate(raw: dict[str, Any]) -> dict[str, Any]:
    version = _version(raw, 1)
    data = dict(raw)

    if version < 2:
        # v1 had a single top-level interval shared by cpu and network sampling.
        sampling = data.get("sampling")
        sampling = dict(sampling) if isinstance(sampling, dict) else {}
        if "interval_ms" in data:
            interval = data.pop("interval_ms")
            sampling.setdefault("cpu_interval_ms", interval)
            sampling.setdefault("network_interval_ms", interval)
        data["sampling"] = sampling
        data.setdefault("diagnostics", {})
        data["config_version"] = 2

    return data


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return AppConfig()
    if not isinstance(raw, dict):
        return AppConfig()

    data = _migrate(raw)
    cfg = AppConfig(
        config_version=_version(data, CONFIG_VERSION),
        sampling=_merge(SamplingConfig, data.get("sampling", {})),
        diagnostics=_merge(DiagnosticsConfig, data.get("diagnostics", {})),
    )

    _normalize_sampling(cfg)
    _normalize_diagnostics(cfg)
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
