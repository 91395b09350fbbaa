"""Host capability report for the ``doctor`` command."""

from __future__ import annotations

import platform
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

import psutil

from sysprobe_telemetry import TelemetryCollector

from .config import AppConfig


def build_doctor_payload(cfg: AppConfig, collector: TelemetryCollector | None = None) -> dict[str, Any]:
    owned = collector is None
    collector = collector or TelemetryCollector.from_config(cfg.sampling)
    sources = {"cpu": "available", "network": "available", "memory": "available"}
    try:
        sources.update(collector.availability())
    finally:
        if owned:
            collector.close()
    return {
        "ts_utc": datetime.now(timezone.utc).isoformat(),
        "platform": platform.platform(),
        "python": platform.python_version(),
        "psutil": psutil.__version__,
        "config": asdict(cfg),
        "sources": sources,
    }
