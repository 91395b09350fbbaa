"""Readers for optional Linux sysfs sources (DRM GPU, power supply, backlight, cpufreq)."""

from __future__ import annotations

from pathlib import Path

from .errors import SourceUnavailable, TransientReadFailure
from .models import Backlight, Battery, BatteryStatus, ByteSize, SchedulerPolicy


def _read_text(path: Path) -> str:
    if not path.exists():
        raise SourceUnavailable(f"{path} does not exist")
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise TransientReadFailure(f"{path}: {exc}") from exc


def _read_int(path: Path) -> int:
    raw = _read_text(path)
    try:
        return int(raw)
    except ValueError as exc:
        raise TransientReadFailure(f"{path}: unexpected content {raw!r}") from exc


class SysfsReader:
    """Reads single-value sysfs attributes under ``root`` (normally ``/sys``)."""

    def __init__(self, root: str | Path = "/sys", card: str = "card0") -> None:
        self.root = Path(root)
        self.card = card

    @property
    def drm_device(self) -> Path:
        return self.root / "class" / "drm" / self.card / "device"

    def has_gpu(self) -> bool:
        return (self.drm_device / "gpu_busy_percent").exists()

    def gpu_busy_percent(self) -> float:
        raw = _read_text(self.drm_device / "gpu_busy_percent")
        try:
            return float(raw)
        except ValueError as exc:
            raise TransientReadFailure(f"gpu_busy_percent: unexpected content {raw!r}") from exc

    def vram_total(self) -> ByteSize:
        return ByteSize(bytes=_read_int(self.drm_device / "mem_info_vram_total"))

    def vram_usage(self) -> float:
        total = _read_int(self.drm_device / "mem_info_vram_total")
        used = _read_int(self.drm_device / "mem_info_vram_used")
        if total <= 0:
            raise TransientReadFailure("mem_info_vram_total reported zero")
        return used * 100.0 / total

    def _battery_dir(self) -> Path:
        supplies = self.root / "class" / "power_supply"
        if not supplies.is_dir():
            raise SourceUnavailable(f"{supplies} does not exist")
        for entry in sorted(supplies.iterdir()):
            try:
                kind = (entry / "type").read_text(encoding="utf-8").strip()
            except OSError:
                continue
            if kind == "Battery" and (entry / "status").exists() and (entry / "capacity").exists():
                return entry
        raise SourceUnavailable("no battery power supply")

    def battery(self) -> Battery:
        path = self._battery_dir()
        capacity = _read_int(path / "capacity")
        raw_status = _read_text(path / "status")
        try:
            status = BatteryStatus(raw_status)
        except ValueError as exc:
            # "Not charging" and "Unknown" carry no usable state.
            raise TransientReadFailure(f"battery status {raw_status!r}") from exc
        return Battery(capacity=max(0, min(100, capacity)), status=status)

    def backlight(self) -> Backlight:
        base = self.root / "class" / "backlight"
        if not base.is_dir():
            raise SourceUnavailable(f"{base} does not exist")
        for entry in sorted(base.iterdir()):
            if (entry / "brightness").exists() and (entry / "max_brightness").exists():
                return Backlight(
                    brightness=_read_int(entry / "brightness"),
                    max_brightness=_read_int(entry / "max_brightness"),
                )
        raise SourceUnavailable("no backlight device")

    @property
    def cpu_dir(self) -> Path:
        return self.root / "devices" / "system" / "cpu"

    def die_count(self) -> int:
        """Highest ``die_id`` plus one; 1 when topology is not exposed."""
        highest = 0
        for entry in self.cpu_dir.glob("cpu[0-9]*"):
            try:
                highest = max(highest, int((entry / "topology" / "die_id").read_text(encoding="utf-8")))
            except (OSError, ValueError):
                continue
        return highest + 1

    def _policy_dirs(self) -> list[Path]:
        base = self.cpu_dir / "cpufreq"
        if not base.is_dir():
            raise SourceUnavailable(f"{base} does not exist")
        policies = [p for p in base.iterdir() if p.name.startswith("policy") and p.name[6:].isdigit()]
        return sorted(policies, key=lambda p: int(p.name[6:]))

    def cpu_governors(self) -> tuple[str, ...]:
        governors: list[str] = []
        for policy in self._policy_dirs():
            path = policy / "scaling_available_governors"
            if not path.exists():
                continue
            for name in _read_text(path).split():
                if name not in governors:
                    governors.append(name)
        return tuple(governors)

    def clock_boost(self) -> bool | None:
        path = self.cpu_dir / "cpufreq" / "boost"
        if not path.exists():
            return None
        return _read_text(path) == "1"

    def scheduler_policies(self) -> list[SchedulerPolicy]:
        policies: list[SchedulerPolicy] = []
        for policy in self._policy_dirs():
            policies.append(
                SchedulerPolicy(
                    name=policy.name,
                    governor=_read_text(policy / "scaling_governor"),
                    driver=_read_text(policy / "scaling_driver"),
                    min_mhz=_read_int(policy / "scaling_min_freq") / 1000.0,
                    max_mhz=_read_int(policy / "scaling_max_freq") / 1000.0,
                )
            )
        if not policies:
            raise SourceUnavailable("no cpufreq policies")
        return policies
