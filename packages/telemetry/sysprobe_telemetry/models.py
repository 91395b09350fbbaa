"""Typed telemetry models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Mapping

CPU_TOTAL_SCOPE = "cpu-total"


@dataclass(frozen=True)
class CounterSnapshot:
    """One reading of a counter set, keyed by scope id in enumeration order."""

    counters: Mapping[str, tuple[int, ...]]
    ts: float


@dataclass(frozen=True)
class CounterDelta:
    deltas: dict[str, tuple[int, ...]]
    elapsed_s: float
    dropped: tuple[str, ...] = ()

    @property
    def degenerate(self) -> bool:
        return not self.elapsed_s > 0


@dataclass(frozen=True)
class ProcessorUsage:
    total: float = 0.0
    user: float = 0.0
    nice: float = 0.0
    system: float = 0.0
    idle: float = 0.0
    iowait: float = 0.0
    interrupt: float = 0.0
    soft_interrupt: float = 0.0
    steal: float = 0.0


@dataclass(frozen=True)
class CpuUsage:
    average: ProcessorUsage
    processors: tuple[ProcessorUsage, ...] = ()


@dataclass(frozen=True)
class NetworkRate:
    download: float = 0.0
    upload: float = 0.0


@dataclass(frozen=True)
class InterfaceRate:
    interface: str
    rate: NetworkRate


@dataclass(frozen=True)
class TemperatureSensor:
    label: str
    temperature: float | None


class BatteryStatus(str, Enum):
    CHARGING = "Charging"
    DISCHARGING = "Discharging"
    FULL = "Full"


@dataclass(frozen=True)
class Battery:
    capacity: int
    status: BatteryStatus


@dataclass(frozen=True)
class ByteSize:
    """Byte count with base 1000 and base 1024 conversions."""

    bytes: int

    @property
    def kb(self) -> float:
        return self.bytes / 1000

    @property
    def mb(self) -> float:
        return self.bytes / 1000**2

    @property
    def gb(self) -> float:
        return self.bytes / 1000**3

    @property
    def kib(self) -> float:
        return self.bytes / 1024

    @property
    def mib(self) -> float:
        return self.bytes / 1024**2

    @property
    def gib(self) -> float:
        return self.bytes / 1024**3


@dataclass(frozen=True)
class Backlight:
    brightness: int
    max_brightness: int

    @property
    def percent(self) -> float:
        if self.max_brightness <= 0:
            return 0.0
        return self.brightness * 100.0 / self.max_brightness


@dataclass(frozen=True)
class LoadAverage:
    one_minute: float
    five_minutes: float
    fifteen_minutes: float


@dataclass(frozen=True)
class ProcessorFrequency:
    processor_id: str
    mhz: float


@dataclass(frozen=True)
class CpuInfo:
    model_name: str
    cores: int | None
    threads: int | None
    dies: int
    governors: tuple[str, ...]
    max_frequency_mhz: float | None
    clock_boost: bool | None
    architecture: str
    byte_order: str


@dataclass(frozen=True)
class SchedulerPolicy:
    """One cpufreq policy (a group of cores scaled together)."""

    name: str
    governor: str
    driver: str
    min_mhz: float
    max_mhz: float


@dataclass(frozen=True)
class StoragePartition:
    device: str
    mount_point: str
    file_system: str
    size: ByteSize
    used_percent: float


@dataclass(frozen=True)
class IPv4Address:
    address: str
    netmask: str
    broadcast: str | None
    cidr: int

    def __str__(self) -> str:
        return f"{self.address}/{self.cidr}"


@dataclass(frozen=True)
class NetworkInterface:
    name: str
    mac_address: str | None
    is_up: bool
    addresses: tuple[IPv4Address, ...] = ()


@dataclass(frozen=True)
class MetricSnapshot:
    cpu: CpuUsage
    cpu_frequency_mhz: float | None
    ram_percent: float
    ram_size: ByteSize
    network: NetworkRate
    interfaces: tuple[InterfaceRate, ...]
    temperatures: tuple[TemperatureSensor, ...]
    battery: Battery | None
    gpu_percent: float | None
    vram_size: ByteSize | None
    vram_percent: float | None
    backlight: Backlight | None
    load: LoadAverage | None
    timestamp: datetime
