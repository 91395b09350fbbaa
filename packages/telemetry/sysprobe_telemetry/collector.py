"""On-demand host metric collection.

Delta-based metrics (cpu usage, network rate) read the counters, sleep one
sampling interval and read again on the caller's thread. Nothing samples in
the background and no state is shared between calls besides the sticky
"unsupported" flag of optional sources.
"""

from __future__ import annotations

import math
import platform
import sys
import time
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable, Protocol

import psutil

from .aggregate import aggregate_cpu, aggregate_network, itemize_network
from .availability import OptionalSource
from .errors import ConfigError, SourceUnavailable, TransientReadFailure
from .gpu import GpuAdapter, build_gpu_adapter
from .models import (
    Backlight,
    Battery,
    ByteSize,
    CounterDelta,
    CounterSnapshot,
    CpuInfo,
    CpuUsage,
    InterfaceRate,
    LoadAverage,
    MetricSnapshot,
    NetworkInterface,
    NetworkRate,
    ProcessorFrequency,
    SchedulerPolicy,
    StoragePartition,
    TemperatureSensor,
)
from .readers import CounterReader, PsutilCounterReader
from .sampling import delta, sample_pair
from .sysfs import SysfsReader

DEFAULT_CPU_INTERVAL_S = 0.25
DEFAULT_NETWORK_INTERVAL_S = 0.5


class SamplingSettings(Protocol):
    """The subset of ``sysprobe_core.config.SamplingConfig`` the collector reads."""

    @property
    def cpu_interval_s(self) -> float: ...

    @property
    def network_interval_s(self) -> float: ...

    include_loopback: bool
    sysfs_root: str


def _check_interval(name: str, value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{name} must be a number of seconds, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise ConfigError(f"{name} must be a positive finite number of seconds, got {value!r}")
    return float(value)


def _used_percent(total: int, available: int) -> float:
    if total <= 0:
        return 0.0
    return 100.0 - available * 100.0 / total


class TelemetryCollector:
    """Synchronous collection API with graceful optional-source fallbacks.

    The GPU adapter is only built the first time a GPU reading is requested,
    so collectors used for cpu/ram/network never touch vendor libraries.
    Call ``close()`` (or use the collector as a context manager) to release it.
    """

    def __init__(
        self,
        cpu_interval_s: float = DEFAULT_CPU_INTERVAL_S,
        network_interval_s: float = DEFAULT_NETWORK_INTERVAL_S,
        include_loopback: bool = False,
        reader: CounterReader | None = None,
        sysfs: SysfsReader | None = None,
        gpu: GpuAdapter | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.cpu_interval_s = _check_interval("cpu_interval_s", cpu_interval_s)
        self.network_interval_s = _check_interval("network_interval_s", network_interval_s)
        self.include_loopback = bool(include_loopback)
        self._reader = reader or PsutilCounterReader()
        self._sysfs = sysfs or SysfsReader()
        self._gpu = gpu
        self._sleep = sleep
        self._clock = clock

        self._temperatures = OptionalSource("temperature", self._reader.temperatures)
        self._frequencies = OptionalSource("cpu_frequency", self._reader.cpu_frequencies)
        self._load = OptionalSource("load_average", self._reader.load_average)
        self._battery = OptionalSource("battery", self._read_battery)
        self._backlight = OptionalSource("backlight", self._sysfs.backlight)
        self._gpu_usage = OptionalSource("gpu", lambda: self.gpu_adapter.usage())
        self._vram_size = OptionalSource("vram", lambda: self.gpu_adapter.vram_size())
        self._vram_usage = OptionalSource("vram_usage", lambda: self.gpu_adapter.vram_usage())
        self._policies = OptionalSource("scheduler_policies", self._sysfs.scheduler_policies)
        self._partitions = OptionalSource("storage", self._reader.storage_partitions)
        self._interfaces = OptionalSource("network_interfaces", self._reader.network_interfaces)

    @classmethod
    def from_config(cls, sampling: SamplingSettings, **kwargs) -> "TelemetryCollector":
        kwargs.setdefault("sysfs", SysfsReader(sampling.sysfs_root))
        return cls(
            cpu_interval_s=sampling.cpu_interval_s,
            network_interval_s=sampling.network_interval_s,
            include_loopback=sampling.include_loopback,
            **kwargs,
        )

    @property
    def gpu_adapter(self) -> GpuAdapter:
        if self._gpu is None:
            self._gpu = build_gpu_adapter(self._sysfs)
        return self._gpu

    def close(self) -> None:
        if self._gpu is not None:
            self._gpu.close()
            self._gpu = None

    def __enter__(self) -> "TelemetryCollector":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _snapshot(self, read: Callable[[], dict[str, tuple[int, ...]]]) -> CounterSnapshot:
        counters = read()
        return CounterSnapshot(counters=counters, ts=self._clock())

    def _sample(self, read: Callable[[], dict[str, tuple[int, ...]]], interval_s: float) -> CounterDelta:
        before, after = sample_pair(lambda: self._snapshot(read), interval_s, self._sleep)
        return delta(before, after)

    def _read_battery(self) -> Battery:
        try:
            return self._sysfs.battery()
        except SourceUnavailable:
            return self._reader.battery()

    def cpu_usage(self) -> CpuUsage:
        return aggregate_cpu(self._sample(self._reader.cpu_counters, self.cpu_interval_s))

    def network_rate(self) -> NetworkRate:
        sample = self._sample(self._reader.network_counters, self.network_interval_s)
        return aggregate_network(sample, include_loopback=self.include_loopback)

    def interface_rates(self) -> tuple[InterfaceRate, ...]:
        sample = self._sample(self._reader.network_counters, self.network_interval_s)
        return itemize_network(sample, include_loopback=self.include_loopback)

    def processor_frequencies(self) -> tuple[ProcessorFrequency, ...]:
        return tuple(self._frequencies.poll() or ())

    def cpu_frequency(self) -> float | None:
        """Average current frequency across processors, in MHz."""
        freqs = self.processor_frequencies()
        if not freqs:
            return None
        return sum(f.mhz for f in freqs) / len(freqs)

    def ram_usage(self) -> float:
        total, available = self._reader.memory()
        return _used_percent(total, available)

    def ram_size(self) -> ByteSize:
        total, _available = self._reader.memory()
        return ByteSize(bytes=total)

    def temperature_sensors(self) -> tuple[TemperatureSensor, ...]:
        return tuple(self._temperatures.poll() or ())

    def battery(self) -> Battery | None:
        return self._battery.poll()

    def gpu_usage(self) -> float | None:
        return self._gpu_usage.poll()

    def vram_size(self) -> ByteSize | None:
        return self._vram_size.poll()

    def vram_usage(self) -> float | None:
        return self._vram_usage.poll()

    def backlight(self) -> Backlight | None:
        return self._backlight.poll()

    def load_average(self) -> LoadAverage | None:
        return self._load.poll()

    def scheduler_policies(self) -> tuple[SchedulerPolicy, ...]:
        return tuple(self._policies.poll() or ())

    def storage_partitions(self) -> tuple[StoragePartition, ...]:
        return tuple(self._partitions.poll() or ())

    def network_interfaces(self) -> tuple[NetworkInterface, ...]:
        return tuple(self._interfaces.poll() or ())

    def cpu_info(self) -> CpuInfo:
        return read_cpu_info(self._sysfs)

    def collect_all(self) -> MetricSnapshot:
        network = self._sample(self._reader.network_counters, self.network_interval_s)
        total, available = self._reader.memory()
        return MetricSnapshot(
            cpu=self.cpu_usage(),
            cpu_frequency_mhz=self.cpu_frequency(),
            ram_percent=_used_percent(total, available),
            ram_size=ByteSize(bytes=total),
            network=aggregate_network(network, include_loopback=self.include_loopback),
            interfaces=itemize_network(network, include_loopback=self.include_loopback),
            temperatures=self.temperature_sensors(),
            battery=self.battery(),
            gpu_percent=self.gpu_usage(),
            vram_size=self.vram_size(),
            vram_percent=self.vram_usage(),
            backlight=self.backlight(),
            load=self.load_average(),
            timestamp=datetime.now(timezone.utc),
        )

    def availability(self) -> dict[str, str]:
        """Probe every optional source once and report its state."""
        sources = (
            self._temperatures,
            self._frequencies,
            self._load,
            self._battery,
            self._backlight,
            self._gpu_usage,
            self._vram_size,
            self._vram_usage,
            self._policies,
            self._partitions,
            self._interfaces,
        )
        report = {}
        for source in sources:
            value = source.poll()
            if not source.supported:
                report[source.name] = "unsupported"
            elif value is None:
                report[source.name] = "unreadable"
            else:
                report[source.name] = "available"
        return report




@lru_cache(maxsize=1)
def cpu_info() -> CpuInfo:
    """Static processor descriptors, read once per process."""
    return read_cpu_info(SysfsReader())


def read_cpu_info(sysfs: SysfsReader) -> CpuInfo:
    try:
        governors = sysfs.cpu_governors()
    except (SourceUnavailable, TransientReadFailure):
        governors = ()
    try:
        boost = sysfs.clock_boost()
    except TransientReadFailure:
        boost = None
    return CpuInfo(
        model_name=_model_name(),
        cores=psutil.cpu_count(logical=False),
        threads=psutil.cpu_count(logical=True),
        dies=sysfs.die_count(),
        governors=governors,
        max_frequency_mhz=_max_frequency(),
        clock_boost=boost,
        architecture="64 bit" if sys.maxsize > 2**32 else "32 bit",
        byte_order="Little Endian" if sys.byteorder == "little" else "Big Endian",
    )


def _max_frequency() -> float | None:
    if not hasattr(psutil, "cpu_freq"):
        return None
    try:
        freq = psutil.cpu_freq()
    except (OSError, NotImplementedError):
        return None
    return float(freq.max) if freq and freq.max else None


def _model_name() -> str:
    try:
        with open("/proc/cpuinfo", encoding="utf-8") as fh:
            for line in fh:
                if line.startswith("model name"):
                    return line.split(":", 1)[1].strip()
    except OSError:
        pass
    return platform.processor() or platform.machine()


def cpu_usage() -> CpuUsage:
    return TelemetryCollector().cpu_usage()


def cpu_frequency() -> float | None:
    return TelemetryCollector().cpu_frequency()


def ram_usage() -> float:
    return TelemetryCollector().ram_usage()


def network_rate() -> NetworkRate:
    return TelemetryCollector().network_rate()


def temperature_sensors() -> tuple[TemperatureSensor, ...]:
    return TelemetryCollector().temperature_sensors()


def battery() -> Battery | None:
    return TelemetryCollector().battery()


def gpu_usage() -> float | None:
    with TelemetryCollector() as collector:
        return collector.gpu_usage()


def vram_size() -> ByteSize | None:
    with TelemetryCollector() as collector:
        return collector.vram_size()


def vram_usage() -> float | None:
    with TelemetryCollector() as collector:
        return collector.vram_usage()
