"""Host telemetry sampling and aggregation for SysProbe."""

from .aggregate import aggregate_cpu, aggregate_network, itemize_network
from .availability import Availability, OptionalSource
from .collector import (
    TelemetryCollector,
    battery,
    cpu_frequency,
    cpu_info,
    cpu_usage,
    gpu_usage,
    network_rate,
    ram_usage,
    read_cpu_info,
    temperature_sensors,
    vram_size,
    vram_usage,
)
from .errors import ConfigError, SourceUnavailable, TelemetryError, TransientReadFailure
from .models import (
    Backlight,
    Battery,
    BatteryStatus,
    ByteSize,
    CounterDelta,
    CounterSnapshot,
    CpuInfo,
    CpuUsage,
    InterfaceRate,
    IPv4Address,
    LoadAverage,
    MetricSnapshot,
    NetworkInterface,
    NetworkRate,
    ProcessorFrequency,
    ProcessorUsage,
    SchedulerPolicy,
    StoragePartition,
    TemperatureSensor,
)
from .projection import project_rate, project_usage
from .sampling import delta, sample_pair

__all__ = [
    "Availability",
    "Backlight",
    "Battery",
    "BatteryStatus",
    "ByteSize",
    "ConfigError",
    "CounterDelta",
    "CounterSnapshot",
    "CpuInfo",
    "CpuUsage",
    "InterfaceRate",
    "IPv4Address",
    "LoadAverage",
    "MetricSnapshot",
    "NetworkInterface",
    "NetworkRate",
    "OptionalSource",
    "ProcessorFrequency",
    "ProcessorUsage",
    "SchedulerPolicy",
    "SourceUnavailable",
    "StoragePartition",
    "TelemetryError",
    "TemperatureSensor",
    "TelemetryCollector",
    "TransientReadFailure",
    "aggregate_cpu",
    "aggregate_network",
    "delta",
    "itemize_network",
    "project_rate",
    "project_usage",
    "sample_pair",
    "battery",
    "cpu_frequency",
    "cpu_info",
    "cpu_usage",
    "gpu_usage",
    "network_rate",
    "ram_usage",
    "read_cpu_info",
    "temperature_sensors",
    "vram_size",
    "vram_usage",
]