"""Raw counter readers backed by psutil and procfs."""

from __future__ import annotations

import ipaddress
import os
import socket
from pathlib import Path
from typing import Protocol

import psutil

from .errors import SourceUnavailable, TransientReadFailure
from .models import (
    CPU_TOTAL_SCOPE,
    Battery,
    BatteryStatus,
    ByteSize,
    IPv4Address,
    LoadAverage,
    NetworkInterface,
    ProcessorFrequency,
    StoragePartition,
    TemperatureSensor,
)
from .projection import CPU_STATES


def _clock_ticks() -> int:
    try:
        return int(os.sysconf("SC_CLK_TCK"))
    except (AttributeError, ValueError, OSError):
        return 100


CLOCK_TICKS = _clock_ticks()


class CounterReader(Protocol):
    def cpu_counters(self) -> dict[str, tuple[int, ...]]: ...

    def network_counters(self) -> dict[str, tuple[int, ...]]: ...

    def memory(self) -> tuple[int, int]: ...

    def temperatures(self) -> list[TemperatureSensor]: ...

    def cpu_frequencies(self) -> list[ProcessorFrequency]: ...

    def load_average(self) -> LoadAverage: ...

    def battery(self) -> Battery: ...

    def storage_partitions(self) -> list[StoragePartition]: ...

    def network_interfaces(self) -> list[NetworkInterface]: ...


def _ticks(cpu_times) -> tuple[int, ...]:
    # psutil reports seconds; platforms without a state report 0 for it.
    return tuple(int(round(getattr(cpu_times, state, 0.0) * CLOCK_TICKS)) for state in CPU_STATES)


def parse_proc_stat(text: str) -> dict[str, tuple[int, ...]]:
    """Map ``/proc/stat`` cpu rows to scope ids, keeping the kernel's core labels.

    Offline cores have no row, so ``cpu3`` stays ``cpu3`` even when ``cpu2``
    is missing. Older kernels report fewer states; those are padded with 0.
    """
    counters: dict[str, tuple[int, ...]] = {}
    width = len(CPU_STATES)
    for line in text.splitlines():
        fields = line.split()
        if not fields or not fields[0].startswith("cpu"):
            continue
        label = fields[0]
        if label == "cpu":
            scope = CPU_TOTAL_SCOPE
        elif label[3:].isdigit():
            scope = label
        else:
            continue
        values = [int(v) for v in fields[1 : 1 + width]]
        counters[scope] = tuple(values + [0] * (width - len(values)))
    return counters


def _prefix_length(netmask: str) -> int:
    return ipaddress.IPv4Network(f"0.0.0.0/{netmask}").prefixlen


class PsutilCounterReader:
    """Single-shot extraction of cumulative and instantaneous readings."""

    def __init__(self, proc_root: str | Path = "/proc") -> None:
        self.proc_root = Path(proc_root)

    def cpu_counters(self) -> dict[str, tuple[int, ...]]:
        stat = self.proc_root / "stat"
        if stat.exists():
            counters = parse_proc_stat(stat.read_text(encoding="utf-8"))
            if len(counters) > 1:
                return counters
        return self._psutil_cpu_counters()

    def _psutil_cpu_counters(self) -> dict[str, tuple[int, ...]]:
        # Without procfs psutil gives no core labels, only the order of online cores.
        counters = {CPU_TOTAL_SCOPE: _ticks(psutil.cpu_times())}
        for idx, times in enumerate(psutil.cpu_times(percpu=True)):
            counters[f"cpu{idx}"] = _ticks(times)
        return counters

    def network_counters(self) -> dict[str, tuple[int, ...]]:
        pernic = psutil.net_io_counters(pernic=True) or {}
        return {name: (int(nic.bytes_recv), int(nic.bytes_sent)) for name, nic in pernic.items()}

    def memory(self) -> tuple[int, int]:
        vm = psutil.virtual_memory()
        return int(vm.total), int(vm.available)

    def temperatures(self) -> list[TemperatureSensor]:
        if not hasattr(psutil, "sensors_temperatures"):
            raise SourceUnavailable("psutil exposes no temperature sensors on this platform")
        try:
            temps = psutil.sensors_temperatures()
        except OSError as exc:
            raise TransientReadFailure(str(exc)) from exc

        sensors: list[TemperatureSensor] = []
        for name, entries in temps.items():
            for entry in entries:
                label = f"{name}/{entry.label}" if entry.label else name
                current = float(entry.current) if entry.current is not None else None
                sensors.append(TemperatureSensor(label=label, temperature=current))
        return sensors

    def cpu_frequencies(self) -> list[ProcessorFrequency]:
        if not hasattr(psutil, "cpu_freq"):
            raise SourceUnavailable("cpu frequency not exposed on this platform")
        try:
            freqs = psutil.cpu_freq(percpu=True) or []
        except NotImplementedError as exc:
            raise SourceUnavailable(str(exc)) from exc
        return [
            ProcessorFrequency(processor_id=str(idx), mhz=float(freq.current))
            for idx, freq in enumerate(freqs)
            if freq.current
        ]

    def load_average(self) -> LoadAverage:
        if not hasattr(psutil, "getloadavg"):
            raise SourceUnavailable("load average not exposed on this platform")
        one, five, fifteen = psutil.getloadavg()
        return LoadAverage(one_minute=float(one), five_minutes=float(five), fifteen_minutes=float(fifteen))

    def battery(self) -> Battery:
        if not hasattr(psutil, "sensors_battery"):
            raise SourceUnavailable("battery not exposed on this platform")
        batt = psutil.sensors_battery()
        if batt is None:
            raise SourceUnavailable("no battery installed")

        capacity = max(0, min(100, int(round(batt.percent))))
        if batt.power_plugged is None:
            raise TransientReadFailure("battery charging state unknown")
        if batt.power_plugged:
            status = BatteryStatus.FULL if capacity >= 100 else BatteryStatus.CHARGING
        else:
            status = BatteryStatus.DISCHARGING
        return Battery(capacity=capacity, status=status)

    def storage_partitions(self) -> list[StoragePartition]:
        if not hasattr(psutil, "disk_partitions"):
            raise SourceUnavailable("disk partitions not exposed on this platform")
        try:
            parts = psutil.disk_partitions(all=False)
        except OSError as exc:
            raise TransientReadFailure(str(exc)) from exc

        partitions: list[StoragePartition] = []
        for part in parts:
            try:
                usage = psutil.disk_usage(part.mountpoint)
            except OSError:
                # Unmounted media and permission-restricted mounts.
                continue
            partitions.append(
                StoragePartition(
                    device=part.device,
                    mount_point=part.mountpoint,
                    file_system=part.fstype,
                    size=ByteSize(bytes=int(usage.total)),
                    used_percent=float(usage.percent),
                )
            )
        return partitions

    def network_interfaces(self) -> list[NetworkInterface]:
        if not hasattr(psutil, "net_if_addrs"):
            raise SourceUnavailable("network interfaces not exposed on this platform")
        try:
            addrs = psutil.net_if_addrs()
            stats = psutil.net_if_stats()
        except OSError as exc:
            raise TransientReadFailure(str(exc)) from exc

        interfaces: list[NetworkInterface] = []
        for name, entries in addrs.items():
            mac = None
            ipv4: list[IPv4Address] = []
            for entry in entries:
                if entry.family == psutil.AF_LINK:
                    mac = entry.address
                elif entry.family == socket.AF_INET and entry.netmask:
                    ipv4.append(
                        IPv4Address(
                            address=entry.address,
                            netmask=entry.netmask,
                            broadcast=entry.broadcast,
                            cidr=_prefix_length(entry.netmask),
                        )
                    )
            stat = stats.get(name)
            interfaces.append(
                NetworkInterface(
                    name=name,
                    mac_address=mac,
                    is_up=bool(stat.isup) if stat is not None else False,
                    addresses=tuple(ipv4),
                )
            )
        return interfaces
