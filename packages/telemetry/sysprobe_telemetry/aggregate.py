"""Shape per-unit projections into itemized and whole-system views."""

from __future__ import annotations

import re

from .models import CPU_TOTAL_SCOPE, CounterDelta, CpuUsage, InterfaceRate, NetworkRate, ProcessorUsage
from .projection import CPU_STATES, project_usage, project_rate

_CORE_RE = re.compile(r"^cpu(\d+)$")


def is_loopback(interface: str) -> bool:
    name = interface.lower()
    return name == "lo" or name.startswith("lo:") or name.startswith("loopback")


def aggregate_cpu(sample: CounterDelta) -> CpuUsage:
    """Average from the kernel's own total row, processors from the per-core rows."""
    cores = [(scope, row) for scope, row in sample.deltas.items() if _CORE_RE.match(scope)]

    if sample.degenerate:
        return CpuUsage(average=ProcessorUsage(), processors=tuple(ProcessorUsage() for _ in cores))

    total_row = sample.deltas.get(CPU_TOTAL_SCOPE)
    if total_row is None:
        # Without a total row, the kernel's total is the sum of the core rows.
        total_row = tuple(sum(row[i] for _, row in cores) for i in range(len(CPU_STATES)))

    return CpuUsage(
        average=project_usage(total_row),
        processors=tuple(project_usage(row) for _, row in cores),
    )


def itemize_network(sample: CounterDelta, include_loopback: bool = False) -> tuple[InterfaceRate, ...]:
    return tuple(
        InterfaceRate(interface=name, rate=project_rate(rx, tx, sample.elapsed_s))
        for name, (rx, tx) in sample.deltas.items()
        if include_loopback or not is_loopback(name)
    )


def aggregate_network(sample: CounterDelta, include_loopback: bool = False) -> NetworkRate:
    rx_total = 0
    tx_total = 0
    for name, (rx, tx) in sample.deltas.items():
        if include_loopback or not is_loopback(name):
            rx_total += rx
            tx_total += tx
    return project_rate(rx_total, tx_total, sample.elapsed_s)
