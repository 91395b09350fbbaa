"""Usage and rate projections from counter deltas."""

from __future__ import annotations

from typing import Sequence

from .models import NetworkRate, ProcessorUsage

# Order of the kernel time-in-state counters in a processor row.
CPU_STATES = ("user", "nice", "system", "idle", "iowait", "irq", "softirq", "steal")

_IDLE = CPU_STATES.index("idle")


def project_usage(counters: Sequence[int]) -> ProcessorUsage:
    """Normalize one processor row of counter deltas into percentages."""
    if len(counters) != len(CPU_STATES):
        raise ValueError(f"expected {len(CPU_STATES)} cpu counters, got {len(counters)}")

    values = [max(int(v), 0) for v in counters]
    total_delta = sum(values)
    if total_delta == 0:
        return ProcessorUsage()

    pct = [100.0 * v / total_delta for v in values]
    user, nice, system, idle, iowait, irq, softirq, steal = pct
    return ProcessorUsage(
        total=100.0 - pct[_IDLE],
        user=user,
        nice=nice,
        system=system,
        idle=idle,
        iowait=iowait,
        interrupt=irq,
        soft_interrupt=softirq,
        steal=steal,
    )


def project_rate(download_bytes: int, upload_bytes: int, elapsed_s: float) -> NetworkRate:
    if not elapsed_s > 0:
        return NetworkRate()
    return NetworkRate(
        download=max(download_bytes, 0) / elapsed_s,
        upload=max(upload_bytes, 0) / elapsed_s,
    )
