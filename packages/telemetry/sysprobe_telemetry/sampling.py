"""Two-read counter sampling and robust delta computation."""

from __future__ import annotations

import logging
from typing import Callable

from .models import CounterDelta, CounterSnapshot

logger = logging.getLogger("sysprobe.telemetry.sampling")


def delta(prev: CounterSnapshot, curr: CounterSnapshot) -> CounterDelta:
    """Per-scope counter deltas between two snapshots.

    Result order follows ``prev``. A scope that vanished or changed arity
    between the reads is dropped and reported in ``dropped``; scopes that only
    appear in ``curr`` are ignored. Counters that went backwards (wraparound
    or reset) contribute 0.
    """
    deltas: dict[str, tuple[int, ...]] = {}
    dropped: list[str] = []
    for scope, before in prev.counters.items():
        after = curr.counters.get(scope)
        if after is None or len(after) != len(before):
            dropped.append(scope)
            continue
        deltas[scope] = tuple(max(int(a) - int(b), 0) for b, a in zip(before, after))

    if dropped:
        logger.warning(
            "topology changed during sample, dropped %s",
            ",".join(dropped),
            extra={"event": "topology_changed"},
        )

    elapsed = curr.ts - prev.ts
    if not elapsed > 0:
        logger.debug("degenerate sampling interval %.6fs", elapsed, extra={"event": "degenerate_interval"})

    return CounterDelta(deltas=deltas, elapsed_s=elapsed, dropped=tuple(dropped))


def sample_pair(
    read: Callable[[], CounterSnapshot],
    interval_s: float,
    sleep: Callable[[float], None],
) -> tuple[CounterSnapshot, CounterSnapshot]:
    """Read, wait one sampling interval, read again."""
    before = read()
    sleep(interval_s)
    after = read()
    return before, after
