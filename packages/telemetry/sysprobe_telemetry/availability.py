"""Per-source availability tracking for optional readings."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Generic, TypeVar

from .errors import SourceUnavailable, TransientReadFailure

logger = logging.getLogger("sysprobe.telemetry.availability")

T = TypeVar("T")


class Availability(str, Enum):
    UNSUPPORTED = "unsupported"
    AVAILABLE = "available"


class OptionalSource(Generic[T]):
    """Wrap a reader so that a missing or flaky source reads as ``None``.

    ``SourceUnavailable`` is sticky: once raised, the source is never read
    again by this wrapper. Transient failures only blank the current call.
    """

    def __init__(self, name: str, read: Callable[[], T]) -> None:
        self.name = name
        self._read = read
        self.state: Availability | None = None

    @property
    def supported(self) -> bool:
        return self.state is not Availability.UNSUPPORTED

    def poll(self) -> T | None:
        if self.state is Availability.UNSUPPORTED:
            return None
        try:
            value = self._read()
        except SourceUnavailable as exc:
            self.state = Availability.UNSUPPORTED
            logger.info("%s unsupported on this host: %s", self.name, exc, extra={"event": "source_unsupported"})
            return None
        except (TransientReadFailure, OSError, ValueError) as exc:
            logger.debug("%s read failed: %s", self.name, exc, extra={"event": "source_read_failed"})
            return None
        self.state = Availability.AVAILABLE
        return value
