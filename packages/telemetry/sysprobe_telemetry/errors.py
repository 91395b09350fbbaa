"""Error taxonomy for telemetry sources and sampling."""

from __future__ import annotations


class TelemetryError(Exception):
    """Base class for telemetry errors."""


class SourceUnavailable(TelemetryError):
    """The host or kernel does not expose the interface backing a metric."""


class TransientReadFailure(TelemetryError):
    """The interface exists but could not be read on this call."""


class ConfigError(TelemetryError, ValueError):
    """Invalid collector configuration, rejected before any read."""
