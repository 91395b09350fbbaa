"""GPU adapters with graceful fallbacks."""

from __future__ import annotations

import logging

from .errors import SourceUnavailable, TransientReadFailure
from .models import ByteSize
from .sysfs import SysfsReader

logger = logging.getLogger("sysprobe.telemetry.gpu")


class GpuAdapter:
    vendor: str | None = None

    def usage(self) -> float:
        raise SourceUnavailable("no supported GPU")

    def vram_size(self) -> ByteSize:
        raise SourceUnavailable("no supported GPU")

    def vram_usage(self) -> float:
        raise SourceUnavailable("no supported GPU")

    def close(self) -> None:
        """Release vendor library state; a no-op for file-backed adapters."""


class DrmGpuAdapter(GpuAdapter):
    """amdgpu-style DRM device attributes."""

    vendor = "drm"

    def __init__(self, sysfs: SysfsReader) -> None:
        self._sysfs = sysfs

    def usage(self) -> float:
        return self._sysfs.gpu_busy_percent()

    def vram_size(self) -> ByteSize:
        return self._sysfs.vram_total()

    def vram_usage(self) -> float:
        return self._sysfs.vram_usage()


class NvmlGpuAdapter(GpuAdapter):
    vendor = "nvidia"

    def __init__(self) -> None:
        import pynvml  # type: ignore

        self._nvml = pynvml
        pynvml.nvmlInit()
        self._initialized = True

    def _handle(self):
        nvml = self._nvml
        try:
            if nvml.nvmlDeviceGetCount() < 1:
                raise SourceUnavailable("nvml reports no devices")
            return nvml.nvmlDeviceGetHandleByIndex(0)
        except nvml.NVMLError as exc:
            raise TransientReadFailure(str(exc)) from exc

    def usage(self) -> float:
        h = self._handle()
        try:
            return float(self._nvml.nvmlDeviceGetUtilizationRates(h).gpu)
        except self._nvml.NVMLError as exc:
            raise TransientReadFailure(str(exc)) from exc

    def _memory(self):
        h = self._handle()
        try:
            return self._nvml.nvmlDeviceGetMemoryInfo(h)
        except self._nvml.NVMLError as exc:
            raise TransientReadFailure(str(exc)) from exc

    def vram_size(self) -> ByteSize:
        return ByteSize(bytes=int(self._memory().total))

    def vram_usage(self) -> float:
        mem = self._memory()
        if not mem.total:
            raise TransientReadFailure("nvml reported zero vram")
        return float(mem.used) * 100.0 / float(mem.total)

    def close(self) -> None:
        # nvmlInit is reference counted; every init needs its own shutdown.
        if not self._initialized:
            return
        self._initialized = False
        try:
            self._nvml.nvmlShutdown()
        except self._nvml.NVMLError as exc:
            logger.debug("nvml shutdown failed: %s", exc, extra={"event": "nvml_shutdown_failed"})


def build_gpu_adapter(sysfs: SysfsReader) -> GpuAdapter:
    if sysfs.has_gpu():
        return DrmGpuAdapter(sysfs)
    try:
        return NvmlGpuAdapter()
    except Exception as exc:
        logger.debug("nvml unavailable: %s", exc, extra={"event": "nvml_unavailable"})
        return GpuAdapter()
