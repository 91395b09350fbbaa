import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from sysprobe_telemetry.errors import SourceUnavailable, TransientReadFailure
from sysprobe_telemetry.gpu import DrmGpuAdapter, GpuAdapter, NvmlGpuAdapter
from sysprobe_telemetry.models import BatteryStatus
from sysprobe_telemetry.sysfs import SysfsReader


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content + "\n", encoding="utf-8")


class SysfsTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.reader = SysfsReader(self.root)

    def tearDown(self):
        self._tmp.cleanup()

    def test_gpu_and_vram(self):
        device = self.root / "class" / "drm" / "card0" / "device"
        _write(device / "gpu_busy_percent", "37")
        _write(device / "mem_info_vram_total", str(8 * 1024**3))
        _write(device / "mem_info_vram_used", str(2 * 1024**3))
        self.assertTrue(self.reader.has_gpu())
        adapter = DrmGpuAdapter(self.reader)
        self.assertEqual(adapter.usage(), 37.0)
        self.assertAlmostEqual(adapter.vram_size().gib, 8.0)
        self.assertAlmostEqual(adapter.vram_usage(), 25.0)

    def test_missing_gpu_is_unsupported(self):
        self.assertFalse(self.reader.has_gpu())
        with self.assertRaises(SourceUnavailable):
            self.reader.gpu_busy_percent()
        with self.assertRaises(SourceUnavailable):
            GpuAdapter().vram_size()

    def test_malformed_value_is_transient(self):
        _write(self.root / "class" / "drm" / "card0" / "device" / "gpu_busy_percent", "n/a")
        with self.assertRaises(TransientReadFailure):
            self.reader.gpu_busy_percent()

    def test_battery_found_by_type(self):
        supplies = self.root / "class" / "power_supply"
        _write(supplies / "AC" / "type", "Mains")
        _write(supplies / "BAT0" / "type", "Battery")
        _write(supplies / "BAT0" / "capacity", "81")
        _write(supplies / "BAT0" / "status", "Discharging")
        battery = self.reader.battery()
        self.assertEqual(battery.capacity, 81)
        self.assertIs(battery.status, BatteryStatus.DISCHARGING)

    def test_battery_unknown_status_is_transient(self):
        bat = self.root / "class" / "power_supply" / "BAT0"
        _write(bat / "type", "Battery")
        _write(bat / "capacity", "100")
        _write(bat / "status", "Not charging")
        with self.assertRaises(TransientReadFailure):
            self.reader.battery()

    def test_no_battery(self):
        _write(self.root / "class" / "power_supply" / "AC" / "type", "Mains")
        with self.assertRaises(SourceUnavailable):
            self.reader.battery()

    def test_backlight(self):
        panel = self.root / "class" / "backlight" / "intel_backlight"
        _write(panel / "brightness", "300")
        _write(panel / "max_brightness", "1200")
        backlight = self.reader.backlight()
        self.assertEqual(backlight.brightness, 300)
        self.assertAlmostEqual(backlight.percent, 25.0)


    def test_scheduler_policies_ordered_numerically(self):
        base = self.root / "devices" / "system" / "cpu" / "cpufreq"
        for name in ("policy10", "policy2"):
            for attr, value in (
                ("scaling_governor", "schedutil"),
                ("scaling_driver", "acpi-cpufreq"),
                ("scaling_min_freq", "1200000"),
                ("scaling_max_freq", "3600000"),
            ):
                _write(base / name / attr, value)
        policies = self.reader.scheduler_policies()
        self.assertEqual([p.name for p in policies], ["policy2", "policy10"])
        self.assertAlmostEqual(policies[0].min_mhz, 1200.0)

    def test_no_cpufreq_is_unsupported(self):
        with self.assertRaises(SourceUnavailable):
            self.reader.scheduler_policies()
        self.assertIsNone(self.reader.clock_boost())
        self.assertEqual(self.reader.die_count(), 1)


class NvmlAdapterTests(unittest.TestCase):
    def _fake_nvml(self):
        nvml = mock.Mock()
        nvml.NVMLError = type("NVMLError", (Exception,), {})
        return nvml

    def test_close_shuts_down_once(self):
        nvml = self._fake_nvml()
        with mock.patch.dict(sys.modules, {"pynvml": nvml}):
            adapter = NvmlGpuAdapter()
        nvml.nvmlInit.assert_called_once_with()
        adapter.close()
        adapter.close()
        nvml.nvmlShutdown.assert_called_once_with()

    def test_shutdown_error_is_not_raised(self):
        nvml = self._fake_nvml()
        nvml.nvmlShutdown.side_effect = nvml.NVMLError("uninitialized")
        with mock.patch.dict(sys.modules, {"pynvml": nvml}):
            adapter = NvmlGpuAdapter()
        adapter.close()


if __name__ == "__main__":
    unittest.main()
