import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from fakes import FakeReader, RecordingSleep, StepClock
from sysprobe_telemetry.collector import TelemetryCollector
from sysprobe_telemetry.errors import ConfigError
from sysprobe_telemetry.gpu import GpuAdapter
from sysprobe_telemetry.models import NetworkRate, ProcessorFrequency, ProcessorUsage, TemperatureSensor
from sysprobe_telemetry.sysfs import SysfsReader


CPU_BEFORE = {
    "cpu-total": (100, 0, 50, 850, 0, 0, 0, 0),
    "cpu0": (100, 0, 50, 850, 0, 0, 0, 0),
}
CPU_AFTER = {
    "cpu-total": (150, 0, 70, 880, 0, 0, 0, 0),
    "cpu0": (150, 0, 70, 880, 0, 0, 0, 0),
}
NET_BEFORE = {"lo": (10, 10), "eth0": (1_000_000, 200_000)}
NET_AFTER = {"lo": (999, 999), "eth0": (2_000_000, 250_000)}


class CollectorTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.sysfs = SysfsReader(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def _collector(self, reader, clock=None, sleep=None, **kwargs):
        return TelemetryCollector(
            reader=reader,
            sysfs=self.sysfs,
            gpu=GpuAdapter(),
            sleep=sleep or RecordingSleep(),
            clock=clock or StepClock(0.0, 0.25),
            **kwargs,
        )

    def test_cpu_usage_example(self):
        sleep = RecordingSleep()
        collector = self._collector(FakeReader(cpu=[CPU_BEFORE, CPU_AFTER]), sleep=sleep)
        usage = collector.cpu_usage()
        self.assertAlmostEqual(usage.average.total, 70.0)
        self.assertAlmostEqual(usage.average.user, 50.0)
        self.assertAlmostEqual(usage.average.system, 20.0)
        self.assertAlmostEqual(usage.average.idle, 30.0)
        self.assertEqual(len(usage.processors), 1)
        self.assertEqual(sleep.calls, [0.25])

    def test_network_rate_example(self):
        collector = self._collector(FakeReader(net=[NET_BEFORE, NET_AFTER]), clock=StepClock(10.0, 11.0))
        self.assertEqual(collector.network_rate(), NetworkRate(download=1_000_000.0, upload=50_000.0))

    def test_interface_rates_itemized(self):
        collector = self._collector(
            FakeReader(net=[NET_BEFORE, NET_AFTER]),
            clock=StepClock(10.0, 11.0),
            include_loopback=True,
        )
        rates = collector.interface_rates()
        self.assertEqual([r.interface for r in rates], ["lo", "eth0"])
        self.assertEqual(rates[0].rate, NetworkRate(download=989.0, upload=989.0))

    def test_degenerate_clock_yields_zero(self):
        collector = self._collector(
            FakeReader(cpu=[CPU_BEFORE, CPU_AFTER], net=[NET_BEFORE, NET_AFTER]),
            clock=StepClock(5.0),
        )
        usage = collector.cpu_usage()
        self.assertEqual(usage.average, ProcessorUsage())
        self.assertEqual(len(usage.processors), 1)
        self.assertEqual(collector.network_rate(), NetworkRate())

    def test_hot_unplugged_core_is_dropped(self):
        before = dict(CPU_BEFORE, cpu1=(0, 0, 0, 100, 0, 0, 0, 0))
        collector = self._collector(FakeReader(cpu=[before, CPU_AFTER]))
        with self.assertLogs("sysprobe.telemetry.sampling", level="WARNING"):
            usage = collector.cpu_usage()
        self.assertEqual(len(usage.processors), 1)

    def test_gpu_absent_host(self):
        collector = self._collector(FakeReader(cpu=[CPU_BEFORE, CPU_AFTER]))
        self.assertIsNone(collector.gpu_usage())
        self.assertIsNone(collector.vram_size())
        self.assertIsNone(collector.vram_usage())
        self.assertAlmostEqual(collector.cpu_usage().average.total, 70.0)
        self.assertAlmostEqual(collector.ram_usage(), 75.0)

    def test_optional_sources_absent(self):
        collector = self._collector(FakeReader())
        self.assertIsNone(collector.battery())
        self.assertIsNone(collector.backlight())
        self.assertIsNone(collector.load_average())
        self.assertIsNone(collector.cpu_frequency())
        self.assertEqual(collector.temperature_sensors(), ())
        self.assertEqual(
            collector.availability(),
            {
                "temperature": "unsupported",
                "cpu_frequency": "unsupported",
                "load_average": "unsupported",
                "battery": "unsupported",
                "backlight": "unsupported",
                "gpu": "unsupported",
                "vram": "unsupported",
                "vram_usage": "unsupported",
                "scheduler_policies": "unsupported",
                "storage": "unsupported",
                "network_interfaces": "unsupported",
            },
        )

    def test_instantaneous_readings(self):
        reader = FakeReader(
            temperatures=[TemperatureSensor("coretemp/Package id 0", 51.0), TemperatureSensor("acpitz", None)],
            frequencies=[ProcessorFrequency("0", 2000.0), ProcessorFrequency("1", 3000.0)],
            memory=(16 * 1024**3, 4 * 1024**3),
        )
        collector = self._collector(reader)
        self.assertEqual(len(collector.temperature_sensors()), 2)
        self.assertIsNone(collector.temperature_sensors()[1].temperature)
        self.assertAlmostEqual(collector.cpu_frequency(), 2500.0)
        self.assertAlmostEqual(collector.ram_size().gib, 16.0)
        self.assertAlmostEqual(collector.ram_usage(), 75.0)

    def test_collect_all(self):
        reader = FakeReader(cpu=[CPU_BEFORE, CPU_AFTER], net=[NET_BEFORE, NET_AFTER])
        collector = self._collector(reader, clock=StepClock(0.0, 1.0, 2.0, 3.0))
        snap = collector.collect_all()
        self.assertEqual(snap.network, NetworkRate(download=1_000_000.0, upload=50_000.0))
        self.assertEqual([i.interface for i in snap.interfaces], ["eth0"])
        self.assertAlmostEqual(snap.cpu.average.total, 70.0)
        self.assertIsNone(snap.gpu_percent)
        self.assertIsNone(snap.battery)
        self.assertIsNotNone(snap.timestamp.tzinfo)

    def test_invalid_intervals_rejected_before_reading(self):
        reader = FakeReader(cpu=[CPU_BEFORE])
        for bad in (0, -0.5, float("nan"), float("inf"), "1", True):
            with self.assertRaises(ConfigError):
                self._collector(reader, cpu_interval_s=bad)
        with self.assertRaises(ValueError):
            self._collector(reader, network_interval_s=0)
        self.assertEqual(reader.cpu_reads, 0)


    def test_gpu_adapter_built_only_for_gpu_readings(self):
        adapter = mock.Mock(spec=GpuAdapter)
        adapter.usage.return_value = 12.0
        with mock.patch("sysprobe_telemetry.collector.build_gpu_adapter", return_value=adapter) as build:
            collector = TelemetryCollector(reader=FakeReader(), sysfs=self.sysfs)
            collector.ram_usage()
            collector.temperature_sensors()
            build.assert_not_called()

            self.assertEqual(collector.gpu_usage(), 12.0)
            collector.vram_size()
            build.assert_called_once_with(self.sysfs)

    def test_close_releases_built_adapter(self):
        adapter = mock.Mock(spec=GpuAdapter)
        with mock.patch("sysprobe_telemetry.collector.build_gpu_adapter", return_value=adapter):
            with TelemetryCollector(reader=FakeReader(), sysfs=self.sysfs) as collector:
                collector.gpu_usage()
        adapter.close.assert_called_once_with()

    def test_close_without_gpu_reading_is_noop(self):
        with mock.patch("sysprobe_telemetry.collector.build_gpu_adapter") as build:
            TelemetryCollector(reader=FakeReader(), sysfs=self.sysfs).close()
        build.assert_not_called()

    def test_scheduler_policies_and_cpu_info_from_sysfs(self):
        cpu = Path(self._tmp.name) / "devices" / "system" / "cpu"
        for core, die in (("cpu0", "0"), ("cpu1", "1")):
            (cpu / core / "topology").mkdir(parents=True)
            (cpu / core / "topology" / "die_id").write_text(die + "\n")
        policy = cpu / "cpufreq" / "policy0"
        policy.mkdir(parents=True)
        for name, value in (
            ("scaling_governor", "powersave"),
            ("scaling_driver", "intel_pstate"),
            ("scaling_min_freq", "800000"),
            ("scaling_max_freq", "4200000"),
            ("scaling_available_governors", "performance powersave"),
        ):
            (policy / name).write_text(value + "\n")
        (cpu / "cpufreq" / "boost").write_text("1\n")

        collector = self._collector(FakeReader())
        (only,) = collector.scheduler_policies()
        self.assertEqual(only.name, "policy0")
        self.assertEqual(only.governor, "powersave")
        self.assertAlmostEqual(only.max_mhz, 4200.0)

        info = collector.cpu_info()
        self.assertEqual(info.dies, 2)
        self.assertEqual(info.governors, ("performance", "powersave"))
        self.assertTrue(info.clock_boost)

    def test_cpu_info_without_cpufreq(self):
        info = self._collector(FakeReader()).cpu_info()
        self.assertEqual(info.dies, 1)
        self.assertEqual(info.governors, ())
        self.assertIsNone(info.clock_boost)


if __name__ == "__main__":
    unittest.main()
