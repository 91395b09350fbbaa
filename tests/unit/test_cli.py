import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "apps" / "cli"))
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from sysprobe_app.cli import build_parser


class CliTests(unittest.TestCase):
    def test_snapshot_command(self):
        parser = build_parser()
        args = parser.parse_args(["snapshot"])
        self.assertEqual(args.command, "snapshot")
        self.assertIsNone(args.config)

    def test_cpu_per_core(self):
        parser = build_parser()
        args = parser.parse_args(["cpu", "--per-core"])
        self.assertEqual(args.command, "cpu")
        self.assertTrue(args.per_core)

    def test_network_per_interface_with_config(self):
        parser = build_parser()
        args = parser.parse_args(["--config", "cfg.json", "network", "--per-interface"])
        self.assertEqual(args.command, "network")
        self.assertTrue(args.per_interface)
        self.assertEqual(args.config, "cfg.json")

    def test_static_inventory_commands(self):
        parser = build_parser()
        for command in ("info", "storage", "interfaces"):
            args = parser.parse_args([command])
            self.assertEqual(args.command, command)

    def test_command_required(self):
        parser = build_parser()
        with self.assertRaises(SystemExit):
            parser.parse_args([])


if __name__ == "__main__":
    unittest.main()
