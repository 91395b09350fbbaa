"""CLI entrypoints for host snapshots, per-metric queries, and diagnostics."""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict, is_dataclass
from enum import Enum
from pathlib import Path

from sysprobe_core import build_doctor_payload, load_config
from sysprobe_core.logging_setup import configure_logging
from sysprobe_telemetry import TelemetryCollector


def _jsonable(value: object) -> object:
    if isinstance(value, Enum):
        return value.value
    return str(value)


def _print_json(data: object) -> None:
    if is_dataclass(data) and not isinstance(data, type):
        data = asdict(data)
    print(json.dumps(data, indent=2, sort_keys=True, default=_jsonable))


def _collector(args: argparse.Namespace) -> TelemetryCollector:
    return TelemetryCollector.from_config(args.app_config.sampling)


def cmd_snapshot(args: argparse.Namespace) -> int:
    with _collector(args) as collector:
        _print_json(collector.collect_all())
    return 0


def cmd_cpu(args: argparse.Namespace) -> int:
    collector = _collector(args)
    usage = collector.cpu_usage()
    payload = {
        "usage": asdict(usage.average),
        "frequency_mhz": collector.cpu_frequency(),
        "load": collector.load_average(),
    }
    if args.per_core:
        payload["processors"] = [asdict(p) for p in usage.processors]
    _print_json({k: (asdict(v) if is_dataclass(v) else v) for k, v in payload.items()})
    return 0


def cmd_memory(args: argparse.Namespace) -> int:
    collector = _collector(args)
    size = collector.ram_size()
    _print_json({"percent": collector.ram_usage(), "total_bytes": size.bytes, "total_gib": size.gib})
    return 0


def cmd_network(args: argparse.Namespace) -> int:
    collector = _collector(args)
    if args.per_interface:
        _print_json([asdict(rate) for rate in collector.interface_rates()])
    else:
        _print_json(collector.network_rate())
    return 0


def cmd_sensors(args: argparse.Namespace) -> int:
    collector = _collector(args)
    battery = collector.battery()
    backlight = collector.backlight()
    _print_json(
        {
            "temperatures": [asdict(s) for s in collector.temperature_sensors()],
            "battery": asdict(battery) if battery else None,
            "backlight": asdict(backlight) if backlight else None,
        }
    )
    return 0


def cmd_gpu(args: argparse.Namespace) -> int:
    with _collector(args) as collector:
        vram = collector.vram_size()
        _print_json(
            {
                "usage_percent": collector.gpu_usage(),
                "vram_bytes": vram.bytes if vram else None,
                "vram_percent": collector.vram_usage(),
            }
        )
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    collector = _collector(args)
    _print_json(
        {
            "cpu": asdict(collector.cpu_info()),
            "scheduler_policies": [asdict(p) for p in collector.scheduler_policies()],
        }
    )
    return 0


def cmd_storage(args: argparse.Namespace) -> int:
    _print_json([asdict(p) for p in _collector(args).storage_partitions()])
    return 0


def cmd_interfaces(args: argparse.Namespace) -> int:
    payload = []
    for iface in _collector(args).network_interfaces():
        entry = asdict(iface)
        entry["addresses"] = [str(addr) for addr in iface.addresses]
        payload.append(entry)
    _print_json(payload)
    return 0


def cmd_doctor(args: argparse.Namespace) -> int:
    _print_json(build_doctor_payload(args.app_config))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sysprobe", description="On-demand host telemetry")
    parser.add_argument("--config", default=None, help="Optional path to a config.json override")
    sub = parser.add_subparsers(dest="command", required=True)

    snap_cmd = sub.add_parser("snapshot", help="Collect every metric once")
    snap_cmd.set_defaults(func=cmd_snapshot)

    cpu_cmd = sub.add_parser("cpu", help="CPU usage, frequency and load")
    cpu_cmd.add_argument("--per-core", action="store_true", help="Include per-core usage")
    cpu_cmd.set_defaults(func=cmd_cpu)

    mem_cmd = sub.add_parser("memory", help="RAM usage and size")
    mem_cmd.set_defaults(func=cmd_memory)

    net_cmd = sub.add_parser("network", help="Download/upload rate")
    net_cmd.add_argument("--per-interface", action="store_true", help="Itemize rates per interface")
    net_cmd.set_defaults(func=cmd_network)

    sensors_cmd = sub.add_parser("sensors", help="Temperatures, battery and backlight")
    sensors_cmd.set_defaults(func=cmd_sensors)

    gpu_cmd = sub.add_parser("gpu", help="GPU usage and VRAM")
    gpu_cmd.set_defaults(func=cmd_gpu)

    info_cmd = sub.add_parser("info", help="Static processor descriptors and scheduler policies")
    info_cmd.set_defaults(func=cmd_info)

    storage_cmd = sub.add_parser("storage", help="Mounted partitions and their usage")
    storage_cmd.set_defaults(func=cmd_storage)

    iface_cmd = sub.add_parser("interfaces", help="Network interfaces and IPv4 addresses")
    iface_cmd.set_defaults(func=cmd_interfaces)

    doctor_cmd = sub.add_parser("doctor", help="Report which sources this host supports")
    doctor_cmd.set_defaults(func=cmd_doctor)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.app_config = load_config(Path(args.config) if args.config else None)
    configure_logging(
        keep_files=args.app_config.diagnostics.keep_log_files,
        console=args.app_config.diagnostics.console_logging,
    )
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
