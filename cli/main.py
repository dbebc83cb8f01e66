import argparse
import json
import logging
import signal
import sys
import threading
from typing import List, Optional

from cli.ui import ProgressBar, print_banners, print_header, print_summary
from core.config import settings
from core.errors import ScanConfigError, ScanIncompleteError
from core.progress import QueueProgress
from core.targets import split_targets
from pipeline.orchestrator import Orchestrator


def _print(obj):
    print(json.dumps(obj, indent=2, default=str))


def _setup_logging(debug: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if debug else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def parse_ports(ports_flag: Optional[str], start_port: int, end_port: int) -> List[int]:
    """
    Explicit comma list wins over the start/end range. Entries that are not
    integers are skipped; range checks are left to ScanConfig.
    """
    if ports_flag:
        ports = []
        for part in ports_flag.split(","):
            try:
                ports.append(int(part.strip()))
            except ValueError:
                continue
        return ports
    return list(range(start_port, end_port + 1))


def _print_flags(args):
    print("Flag values:")
    for name in ("target", "targets", "start_port", "end_port", "workers", "timeout", "max_retries", "ports", "json", "debug"):
        print(f"{name.replace('_', '-')}: {getattr(args, name)}")


def cmd_scan(args) -> int:
    if args.debug:
        _print_flags(args)

    targets = split_targets(args.target, args.targets)
    if not targets:
        print("No target specified. Please provide --target or --targets.")
        return 1
    ports = parse_ports(args.ports, args.start_port, args.end_port)
    if not ports:
        print("No valid ports provided.")
        return 1

    stop = threading.Event()
    orch = Orchestrator()
    bars: List[ProgressBar] = []

    def progress_factory(cfg):
        print_header(cfg.target, ports)
        if args.no_progress:
            return None
        sink = QueueProgress(len(cfg.ports))
        bars.append(ProgressBar(sink, description=cfg.target).start())
        return sink

    def on_result(result):
        if bars:
            bars[-1].join()
        print_summary(result, ports)
        print_banners(result)
        print()

    previous = signal.signal(signal.SIGINT, lambda *_: stop.set())
    try:
        results = orch.scan_many(
            targets,
            ports,
            progress_factory=progress_factory,
            stop_event=stop,
            on_result=on_result,
            workers=args.workers,
            timeout=args.timeout,
            max_retries=args.max_retries,
        )
    except ScanConfigError as exc:
        print(f"Invalid configuration: {exc}")
        return 1
    except ScanIncompleteError as exc:
        print(f"Scan incomplete: {exc}")
        return 1
    finally:
        signal.signal(signal.SIGINT, previous)

    if args.json:
        path = orch.state.write_json(args.out_dir, results)
        print(f"Scan results saved to {path}")
    return 0


def cmd_report(args) -> int:
    orch = Orchestrator()
    _print(orch.report(args.target))
    return 0


def cmd_verify(args) -> int:
    orch = Orchestrator()
    _print(orch.verify())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Concurrent TCP connect scanner with banner capture")
    sub = parser.add_subparsers()

    p_scan = sub.add_parser("scan", help="Scan one or more targets")
    p_scan.add_argument("--target", default="", help="hostname or IP address to scan")
    p_scan.add_argument("--targets", default="", help="comma-separated targets, e.g. localhost,scanme.nmap.org")
    p_scan.add_argument("--start-port", type=int, default=settings.default_start_port, help="first port of the range")
    p_scan.add_argument("--end-port", type=int, default=settings.default_end_port, help="last port of the range")
    p_scan.add_argument("--ports", default="", help="comma-separated ports (overrides the range)")
    p_scan.add_argument("--workers", type=int, default=None, help="concurrent workers per target")
    p_scan.add_argument("--timeout", type=float, default=None, help="connect timeout in seconds")
    p_scan.add_argument("--max-retries", type=int, default=None, help="connect attempts per port")
    p_scan.add_argument("--json", action="store_true", default=False, help="save results as JSON")
    p_scan.add_argument("--out-dir", default=settings.output_dir, help="directory for --json output")
    p_scan.add_argument("--no-progress", action="store_true", default=False, help="disable the progress bar")
    p_scan.add_argument("--debug", action="store_true", default=False, help="print flag values and debug logs")
    p_scan.set_defaults(func=cmd_scan)

    p_report = sub.add_parser("report", help="List stored results for a target")
    p_report.add_argument("target")
    p_report.set_defaults(func=cmd_report)

    p_verify = sub.add_parser("verify", help="Config + ES connectivity check")
    p_verify.set_defaults(func=cmd_verify)
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(getattr(args, "debug", False))
    if hasattr(args, "func"):
        return args.func(args)
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
