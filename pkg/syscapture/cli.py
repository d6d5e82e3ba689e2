"""
syscapture: one-shot host inventory with a condensed legacy report.
Run: syscapture --help

Artifacts (under <hostname>-<date>/):
- raw/                         raw command outputs and copied files
- raw/gentoo/                  platform extras, Gentoo hosts only
- capture-log.jsonl            hash-chained audit log of the run
- <hostname>-report-<date>.txt human-readable report
"""
from __future__ import annotations

import argparse
import json
import socket
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .errors import SysCaptureError
from .artifacts import ArtifactTree
from .drivers.probe import Prober
from .drivers.shell import run_command
from .logging import read_events
from .report import synthesize, warnings_from_log
from .session import LOG_FILE, RAW_DIR, Session
from .tasks.catalog import build_catalog

DATE_FMT = "%Y-%m-%d"
DATETIME_FMT = "%Y-%m-%d %H:%M:%S"


def default_output_dir(base: Path, hostname: str, when: datetime) -> Path:
    return base / f"{hostname}-{when.strftime(DATE_FMT)}"


def report_path(out_dir: Path, hostname: str, when: datetime) -> Path:
    return out_dir / f"{hostname}-report-{when.strftime(DATE_FMT)}.txt"


def fail(err: SysCaptureError, as_json: bool = False) -> None:
    if as_json:
        print(json.dumps({"error": err.as_dict()}, ensure_ascii=False))
    print(f"Error: {err}", file=sys.stderr)
    sys.exit(2)


# Commands

def cmd_capture(args: argparse.Namespace) -> None:
    hostname = args.hostname or socket.gethostname()
    now = datetime.now()
    out_dir = Path(args.output_dir) if args.output_dir else default_output_dir(Path(args.base_dir), hostname, now)
    quiet = args.quiet or args.json

    def say(msg: str = "") -> None:
        if not quiet:
            print(msg)

    say("===============================================")
    say("System Legacy Capture")
    say("===============================================")
    say(f"Hostname: {hostname}")
    say(f"Date: {now.strftime(DATE_FMT)}")
    say(f"Output Directory: {out_dir}")

    prober = Prober()
    if not prober.is_root():
        say("")
        say("Not running as root. Some captures (dmidecode, hdparm benchmarks, smartctl, fdisk) will be skipped or limited.")

    raw = out_dir / RAW_DIR
    if raw.is_dir() and any(raw.iterdir()):
        fail(SysCaptureError("OUTPUT_NOT_EMPTY", f"{raw} already holds a capture"), as_json=args.json)
        return
    try:
        session = Session(out_dir, prober=prober, runner=run_command, quiet=quiet)
        devices = Session.discover(session.runner)
        run = session.run(build_catalog(prober, devices))
    except SysCaptureError as err:
        fail(err, as_json=args.json)
        return

    report = None
    if not args.no_report:
        say("")
        say("=== Generating Human-Readable Report ===")
        doc = synthesize(run.tree, run.warnings, hostname, now.strftime(DATETIME_FMT))
        report = report_path(out_dir, hostname, now)
        try:
            report.write_text(doc.render(), encoding="utf-8")
        except OSError as exc:
            fail(SysCaptureError("REPORT_WRITE", f"{report}: {exc}"), as_json=args.json)
            return
        say(f"Report generated: {report}")

    if args.json:
        summary = {
            "output_dir": str(out_dir),
            "report": str(report) if report else None,
            "devices": [asdict(d) for d in devices],
            "tasks": len(run.results),
            "failed": len(run.failed),
            "results": [r.as_dict() for r in run.results],
            "warnings": [str(w) for w in run.warnings],
        }
        print(json.dumps(summary, ensure_ascii=False, indent=2))
        return

    say("")
    say("===============================================")
    say("Capture Complete!")
    say("===============================================")
    say(f"Output directory: {out_dir}")
    if report:
        say(f"Report: {report}")
    say(f"Raw data: {out_dir / RAW_DIR}/")
    if run.warnings:
        say("")
        say(f"There were {len(run.warnings)} warnings during capture.")
        say("Check the report for details.")


def cmd_report(args: argparse.Namespace) -> None:
    out_dir = Path(args.output_dir)
    tree = ArtifactTree(out_dir / RAW_DIR)
    if not tree.root.is_dir():
        fail(SysCaptureError("NO_CAPTURE", f"{tree.root} does not exist"))
        return
    hostname = args.hostname or socket.gethostname()
    now = datetime.now()
    warnings = warnings_from_log(read_events(out_dir / LOG_FILE))
    doc = synthesize(tree, warnings, hostname, now.strftime(DATETIME_FMT))
    if args.stdout:
        sys.stdout.write(doc.render())
        return
    path = report_path(out_dir, hostname, now)
    try:
        path.write_text(doc.render(), encoding="utf-8")
    except OSError as exc:
        fail(SysCaptureError("REPORT_WRITE", f"{path}: {exc}"))
        return
    print(f"Report generated: {path}")


def cmd_devices(args: argparse.Namespace) -> None:
    devices = Session.discover(run_command)
    if args.json:
        print(json.dumps([asdict(d) for d in devices], ensure_ascii=False, indent=2))
        return
    if not devices:
        print("no devices")
        return
    for d in devices:
        print(f"{d.path:20}  {d.transport:5}  {d.size_bytes:>16}  {d.bus or '-'}")


# CLI

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="syscapture", description="Host inventory capture + legacy report")
    sub = p.add_subparsers(dest="cmd", required=True)

    cp = sub.add_parser("capture", help="capture raw data and write the report")
    cp.add_argument("--output-dir", default=None, help="exact output directory (default: <hostname>-<date>)")
    cp.add_argument("--base-dir", default=".", help="where the default output directory is created")
    cp.add_argument("--hostname", default=None)
    cp.add_argument("--no-report", action="store_true", help="only capture raw data")
    cp.add_argument("--quiet", action="store_true", help="suppress progress output")
    cp.add_argument("--json", action="store_true", help="emit machine-readable JSON run summary")
    cp.set_defaults(func=cmd_capture)

    rp = sub.add_parser("report", help="re-render the report of an existing capture")
    rp.add_argument("output_dir")
    rp.add_argument("--hostname", default=None)
    rp.add_argument("--stdout", action="store_true", help="print instead of writing the report file")
    rp.set_defaults(func=cmd_report)

    dp = sub.add_parser("devices", help="list classified block devices")
    dp.add_argument("--json", action="store_true")
    dp.set_defaults(func=cmd_devices)

    return p


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
