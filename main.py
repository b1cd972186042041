#!/usr/bin/env python3
"""Bezel Generator - CLI for regenerating the device corner-radius table.

Usage:
    python main.py
    python main.py --database ./apple-device-database.json --output ./bezel.min.json
    python main.py --app-path ./build/FetchBezel.app --settle-timeout 8
    python main.py --pending
    python main.py --validate
    python main.py --lookup iPhone14,2
    python main.py --replay
"""

import argparse
import json
import sys

from dotenv import load_dotenv

load_dotenv()

from bezelgen import doctor, pipeline, registry, run_state
from bezelgen.config import load_config
from bezelgen.errors import BezelError
from bezelgen.lookup import BezelTable


def log(msg: str) -> None:
    print(f"[main] {msg}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bezel Generator - extract display corner radii from iOS simulators"
    )
    parser.add_argument("--database", "--db", dest="database_path", help="Registry JSON (read and rewritten)")
    parser.add_argument("--output", "-o", dest="output_path", help="Minified distributable JSON to write")
    parser.add_argument("--project", "-p", dest="project_path", help="Probe Xcode project")
    parser.add_argument("--scheme", "-s", help="Probe Xcode scheme")
    parser.add_argument("--bundle-id", "-b", dest="bundle_id", help="Probe app bundle ID")
    parser.add_argument("--app-path", dest="app_path", help="Prebuilt probe .app (skips xcodebuild)")
    parser.add_argument(
        "--settle-timeout",
        dest="settle_timeout",
        type=float,
        help="Seconds to wait for the probe to write its output (default: 5)",
    )
    parser.add_argument("--pending", action="store_true", help="List identifiers that would be processed")
    parser.add_argument("--validate", action="store_true", help="Check registry consistency and exit")
    parser.add_argument("--doctor", action="store_true", help="Run environment checks and exit")
    parser.add_argument("--lookup", metavar="IDENTIFIER", help="Print the bezel for IDENTIFIER from --output")
    parser.add_argument("--runs", action="store_true", help="List recent generation runs")
    parser.add_argument(
        "--replay",
        nargs="?",
        const="",
        metavar="RUN_ID",
        help="Print state and events for a run (default: the latest)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(
            database_path=args.database_path,
            output_path=args.output_path,
            project_path=args.project_path,
            scheme=args.scheme,
            bundle_id=args.bundle_id,
            app_path=args.app_path,
            settle_timeout=args.settle_timeout,
        )

        if args.doctor:
            payload = doctor.collect_checks(config)
            print(json.dumps(payload, indent=2))
            return 0 if payload["ok"] else 1

        if args.runs:
            run_state.use_root(config.runs_root)
            print(json.dumps(run_state.list_runs(), indent=2))
            return 0

        if args.replay is not None:
            run_state.use_root(config.runs_root)
            run_id = args.replay or run_state.latest_run_id()
            if not run_id:
                log("No generation runs recorded")
                return 1
            replay = run_state.replay_run(run_id)
            print(json.dumps(replay, indent=2))
            return 1 if "error" in replay else 0

        if args.lookup:
            table = BezelTable.from_file(config.output_path)
            value = table.lookup(args.lookup)
            if value is None:
                log(f"{args.lookup} not found in {config.output_path}")
                return 1
            print(value)
            return 0

        if args.pending or args.validate:
            data = registry.load(config.database_path)
            if args.pending:
                for device in registry.diff_pending(data):
                    print(f"{device.identifier}\t{device.name}")
                return 0
            report = registry.validate(data)
            print(json.dumps(report, indent=2))
            return 0 if report["ok"] else 1

        result = pipeline.run(config)
    except BezelError as exc:
        print(f"FATAL: {exc}", file=sys.stderr)
        return 1

    print("\n" + "=" * 60, file=sys.stderr)
    print(pipeline.format_summary(result), file=sys.stderr)
    print("=" * 60, file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
