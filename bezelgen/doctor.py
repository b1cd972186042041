#!/usr/bin/env python3
"""Environment checks for bezel generation.

This is a *read-only* diagnostic:
1) Xcode command line tools (xcrun simctl, xcodebuild)
2) registry file present, parseable and internally consistent
3) probe app available (prebuilt .app or Xcode project)
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
import sys

from bezelgen import registry
from bezelgen.config import GeneratorConfig, load_config
from bezelgen.errors import BezelError


def _run(cmd: list[str], timeout: int = 10) -> dict:
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        return {
            "ok": proc.returncode == 0,
            "returncode": proc.returncode,
            "stdout": (proc.stdout or "").strip(),
            "stderr": (proc.stderr or "").strip(),
        }
    except (OSError, subprocess.TimeoutExpired) as exc:
        return {"ok": False, "error": str(exc), "returncode": -1, "stdout": "", "stderr": ""}


def _check_simctl() -> dict:
    if not shutil.which("xcrun"):
        return {"ok": False, "error": "xcrun not found on PATH"}
    res = _run(["xcrun", "simctl", "list", "runtimes", "-j"])
    if not res.get("ok"):
        return {"ok": False, "error": res.get("stderr") or res.get("error", "")}
    try:
        runtimes = json.loads(res["stdout"]).get("runtimes", [])
    except json.JSONDecodeError:
        return {"ok": False, "error": "simctl returned invalid JSON"}
    return {"ok": True, "runtimes": [rt.get("name", "") for rt in runtimes]}


def _check_xcodebuild() -> dict:
    path = shutil.which("xcodebuild") or ""
    return {"ok": bool(path), "path": path}


def _check_registry(path: str) -> dict:
    try:
        data = registry.load(path)
    except BezelError as exc:
        return {"ok": False, "error": str(exc)}
    report = registry.validate(data)
    report["to_process"] = [d.identifier for d in registry.diff_pending(data)]
    return report


def _check_probe(config: GeneratorConfig) -> dict:
    if config.app_path:
        return {"ok": os.path.isdir(config.app_path), "app_path": config.app_path}
    return {"ok": os.path.exists(config.project_path), "project_path": config.project_path}


def collect_checks(config: GeneratorConfig | None = None) -> dict:
    config = config or load_config()
    checks: dict = {
        "python": {"executable": sys.executable, "version": sys.version.split()[0]},
        "tools": {"simctl": _check_simctl(), "xcodebuild": _check_xcodebuild()},
        "registry": _check_registry(config.database_path),
        "probe": _check_probe(config),
        "config": {
            "database_path": config.database_path,
            "output_path": config.output_path,
            "bundle_id": config.bundle_id,
            "settle_timeout": config.settle_timeout,
        },
    }

    problems: list[str] = []
    if not checks["tools"]["simctl"].get("ok"):
        problems.append("xcrun simctl unavailable (install Xcode command line tools)")
    if not checks["tools"]["xcodebuild"].get("ok") and not config.app_path:
        problems.append("xcodebuild not found and no prebuilt probe app configured")
    if not checks["registry"].get("ok"):
        problems.append("registry failed to load or validate")
    if not checks["probe"].get("ok"):
        problems.append("probe app/project not found")

    checks["problems"] = problems
    checks["ok"] = not problems
    return checks


def main() -> int:
    payload = collect_checks()
    print(json.dumps(payload, indent=2))
    return 0 if payload.get("ok") else 1


if __name__ == "__main__":
    raise SystemExit(main())
