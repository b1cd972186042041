"""Wrapper around xcrun simctl for simulator provisioning and app control.

This module is the device-management interface the pipeline talks to. Anything
exposing the same functions (list_devices, list_runtimes, create, boot,
shutdown, install, uninstall, launch, terminate, get_app_container) can stand
in for it, which is how the tests drive the pipeline without a simulator.
"""

import json
import re
import subprocess
import sys

from bezelgen.errors import SimctlError

COMMAND_TIMEOUT = 300


def _log(msg: str) -> None:
    print(f"[simctl] {msg}", file=sys.stderr)


def _run(args: list[str], check: bool = True) -> subprocess.CompletedProcess:
    """Run an xcrun simctl command and return the result."""
    cmd = ["xcrun", "simctl"] + args
    _log(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=COMMAND_TIMEOUT)
    except FileNotFoundError as exc:
        raise SimctlError(cmd, 127, str(exc)) from exc
    except subprocess.TimeoutExpired as exc:
        raise SimctlError(cmd, -1, f"timed out after {exc.timeout}s") from exc
    if result.returncode != 0 and result.stderr.strip():
        _log(f"stderr: {result.stderr.strip()}")
    if check and result.returncode != 0:
        raise SimctlError(cmd, result.returncode, result.stderr or "")
    return result


def _run_json(args: list[str]) -> dict:
    result = _run(args + ["-j"])
    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as exc:
        raise SimctlError(["xcrun", "simctl"] + args + ["-j"], 0, f"invalid JSON output: {exc}") from exc


def version_key(version: str) -> tuple[int, ...]:
    """'17.0.1' -> (17, 0, 1); non-numeric parts are ignored."""
    return tuple(int(part) for part in re.findall(r"\d+", str(version or "")))


def list_devices() -> list[dict]:
    """All installed simulator instances across runtimes.

    Returns dicts with keys: name, udid, state, runtime.
    """
    data = _run_json(["list", "devices"])
    devices = []
    for runtime, entries in data.get("devices", {}).items():
        for dev in entries:
            devices.append({
                "name": dev.get("name", ""),
                "udid": dev.get("udid", ""),
                "state": dev.get("state", ""),
                "runtime": runtime,
            })
    _log(f"Found {len(devices)} installed simulator(s)")
    return devices


def list_runtimes() -> list[dict]:
    """Installed runtimes, newest version first.

    Each dict carries identifier, version, name and supportedDeviceTypes
    (a list of {name, identifier}).
    """
    data = _run_json(["list", "runtimes"])
    runtimes = list(data.get("runtimes", []))
    runtimes.sort(key=lambda rt: version_key(rt.get("version", "")), reverse=True)
    return runtimes


def create(name: str, device_type: str, runtime: str) -> str:
    """Create a simulator and return its UDID."""
    _log(f"Creating simulator '{name}' ({device_type}, {runtime})")
    result = _run(["create", name, device_type, runtime])
    udid = result.stdout.strip()
    if not udid:
        raise SimctlError(["xcrun", "simctl", "create", name, device_type, runtime], 0, "no UDID returned")
    _log(f"Created {udid}")
    return udid


def boot(udid: str) -> None:
    _log(f"Booting simulator {udid}...")
    result = _run(["boot", udid], check=False)
    if result.returncode != 0:
        # "Unable to boot device in current state: Booted" is not a real error
        if "Booted" in result.stderr:
            _log(f"Simulator {udid} was already booted")
            return
        raise SimctlError(["xcrun", "simctl", "boot", udid], result.returncode, result.stderr)
    _log(f"Successfully booted {udid}")


def shutdown(udid: str) -> None:
    _log(f"Shutting down simulator {udid}...")
    result = _run(["shutdown", udid], check=False)
    if result.returncode != 0:
        if "current state: Shutdown" in result.stderr:
            _log(f"Simulator {udid} was already shut down")
            return
        raise SimctlError(["xcrun", "simctl", "shutdown", udid], result.returncode, result.stderr)
    _log(f"Successfully shut down {udid}")


def install(udid: str, app_path: str) -> None:
    _run(["install", udid, app_path])


def uninstall(udid: str, bundle_id: str) -> None:
    _run(["uninstall", udid, bundle_id])


def launch(udid: str, bundle_id: str) -> None:
    _run(["launch", udid, bundle_id])


def terminate(udid: str, bundle_id: str) -> None:
    _run(["terminate", udid, bundle_id])


def get_app_container(udid: str, bundle_id: str, container: str = "data") -> str:
    """Filesystem path of an installed app's container."""
    result = _run(["get_app_container", udid, bundle_id, container])
    return result.stdout.strip()
