"""Drive the probe app on a simulator and read back the corner radius it reports.

Per instance, strictly in order:
  shutdown (if needed) -> boot -> install -> launch -> poll for output.json
  -> terminate -> uninstall -> shutdown

The last three steps always run, whether or not a measurement was read.
"""

import json
import os
import sys
import time
from dataclasses import dataclass

from bezelgen import simctl
from bezelgen.errors import BezelError, ExtractionParseError, ExtractionTimeout
from bezelgen.provisioning import InstanceHandle
from bezelgen.registry import PendingDevice

PROBE_OUTPUT = os.path.join("Documents", "output.json")
MAX_POLL_INTERVAL = 1.0


def _log(msg: str) -> None:
    print(f"[extract] {msg}", file=sys.stderr)


@dataclass(frozen=True)
class Measurement:
    identifier: str
    name: str
    bezel: float


def parse_probe_output(text: str, path: str = "") -> dict:
    """Parse the probe's JSON payload; the bezel must be a non-negative number."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ExtractionParseError(f"{path}: invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ExtractionParseError(f"{path}: expected a JSON object")
    bezel = data.get("bezel")
    if isinstance(bezel, bool) or not isinstance(bezel, (int, float)):
        raise ExtractionParseError(f"{path}: 'bezel' must be a number, got {bezel!r}")
    if bezel < 0:
        raise ExtractionParseError(f"{path}: 'bezel' must be non-negative, got {bezel}")
    return data


def wait_for_file(
    path: str,
    timeout: float,
    poll_interval: float = 0.25,
    sleep=time.sleep,
    clock=time.monotonic,
) -> dict:
    """Poll until `path` holds a valid probe payload or `timeout` elapses.

    The interval doubles after each miss, capped at MAX_POLL_INTERVAL.
    A file that exists but never parses raises ExtractionParseError; a file
    that never appears raises ExtractionTimeout.
    """
    deadline = clock() + timeout
    interval = max(poll_interval, 0.01)
    last_error: ExtractionParseError | None = None

    while True:
        if os.path.isfile(path):
            try:
                with open(path, encoding="utf-8") as f:
                    return parse_probe_output(f.read(), path)
            except ExtractionParseError as exc:
                # Probe may still be writing.
                last_error = exc
            except OSError as exc:
                last_error = ExtractionParseError(f"{path}: {exc}")

        remaining = deadline - clock()
        if remaining <= 0:
            break
        sleep(min(interval, remaining))
        interval = min(interval * 2, MAX_POLL_INTERVAL)

    if last_error is not None:
        raise last_error
    raise ExtractionTimeout(f"{path} not written within {timeout:g}s")


def _cleanup(instance: InstanceHandle, bundle_id: str, sim, installed: bool) -> None:
    steps = []
    if installed:
        steps.append(("Terminating app", lambda: sim.terminate(instance.udid, bundle_id)))
        steps.append(("Deleting app from simulator", lambda: sim.uninstall(instance.udid, bundle_id)))
    steps.append(("Shutting down the simulator", lambda: sim.shutdown(instance.udid)))

    for label, step in steps:
        _log(f"  {label}")
        try:
            step()
        except BezelError as exc:
            # Keep going so the instance is still shut down.
            _log(f"  WARNING: {label.lower()} failed: {exc}")
    instance.state = "Shutdown"


def extract(
    instance: InstanceHandle,
    probe_app_path: str,
    bundle_id: str,
    sim=simctl,
    timeout: float = 5.0,
    poll_interval: float = 0.25,
    sleep=time.sleep,
) -> Measurement:
    """Measure one simulator instance with the probe app."""
    _log(f"Current device: {instance.name}")
    _log(f"  Identifier: {instance.identifier}")
    _log(f"  UDID: {instance.udid}")
    _log(f"  State: {instance.state}")

    if instance.state != "Shutdown":
        _log("  Simulator is not shut down, shutting down first")
        sim.shutdown(instance.udid)
        instance.state = "Shutdown"

    installed = False
    try:
        _log("  Booting the simulator")
        sim.boot(instance.udid)
        instance.state = "Booted"

        _log(f"  Installing probe app {probe_app_path}")
        sim.install(instance.udid, probe_app_path)
        installed = True

        _log(f"  Launching {bundle_id}")
        sim.launch(instance.udid, bundle_id)

        container = sim.get_app_container(instance.udid, bundle_id, "data")
        output_path = os.path.join(container, PROBE_OUTPUT)
        _log(f"  Waiting up to {timeout:g}s for {output_path}")
        data = wait_for_file(output_path, timeout, poll_interval, sleep=sleep)
    finally:
        _cleanup(instance, bundle_id, sim, installed)

    reported = str(data.get("identifiers", "") or "")
    if reported and instance.identifier and reported != instance.identifier:
        _log(f"  WARNING: probe reported {reported}, registry expects {instance.identifier}")

    bezel = float(data["bezel"])
    _log(f"  Found bezel {bezel:g} for {instance.identifier or reported}")
    return Measurement(
        identifier=instance.identifier or reported,
        name=instance.name,
        bezel=bezel,
    )


def extract_all(
    handles: list[InstanceHandle],
    probe_app_path: str,
    bundle_id: str,
    sim=simctl,
    timeout: float = 5.0,
    poll_interval: float = 0.25,
    sleep=time.sleep,
    on_result=None,
) -> tuple[list[Measurement], list[PendingDevice]]:
    """Extract from each handle in turn; a failing device never stops the loop.

    `on_result(handle, measurement, error)` is called after every device.
    """
    measurements: list[Measurement] = []
    failed: list[PendingDevice] = []
    total = len(handles)

    for index, handle in enumerate(handles, start=1):
        _log(f"** Start work on simulator: {index} / {total} **")
        try:
            measurement = extract(
                handle,
                probe_app_path,
                bundle_id,
                sim=sim,
                timeout=timeout,
                poll_interval=poll_interval,
                sleep=sleep,
            )
        except BezelError as exc:
            _log(f"FAILED {handle.identifier} ({handle.name}): {exc}")
            failed.append(PendingDevice(identifier=handle.identifier, name=handle.name))
            if on_result:
                on_result(handle, None, exc)
            continue
        measurements.append(measurement)
        if on_result:
            on_result(handle, measurement, None)

    return measurements, failed
