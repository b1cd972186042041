"""Resolve a friendly device name to a simulator instance, creating one when needed."""

import sys
from dataclasses import dataclass

from bezelgen import simctl
from bezelgen.errors import BezelError, ProvisioningError, UnresolvableDevice
from bezelgen.registry import PendingDevice


def _log(msg: str) -> None:
    print(f"[provision] {msg}", file=sys.stderr)


@dataclass
class InstanceHandle:
    udid: str
    name: str
    state: str
    identifier: str = ""


def find_installed(name: str, sim=simctl) -> dict | None:
    for dev in sim.list_devices():
        if dev.get("name") == name:
            return dev
    return None


def find_supported_runtime(name: str, sim=simctl) -> tuple[str, str] | None:
    """(device_type_id, runtime_id) for the newest runtime that supports `name`."""
    for runtime in sim.list_runtimes():
        for device_type in runtime.get("supportedDeviceTypes", []) or []:
            if device_type.get("name") == name:
                return device_type.get("identifier", ""), runtime.get("identifier", "")
    return None


def resolve(name: str, sim=simctl, identifier: str = "") -> InstanceHandle | None:
    """Return a handle for `name`, reusing an installed instance before creating one.

    Returns None when no installed runtime supports the device. Raises
    ProvisioningError when creation was attempted and failed.
    """
    if not name:
        _log(f"No device name for {identifier or '<unknown>'}, cannot resolve")
        return None

    existing = find_installed(name, sim)
    if existing:
        _log(f"Reusing {name} ({existing['udid']}, {existing.get('state', '')})")
        return InstanceHandle(
            udid=existing["udid"],
            name=name,
            state=existing.get("state", ""),
            identifier=identifier,
        )

    supported = find_supported_runtime(name, sim)
    if supported is None:
        _log(f"No supported runtime found for device: {name}")
        return None

    device_type, runtime = supported
    try:
        udid = sim.create(name, device_type, runtime)
    except BezelError as exc:
        raise ProvisioningError(f"failed to create simulator for {name}: {exc}") from exc
    if not udid:
        raise ProvisioningError(f"failed to create simulator for {name}: no UDID returned")

    state = "Shutdown"
    created = find_installed(name, sim)
    if created and created.get("udid") == udid:
        state = created.get("state", state)
    return InstanceHandle(udid=udid, name=name, state=state, identifier=identifier)


def resolve_all(devices: list[PendingDevice], sim=simctl) -> tuple[list[InstanceHandle], list[PendingDevice]]:
    """Resolve every pending device; failures come back as unresolved, never raised."""
    handles: list[InstanceHandle] = []
    unresolved: list[PendingDevice] = []
    for device in devices:
        try:
            handle = resolve(device.name, sim, identifier=device.identifier)
            if handle is None:
                raise UnresolvableDevice(device.name or device.identifier)
        except BezelError as exc:
            _log(f"{device.identifier}: {exc}")
            unresolved.append(device)
            continue
        handles.append(handle)

    if unresolved:
        _log(f"Unresolved identifiers: {', '.join(d.identifier for d in unresolved)}")
    return handles, unresolved
