"""Device registry store: the canonical JSON database of known, pending and problematic devices.

Layout on disk:

    {
      "devices": {"iPhone": {"iPhone14,2": {"name": "iPhone 13 Pro", "bezel": 47.33}}},
      "pending": {"iPad13,8": {"name": "iPad Pro (12.9-inch) (5th generation)"}},
      "problematic": {}
    }

An identifier lives in exactly one of the three partitions.
"""

import json
import sys
from dataclasses import dataclass
from pathlib import Path

from bezelgen.errors import RegistryNotFound, RegistryParseError

PARTITIONS = ("devices", "pending", "problematic")

# Checked in order; first prefix match wins.
CATEGORY_PREFIXES: list[tuple[str, str]] = [
    ("iPod", "iPod"),
    ("iPhone", "iPhone"),
    ("iPad", "iPad"),
    ("Watch", "Watch"),
]


def _log(msg: str) -> None:
    print(f"[registry] {msg}", file=sys.stderr)


@dataclass(frozen=True)
class PendingDevice:
    identifier: str
    name: str


def empty_registry() -> dict:
    return {"devices": {}, "pending": {}, "problematic": {}}


def classify(name: str, identifier: str = "") -> str:
    """Map a device to its category by name prefix, falling back to the identifier.

    Unknown families land in a category named after the first word of the
    device name, so new product lines are kept rather than dropped.
    """
    for candidate in (name or "", identifier or ""):
        for prefix, category in CATEGORY_PREFIXES:
            if candidate.startswith(prefix):
                return category
    words = (name or identifier or "").split()
    return words[0] if words else "Unknown"


def _check_entries(path, partition: str, entries) -> None:
    if not isinstance(entries, dict):
        raise RegistryParseError(path, f"'{partition}' must be an object")
    for identifier, entry in entries.items():
        if not isinstance(entry, dict):
            raise RegistryParseError(path, f"'{partition}.{identifier}' must be an object")


def load(path) -> dict:
    """Load and shape-check the registry at `path`."""
    path = Path(path)
    if not path.exists():
        raise RegistryNotFound(path, "registry file not found")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise RegistryParseError(path, f"could not read registry: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise RegistryParseError(path, f"invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise RegistryParseError(path, "top level must be an object")
    if "devices" not in data:
        raise RegistryParseError(path, "missing 'devices' partition")

    devices = data["devices"]
    if not isinstance(devices, dict):
        raise RegistryParseError(path, "'devices' must be an object")
    for category, entries in devices.items():
        _check_entries(path, f"devices.{category}", entries)

    for partition in ("pending", "problematic"):
        data.setdefault(partition, {})
        _check_entries(path, partition, data[partition])

    _log(
        f"Loaded {path}: {len(known_identifiers(data))} known, "
        f"{len(data['pending'])} pending, {len(data['problematic'])} problematic"
    )
    return data


def known_identifiers(registry: dict) -> set[str]:
    """Every identifier that already has a measured bezel."""
    known: set[str] = set()
    for entries in registry.get("devices", {}).values():
        known.update(entries)
    return known


def diff_pending(registry: dict) -> list[PendingDevice]:
    """Identifiers from `pending` and `problematic` that still need extraction.

    Problematic devices are retried on every run. A name recorded under
    `problematic` takes precedence over the one under `pending`.
    """
    combined = {**registry.get("pending", {}), **registry.get("problematic", {})}
    known = known_identifiers(registry)
    return [
        PendingDevice(identifier=identifier, name=str(entry.get("name", "") or ""))
        for identifier, entry in combined.items()
        if identifier not in known
    ]


def validate(registry: dict) -> dict:
    """Read-only consistency report for a registry document."""
    errors: list[str] = []
    warnings: list[str] = []

    seen: dict[str, str] = {}

    def note(identifier: str, where: str) -> None:
        if identifier in seen:
            errors.append(f"{identifier}: present in both {seen[identifier]} and {where}")
        else:
            seen[identifier] = where

    devices = registry.get("devices", {})
    for category, entries in devices.items():
        for identifier, entry in entries.items():
            note(identifier, f"devices.{category}")
            bezel = entry.get("bezel") if isinstance(entry, dict) else None
            if isinstance(bezel, bool) or not isinstance(bezel, (int, float)):
                errors.append(f"{identifier}: bezel must be a number, got {bezel!r}")
            elif bezel < 0:
                errors.append(f"{identifier}: bezel must be non-negative, got {bezel}")
            expected = classify(str(entry.get("name", "")), identifier)
            if expected != category:
                warnings.append(f"{identifier}: filed under '{category}' but name suggests '{expected}'")

    for partition in ("pending", "problematic"):
        for identifier, entry in registry.get(partition, {}).items():
            note(identifier, partition)
            if not str(entry.get("name", "") or ""):
                warnings.append(f"{identifier}: no device name in {partition}")

    return {
        "ok": not errors,
        "counts": {
            "devices": sum(len(entries) for entries in devices.values()),
            "pending": len(registry.get("pending", {})),
            "problematic": len(registry.get("problematic", {})),
        },
        "errors": errors,
        "warnings": warnings,
    }
