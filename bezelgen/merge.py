"""Fold fresh measurements and unresolved devices back into the registry."""

import copy
import re
import sys
from typing import Iterable

from bezelgen.extraction import Measurement
from bezelgen.registry import PendingDevice, classify

_LEADING_NUMBER = re.compile(r"\d+")


def _log(msg: str) -> None:
    print(f"[merge] {msg}", file=sys.stderr)


def natural_key(text: str) -> tuple:
    """Sort key ordering 'iPhone9,1' before 'iPhone10,1'.

    The first run of digits orders keys numerically; ties compare
    case-insensitively, so 'iPad' sorts before 'Watch'. Keys without digits
    come first.
    """
    match = _LEADING_NUMBER.search(text)
    if match is None:
        return (0, 0, text.casefold(), text)
    return (1, int(match.group(0)), text.casefold(), text)


def sort_keys(obj):
    """Recursively rebuild every dict with its keys in natural order."""
    if isinstance(obj, dict):
        return {key: sort_keys(obj[key]) for key in sorted(obj, key=natural_key)}
    if isinstance(obj, list):
        return [sort_keys(item) for item in obj]
    return obj


def merge(
    registry: dict,
    measurements: Iterable[Measurement],
    unresolved: Iterable[PendingDevice],
) -> dict:
    """Return a new registry with measurements upserted and leftovers marked problematic.

    `pending` is always emptied: every attempted identifier ends up either in
    `devices` or in `problematic`. The input registry is not modified.
    """
    merged = copy.deepcopy(registry)
    devices = merged.setdefault("devices", {})
    problematic = merged.setdefault("problematic", {})
    pending = merged.setdefault("pending", {})

    updated = added = 0
    for m in measurements:
        category = classify(m.name, m.identifier)
        for other in list(devices):
            if other != category and m.identifier in devices[other]:
                del devices[other][m.identifier]
                if not devices[other]:
                    del devices[other]
        entries = devices.setdefault(category, {})
        if m.identifier in entries:
            updated += 1
        else:
            added += 1
        entries[m.identifier] = {"name": m.name, "bezel": m.bezel}
        problematic.pop(m.identifier, None)
        pending.pop(m.identifier, None)

    known = {identifier for entries in devices.values() for identifier in entries}
    for identifier in known & set(problematic):
        problematic.pop(identifier)
    flagged = 0
    for device in unresolved:
        if device.identifier in known:
            continue
        previous = problematic.get(device.identifier, {}).get("name", "")
        problematic[device.identifier] = {"name": device.name or previous or ""}
        flagged += 1

    merged["pending"] = {}
    _log(f"{added} added, {updated} updated, {flagged} problematic")
    return sort_keys(merged)
