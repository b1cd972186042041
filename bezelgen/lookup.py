"""Read side of the distributable artifact: identifier -> bezel with fallback handling."""

import json
from pathlib import Path

from bezelgen.errors import RegistryNotFound, RegistryParseError


class BezelTable:
    """In-memory identifier -> bezel map built from the minified artifact."""

    def __init__(self, devices: dict):
        self._bezels: dict[str, float] = {}
        for entries in devices.values():
            for identifier, entry in entries.items():
                self._bezels[identifier] = float(entry.get("bezel", 0.0))

    @classmethod
    def from_file(cls, path) -> "BezelTable":
        path = Path(path)
        if not path.exists():
            raise RegistryNotFound(path, "bezel data file not found")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise RegistryParseError(path, f"invalid JSON: {exc}") from exc
        devices = data.get("devices") if isinstance(data, dict) else None
        if not isinstance(devices, dict):
            raise RegistryParseError(path, "missing 'devices' object")
        return cls(devices)

    def __len__(self) -> int:
        return len(self._bezels)

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._bezels

    def lookup(self, identifier: str) -> float | None:
        return self._bezels.get(identifier)

    def bezel_for(self, identifier: str, fallback: float = 0.0, apply_fallback_if_zero: bool = False) -> float:
        """Bezel for `identifier`, or `fallback` when unknown (or zero, if asked)."""
        value = self._bezels.get(identifier)
        if value is None:
            return fallback
        if value == 0 and apply_fallback_if_zero:
            return fallback
        return value
