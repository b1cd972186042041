"""Write the canonical registry and the minified distributable artifact."""

import json
import os
import sys
import tempfile
from pathlib import Path

from bezelgen.errors import PersistenceError


def _log(msg: str) -> None:
    print(f"[persist] {msg}", file=sys.stderr)


def distributable(registry: dict) -> dict:
    """Only the `devices` partition; what the lookup library ships."""
    return {"devices": registry.get("devices", {})}


def _atomic_write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def save(registry: dict, canonical_path, distributable_path) -> None:
    """Persist both files; any failure raises PersistenceError."""
    canonical_path = Path(canonical_path)
    distributable_path = Path(distributable_path)
    try:
        canonical = json.dumps(registry, indent=2, ensure_ascii=False) + "\n"
        minified = json.dumps(distributable(registry), separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise PersistenceError(f"registry is not JSON-serialisable: {exc}") from exc

    for path, text, label in (
        (canonical_path, canonical, "cache file"),
        (distributable_path, minified, "resource file"),
    ):
        try:
            _atomic_write(path, text)
        except OSError as exc:
            raise PersistenceError(f"failed to write {label} {path}: {exc}") from exc
        _log(f"Saved {label}: {path}")
