"""Generator configuration: defaults < environment (.env) < explicit overrides."""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path

from bezelgen.errors import ConfigError

_PROJECT_ROOT = Path(__file__).resolve().parent.parent

ENV_KEYS = {
    "database_path": "BEZEL_DATABASE",
    "output_path": "BEZEL_OUTPUT",
    "project_path": "BEZEL_PROJECT",
    "scheme": "BEZEL_SCHEME",
    "bundle_id": "BEZEL_BUNDLE_ID",
    "app_path": "BEZEL_APP_PATH",
    "settle_timeout": "BEZEL_SETTLE_TIMEOUT",
    "poll_interval": "BEZEL_POLL_INTERVAL",
    "runs_root": "BEZEL_RUNS_ROOT",
}


@dataclass(frozen=True)
class GeneratorConfig:
    """Paths and timings for one generation run."""

    database_path: str = "./apple-device-database.json"
    output_path: str = "./bezel.min.json"
    project_path: str = "./FetchBezel/FetchBezel.xcodeproj"
    scheme: str = "FetchBezel"
    bundle_id: str = "com.mb.FetchBezel"
    # Prebuilt probe .app; when set, xcodebuild is skipped.
    app_path: str = ""
    settle_timeout: float = 5.0
    poll_interval: float = 0.25
    runs_root: str = str(_PROJECT_ROOT / "_artifacts" / "runs")


def _coerce(name: str, raw: str):
    if name in ("settle_timeout", "poll_interval"):
        try:
            value = float(raw)
        except ValueError:
            raise ConfigError(f"{ENV_KEYS[name]} must be a number, got {raw!r}") from None
        if value < 0:
            raise ConfigError(f"{ENV_KEYS[name]} must be non-negative, got {raw!r}")
        return value
    return raw


def load_config(**overrides) -> GeneratorConfig:
    """Build a config from defaults, then BEZEL_* env vars, then non-None overrides."""
    known = {f.name for f in fields(GeneratorConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise ConfigError(f"unknown config keys: {', '.join(sorted(unknown))}")

    values: dict = {}
    for name, env_key in ENV_KEYS.items():
        raw = os.getenv(env_key)
        if raw:
            values[name] = _coerce(name, raw)

    for name, value in overrides.items():
        if value is None:
            continue
        values[name] = _coerce(name, str(value)) if name in ("settle_timeout", "poll_interval") else value

    return replace(GeneratorConfig(), **values)
