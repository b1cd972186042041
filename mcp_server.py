#!/usr/bin/env python3
"""MCP server wrapper for the bezel generator.

Exposes registry inspection, lookups and generation runs as tools over the
Model Context Protocol (stdio transport).

Sample config for an MCP client:

    {
      "mcpServers": {
        "bezel": {
          "command": "/path/to/bezel-generator/.venv/bin/python",
          "args": ["/path/to/bezel-generator/mcp_server.py"],
          "cwd": "/path/to/bezel-generator"
        }
      }
    }

Run standalone:  python mcp_server.py
"""

import json
import os
import sys

# Ensure project root is on sys.path so bezelgen/ imports work
_PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP

load_dotenv(os.path.join(_PROJECT_ROOT, ".env"))
load_dotenv(os.path.expanduser("~/.env"))

from bezelgen import pipeline, registry, run_state
from bezelgen.config import load_config
from bezelgen.errors import BezelError
from bezelgen.lookup import BezelTable

mcp = FastMCP(
    "bezel",
    instructions="Device corner-radius table: look up bezels, inspect the registry, run the simulator generator",
)


@mcp.tool()
def bezel_lookup(identifier: str, fallback: float = 0.0, apply_fallback_if_zero: bool = False) -> str:
    """Look up the display corner radius for a device model identifier.

    Args:
        identifier: Hardware model identifier, e.g. "iPhone14,2".
        fallback: Value returned when the identifier is unknown.
        apply_fallback_if_zero: Also use the fallback when the stored bezel is 0.

    Returns:
        JSON string with keys: identifier, known, bezel.
    """
    config = load_config()
    try:
        table = BezelTable.from_file(config.output_path)
    except BezelError as exc:
        return json.dumps({"error": str(exc)})
    return json.dumps({
        "identifier": identifier,
        "known": identifier in table,
        "bezel": table.bezel_for(identifier, fallback, apply_fallback_if_zero),
    })


@mcp.tool()
def bezel_pending() -> str:
    """List identifiers the next generation run would try to measure."""
    config = load_config()
    try:
        data = registry.load(config.database_path)
    except BezelError as exc:
        return json.dumps({"error": str(exc)})
    return json.dumps(
        [{"identifier": d.identifier, "name": d.name} for d in registry.diff_pending(data)],
        indent=2,
    )


@mcp.tool()
def bezel_validate_registry() -> str:
    """Check that no identifier is listed in more than one registry partition."""
    config = load_config()
    try:
        data = registry.load(config.database_path)
    except BezelError as exc:
        return json.dumps({"ok": False, "errors": [str(exc)]})
    return json.dumps(registry.validate(data), indent=2)


@mcp.tool()
def bezel_generate(app_path: str = "", settle_timeout: float = 0.0) -> str:
    """Run the simulator extraction pipeline and rewrite the registry + artifact.

    Args:
        app_path: Prebuilt probe .app (default: build from the Xcode project).
        settle_timeout: Seconds to wait for probe output (default: configured value).

    Returns:
        JSON string with keys: status, run_id, succeeded, problematic.
    """
    config = load_config(
        app_path=app_path or None,
        settle_timeout=settle_timeout if settle_timeout > 0 else None,
    )
    try:
        result = pipeline.run(config)
    except BezelError as exc:
        return json.dumps({"status": "failed", "error": str(exc)})
    return json.dumps({
        "status": result.status,
        "run_id": result.run_id,
        "succeeded": result.succeeded,
        "problematic": result.problematic,
    }, indent=2)


@mcp.tool()
def bezel_list_runs(limit: int = 20) -> str:
    """List recent generation runs, newest first."""
    run_state.use_root(load_config().runs_root)
    return json.dumps(run_state.list_runs(limit=limit), indent=2)


@mcp.tool()
def bezel_replay_run(run_id: str = "") -> str:
    """Return the stored state and event log for a generation run.

    Args:
        run_id: Run to replay (default: the most recent run).
    """
    run_state.use_root(load_config().runs_root)
    resolved = run_id or run_state.latest_run_id()
    if not resolved:
        return json.dumps({"error": "no generation runs recorded"})
    return json.dumps(run_state.replay_run(resolved), indent=2)


if __name__ == "__main__":
    mcp.run(transport="stdio")
