"""Run records for generation runs: state.json plus an events.jsonl audit trail."""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_RUNS_ROOT = _PROJECT_ROOT / "_artifacts" / "runs"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def use_root(runs_root) -> None:
    """Point subsequent run records at `runs_root`."""
    global _RUNS_ROOT
    _RUNS_ROOT = Path(runs_root)


def _run_dir(run_id: str) -> Path:
    return _RUNS_ROOT / run_id


def _state_path(run_id: str) -> Path:
    return _run_dir(run_id) / "state.json"


def _events_path(run_id: str) -> Path:
    return _run_dir(run_id) / "events.jsonl"


def new_run_id() -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    suffix = uuid.uuid4().hex[:8]
    return f"run_{stamp}_{suffix}"


def create_run(database_path: str, output_path: str, pending: list[str], run_id: str | None = None) -> dict:
    """Create a new run-state document and persist it."""
    resolved_run_id = run_id or new_run_id()
    created_at = _now_iso()
    state = {
        "run_id": resolved_run_id,
        "database_path": database_path,
        "output_path": output_path,
        "pending": list(pending),
        "status": "running",
        "summary": "",
        "succeeded": [],
        "problematic": [],
        "created_at": created_at,
        "updated_at": created_at,
        "completed_at": "",
    }
    save_state(state)
    append_event(resolved_run_id, {"type": "run_started", "pending": len(pending), "timestamp": created_at})
    return state


def load_state(run_id: str) -> dict | None:
    """Load state.json for a run, returning None if absent/corrupt."""
    path = _state_path(run_id)
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text())
    except json.JSONDecodeError:
        return None


def save_state(state: dict) -> None:
    run_dir = _run_dir(state["run_id"])
    run_dir.mkdir(parents=True, exist_ok=True)
    state["updated_at"] = _now_iso()
    _state_path(state["run_id"]).write_text(json.dumps(state, indent=2))


def append_event(run_id: str, event: dict) -> None:
    """Append a telemetry event to events.jsonl."""
    run_dir = _run_dir(run_id)
    run_dir.mkdir(parents=True, exist_ok=True)
    payload = dict(event)
    payload.setdefault("timestamp", _now_iso())
    with _events_path(run_id).open("a") as f:
        f.write(json.dumps(payload) + "\n")


def finalize_run(state: dict, status: str, summary: str, succeeded: list[str], problematic: list[str]) -> None:
    """Record the outcome of a run."""
    state["status"] = status
    state["summary"] = summary
    state["succeeded"] = list(succeeded)
    state["problematic"] = list(problematic)
    state["completed_at"] = _now_iso()
    save_state(state)
    append_event(
        state["run_id"],
        {
            "type": "run_finished",
            "status": status,
            "summary": summary,
            "succeeded": len(succeeded),
            "problematic": len(problematic),
        },
    )


def list_runs(limit: int = 20) -> list[dict]:
    """Return recent run summaries sorted by created time descending."""
    if not _RUNS_ROOT.exists():
        return []

    items: list[dict] = []
    for entry in _RUNS_ROOT.iterdir():
        if not entry.is_dir():
            continue
        state_path = entry / "state.json"
        if not state_path.exists():
            continue
        try:
            state = json.loads(state_path.read_text())
        except json.JSONDecodeError:
            continue
        items.append(
            {
                "run_id": state.get("run_id", entry.name),
                "status": state.get("status", "unknown"),
                "succeeded": len(state.get("succeeded", [])),
                "problematic": len(state.get("problematic", [])),
                "created_at": state.get("created_at", ""),
                "summary": state.get("summary", ""),
            }
        )

    items.sort(key=lambda row: row.get("created_at", ""), reverse=True)
    return items[: max(1, limit)]


def latest_run_id() -> str | None:
    runs = list_runs(limit=1)
    return runs[0]["run_id"] if runs else None


def replay_run(run_id: str) -> dict:
    """Load state + all events for a run."""
    state = load_state(run_id)
    if state is None:
        return {"error": f"run '{run_id}' not found"}

    events: list[dict] = []
    events_path = _events_path(run_id)
    if events_path.exists():
        for line in events_path.read_text().splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                events.append(json.loads(line))
            except json.JSONDecodeError:
                continue

    return {"run_id": run_id, "state": state, "events": events}
