"""End-to-end generation run.

load registry -> diff pending -> build probe -> resolve simulators -> extract
-> merge -> save. Per-device failures become "problematic" entries; registry,
probe-build and persistence failures end the run.
"""

import sys
import time
from dataclasses import dataclass, field

from bezelgen import extraction, merge, persistence, provisioning, registry, run_state, simctl, xcodebuild
from bezelgen.config import GeneratorConfig
from bezelgen.errors import BezelError


def _log(msg: str) -> None:
    print(f"[pipeline] {msg}", file=sys.stderr)


@dataclass
class RunResult:
    status: str
    succeeded: list[str] = field(default_factory=list)
    problematic: list[str] = field(default_factory=list)
    run_id: str = ""
    database_path: str = ""
    output_path: str = ""

    @property
    def changed(self) -> bool:
        return self.status == "completed"


def format_summary(result: RunResult) -> str:
    """Human-readable report of what a run did."""
    if result.status == "no_changes":
        return (
            "There are no new simulators to process.\n"
            "Check that pending/problematic are not empty and are not already listed under devices."
        )
    lines = [
        f"Run {result.run_id}: {len(result.succeeded)} measured, {len(result.problematic)} problematic",
    ]
    if result.succeeded:
        lines.append("Measured:")
        lines.extend(f"  - {identifier}" for identifier in result.succeeded)
    if result.problematic:
        lines.append("Moved to problematic:")
        lines.extend(f"  - {identifier}" for identifier in result.problematic)
    lines.append(f"Cache file: {result.database_path}")
    lines.append(f"Resource file: {result.output_path}")
    return "\n".join(lines)


def run(
    config: GeneratorConfig,
    sim=simctl,
    builder=xcodebuild.build_probe_app,
    sleep=time.sleep,
) -> RunResult:
    """Execute one generation run. Raises on registry, build or write failure."""
    current = registry.load(config.database_path)
    pending = registry.diff_pending(current)
    if not pending:
        _log("There are no new simulators to process")
        return RunResult(status="no_changes", database_path=config.database_path, output_path=config.output_path)

    _log(f"{len(pending)} device(s) to process: {', '.join(d.identifier for d in pending)}")
    run_state.use_root(config.runs_root)
    state = run_state.create_run(config.database_path, config.output_path, [d.identifier for d in pending])
    run_id = state["run_id"]

    try:
        app_path = xcodebuild.locate_probe_app(config.app_path, config.project_path, config.scheme, builder=builder)

        handles, unresolved = provisioning.resolve_all(pending, sim)
        for handle in handles:
            run_state.append_event(run_id, {
                "type": "device_resolved",
                "identifier": handle.identifier,
                "name": handle.name,
                "udid": handle.udid,
            })
        for device in unresolved:
            run_state.append_event(run_id, {
                "type": "device_unresolved",
                "identifier": device.identifier,
                "name": device.name,
            })

        def record(handle, measurement, error):
            if error is None:
                run_state.append_event(run_id, {
                    "type": "device_measured",
                    "identifier": handle.identifier,
                    "bezel": measurement.bezel,
                })
            else:
                run_state.append_event(run_id, {
                    "type": "device_failed",
                    "identifier": handle.identifier,
                    "error": str(error),
                })

        measurements, failed = extraction.extract_all(
            handles,
            app_path,
            config.bundle_id,
            sim=sim,
            timeout=config.settle_timeout,
            poll_interval=config.poll_interval,
            sleep=sleep,
            on_result=record,
        )

        merged = merge.merge(current, measurements, unresolved + failed)
        persistence.save(merged, config.database_path, config.output_path)
    except BezelError as exc:
        run_state.finalize_run(state, "failed", str(exc), [], [])
        raise

    result = RunResult(
        status="completed",
        succeeded=[m.identifier for m in measurements],
        problematic=[d.identifier for d in unresolved + failed],
        run_id=run_id,
        database_path=config.database_path,
        output_path=config.output_path,
    )
    run_state.finalize_run(
        state,
        "completed",
        f"{len(result.succeeded)} measured, {len(result.problematic)} problematic",
        result.succeeded,
        result.problematic,
    )
    return result
