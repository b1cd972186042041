import json
import subprocess

import pytest

from bezelgen import simctl
from bezelgen.errors import SimctlError


def _completed(args, returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(["xcrun", "simctl"] + args, returncode, stdout, stderr)


def test_list_devices_flattens_runtimes(monkeypatch):
    payload = {
        "devices": {
            "com.apple.CoreSimulator.SimRuntime.iOS-17-0": [
                {"name": "iPhone 15", "udid": "A", "state": "Shutdown"},
            ],
            "com.apple.CoreSimulator.SimRuntime.iOS-16-4": [
                {"name": "iPhone 13 Pro", "udid": "B", "state": "Booted"},
            ],
        }
    }
    monkeypatch.setattr(simctl, "_run", lambda args, check=True: _completed(args, stdout=json.dumps(payload)))

    devices = simctl.list_devices()

    assert {d["udid"]: d["state"] for d in devices} == {"A": "Shutdown", "B": "Booted"}
    assert devices[1]["runtime"].endswith("iOS-16-4")


def test_list_runtimes_sorted_newest_first(monkeypatch):
    payload = {"runtimes": [
        {"identifier": "r16", "version": "16.4"},
        {"identifier": "r17_0_1", "version": "17.0.1"},
        {"identifier": "r9", "version": "9.3"},
        {"identifier": "r17_2", "version": "17.2"},
    ]}
    monkeypatch.setattr(simctl, "_run", lambda args, check=True: _completed(args, stdout=json.dumps(payload)))

    assert [rt["identifier"] for rt in simctl.list_runtimes()] == ["r17_2", "r17_0_1", "r16", "r9"]


def test_invalid_json_raises_simctl_error(monkeypatch):
    monkeypatch.setattr(simctl, "_run", lambda args, check=True: _completed(args, stdout="not json"))
    with pytest.raises(SimctlError):
        simctl.list_devices()


def test_boot_tolerates_already_booted(monkeypatch):
    monkeypatch.setattr(
        simctl,
        "_run",
        lambda args, check=True: _completed(args, 149, stderr="Unable to boot device in current state: Booted"),
    )
    simctl.boot("SIM")


def test_shutdown_tolerates_already_shutdown_but_raises_otherwise(monkeypatch):
    monkeypatch.setattr(
        simctl,
        "_run",
        lambda args, check=True: _completed(args, 149, stderr="Unable to shutdown device in current state: Shutdown"),
    )
    simctl.shutdown("SIM")

    monkeypatch.setattr(simctl, "_run", lambda args, check=True: _completed(args, 1, stderr="Invalid device: SIM"))
    with pytest.raises(SimctlError):
        simctl.shutdown("SIM")


def test_create_returns_udid(monkeypatch):
    calls = []

    def fake_run(args, check=True):
        calls.append(args)
        return _completed(args, stdout="NEW-UDID\n")

    monkeypatch.setattr(simctl, "_run", fake_run)

    assert simctl.create("iPhone 15", "type", "runtime") == "NEW-UDID"
    assert calls == [["create", "iPhone 15", "type", "runtime"]]


def test_run_raises_on_nonzero_exit(monkeypatch):
    monkeypatch.setattr(
        simctl.subprocess,
        "run",
        lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 2, "", "boom"),
    )
    with pytest.raises(SimctlError, match="boom"):
        simctl.install("SIM", "/tmp/app")


def test_version_key():
    assert simctl.version_key("17.0.1") == (17, 0, 1)
    assert simctl.version_key("") == ()
