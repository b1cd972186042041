import json

from bezelgen import doctor
from bezelgen.config import GeneratorConfig


def test_doctor_collect_checks_reports_registry(tmp_path, monkeypatch):
    # Avoid actually running subprocesses in unit test.
    monkeypatch.setattr(doctor, "_check_simctl", lambda: {"ok": True, "runtimes": ["iOS 17.0"]})
    monkeypatch.setattr(doctor, "_check_xcodebuild", lambda: {"ok": True, "path": "/usr/bin/xcodebuild"})
    db = tmp_path / "db.json"
    db.write_text(json.dumps({"devices": {}, "pending": {"iPhone14,2": {"name": "iPhone 13 Pro"}}}))
    app = tmp_path / "FetchBezel.app"
    app.mkdir()

    payload = doctor.collect_checks(GeneratorConfig(database_path=str(db), app_path=str(app)))

    assert payload["ok"] is True
    assert payload["registry"]["to_process"] == ["iPhone14,2"]


def test_doctor_flags_missing_registry(tmp_path, monkeypatch):
    monkeypatch.setattr(doctor, "_check_simctl", lambda: {"ok": False, "error": "xcrun not found on PATH"})
    monkeypatch.setattr(doctor, "_check_xcodebuild", lambda: {"ok": False, "path": ""})

    payload = doctor.collect_checks(GeneratorConfig(database_path=str(tmp_path / "none.json")))

    assert payload["ok"] is False
    assert "registry failed to load or validate" in payload["problems"]
    assert len(payload["problems"]) == 4
