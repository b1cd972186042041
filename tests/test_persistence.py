import json

import pytest

from bezelgen import persistence
from bezelgen.errors import PersistenceError

REGISTRY = {
    "devices": {"iPhone": {"iPhone14,2": {"name": "iPhone 13 Pro", "bezel": 47.33}}},
    "pending": {},
    "problematic": {"iPadXX,1": {"name": "iPad Imaginary"}},
}


def test_save_writes_pretty_canonical_and_minified_distributable(tmp_path):
    canonical = tmp_path / "db.json"
    dist = tmp_path / "Resources" / "bezel.min.json"

    persistence.save(REGISTRY, canonical, dist)

    assert json.loads(canonical.read_text()) == REGISTRY
    assert "\n  " in canonical.read_text()

    text = dist.read_text()
    assert " " not in text.replace("iPhone 13 Pro", "")
    assert "\n" not in text
    assert json.loads(text) == {"devices": REGISTRY["devices"]}


def test_distributable_strips_pending_and_problematic():
    data = dict(REGISTRY, pending={"x": {"name": "y"}})
    assert set(persistence.distributable(data)) == {"devices"}


def test_save_leaves_no_temp_files(tmp_path):
    persistence.save(REGISTRY, tmp_path / "db.json", tmp_path / "min.json")
    assert sorted(p.name for p in tmp_path.iterdir()) == ["db.json", "min.json"]


def test_save_failure_raises_persistence_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    with pytest.raises(PersistenceError):
        persistence.save(REGISTRY, tmp_path / "db.json", blocker / "min.json")


def test_save_rejects_unserialisable_registry(tmp_path):
    with pytest.raises(PersistenceError):
        persistence.save({"devices": {"x": object()}}, tmp_path / "a.json", tmp_path / "b.json")
    assert not (tmp_path / "a.json").exists()


def test_distributable_drops_unknown_top_level_keys(tmp_path):
    dist = tmp_path / "min.json"
    data = dict(REGISTRY, notes={"owner": "tooling"}, version=3)

    persistence.save(data, tmp_path / "db.json", dist)

    assert set(json.loads(dist.read_text())) == {"devices"}
    assert json.loads((tmp_path / "db.json").read_text())["notes"] == {"owner": "tooling"}
