from __future__ import annotations

import json

import pytest

from storage.checkpoint import CheckpointError, CheckpointStore


def test_missing_checkpoint_loads_empty(store):
    assert store.load("acme_dir", "details") == []


def test_save_rewrites_whole_sequence(store):
    store.save("acme_dir", "urls", [{"name": "A", "link": "https://d/a"}])
    store.save("acme_dir", "urls", [{"name": "A", "link": "https://d/a"}, {"name": "B", "link": "https://d/b"}])
    path = store.path_for("acme_dir", "urls")
    assert path == store.data_dir / "acme_dir" / "urls.json"
    assert [r["name"] for r in json.loads(path.read_text(encoding="utf-8"))] == ["A", "B"]
    # No temp files left behind by the atomic replace
    assert [p.name for p in path.parent.iterdir()] == ["urls.json"]


def test_trial_namespace_is_isolated(tmp_path):
    real = CheckpointStore(tmp_path / "data")
    trial = CheckpointStore(tmp_path / "data", trial=True)
    real.save("acme_dir", "details", [{"name": "Real", "link": "r"}])
    trial.save("acme_dir", "details", [{"name": "Trial", "link": "t"}])
    assert trial.path_for("acme_dir", "details").name == "acme_dir-details.test.json"
    assert real.load("acme_dir", "details")[0]["name"] == "Real"
    assert trial.load("acme_dir", "details")[0]["name"] == "Trial"
    assert trial.error_log_path("acme_dir").name == "errors-acme_dir.log"


def test_reset_trial_only_removes_that_source(tmp_path):
    trial = CheckpointStore(tmp_path / "data", trial=True)
    trial.save("acme_dir", "urls", [{"name": "A", "link": "a"}])
    trial.save("other_dir", "urls", [{"name": "B", "link": "b"}])
    trial.error_log_path("acme_dir").write_text("x\n", encoding="utf-8")
    assert trial.reset_trial("acme_dir") == 2
    assert trial.load("acme_dir", "urls") == []
    assert trial.load("other_dir", "urls") != []


def test_reset_refused_on_real_store(store):
    with pytest.raises(CheckpointError):
        store.reset_trial("acme_dir")


def test_corrupt_checkpoint_is_fatal(store):
    path = store.path_for("acme_dir", "enriched")
    path.parent.mkdir(parents=True)
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(CheckpointError):
        store.load("acme_dir", "enriched")


def test_unwritable_directory_is_fatal(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("i am a file", encoding="utf-8")
    # data_dir is a regular file: mkdir of <data_dir>/<source> must fail
    bad = CheckpointStore(blocker)
    with pytest.raises(CheckpointError):
        bad.save("acme_dir", "urls", [])
