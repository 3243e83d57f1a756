from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest


def pytest_configure():
    # Ensure project root is on sys.path for absolute imports like 'pipelines.steps.enrich_sirene'
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    # Set test environment knobs
    os.environ.setdefault("RUN_ENV", "test")


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch, tmp_path):
    # Settings are cached per process; tests tweak env between cases
    from config.settings import get_settings
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store(tmp_path):
    from storage.checkpoint import CheckpointStore
    return CheckpointStore(tmp_path / "data")


@pytest.fixture
def error_log(store):
    from utils.error_log import ErrorLog
    return ErrorLog(store.error_log_path("acme_dir"), "acme_dir")
