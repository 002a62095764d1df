import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storage.migrate import migrate
from config.settings import settings
from config.registry import EVAL_KEY, QUESTION_KEY, SUMMARY_KEY, bind_model, unbind_model
from services.timer import ManualClock


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    monkeypatch.setattr(settings, "CHECKPOINT_DIR", os.path.join(td.name, "checkpoints"), raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


@pytest.fixture(autouse=True)
def clean_registry():
    for key in (QUESTION_KEY, EVAL_KEY, SUMMARY_KEY):
        unbind_model(key)
    yield
    for key in (QUESTION_KEY, EVAL_KEY, SUMMARY_KEY):
        unbind_model(key)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def failing_models():
    """Bind remote implementations that always raise."""

    def _boom(**_):
        raise RuntimeError("remote unavailable")

    for key in (QUESTION_KEY, EVAL_KEY, SUMMARY_KEY):
        bind_model(key, _boom)
    return True
