import pytest

from jot_app.config import get_settings
from jot_app.store import Store


@pytest.fixture(autouse=True)
def db_path(monkeypatch, tmp_path):
    path = tmp_path / "jot.db"
    monkeypatch.setenv("DB_URL", str(path))
    monkeypatch.delenv("JOT_LOG_LEVEL", raising=False)
    get_settings.cache_clear()
    yield path
    get_settings.cache_clear()


@pytest.fixture
def store(db_path):
    store = Store.open(str(db_path))
    yield store
    if not store.closed:
        store.close()
