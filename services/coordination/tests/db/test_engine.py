"""Tests for engine construction."""

from sqlalchemy import text

from services.coordination.src.coordination.db import engine as engine_module
from services.coordination.src.coordination.db.engine import build_engine, dispose_engine, get_engine


def test_sqlite_engine_usable_across_threads():
    eng = build_engine("sqlite:///:memory:")
    assert eng.dialect.name == "sqlite"
    with eng.connect() as conn:
        assert conn.execute(text("select 1")).scalar() == 1


def test_shared_engine_is_cached_until_disposed(tmp_path, monkeypatch):
    monkeypatch.setattr(engine_module.settings, "database_url", f"sqlite:///{tmp_path}/store.db")
    dispose_engine()

    first = get_engine()
    assert get_engine() is first

    dispose_engine()
    assert get_engine() is not first
    dispose_engine()
