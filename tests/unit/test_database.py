from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from asset_register.config.settings import get_settings
from asset_register.models.database import (
    get_engine,
    get_session,
    get_session_factory,
    init_db,
)


class TestDatabase:
    def test_get_engine_returns_engine(self):
        engine = get_engine("sqlite:///:memory:")
        assert isinstance(engine, Engine)

    def test_get_session_factory(self):
        engine = get_engine("sqlite:///:memory:")
        factory = get_session_factory(engine)
        assert isinstance(factory, sessionmaker)

    def test_get_session_context_manager(self):
        engine = get_engine("sqlite:///:memory:")
        init_db(engine)
        with get_session(engine) as session:
            assert session is not None

    def test_init_db_creates_tables(self):
        engine = get_engine("sqlite:///:memory:")
        init_db(engine)
        tables = inspect(engine).get_table_names()
        for table in (
            "assets",
            "asset_components",
            "revaluation_events",
            "categories",
            "locations",
            "audit_logs",
        ):
            assert table in tables

    def test_default_engine_creates_data_directory(self, tmp_path, monkeypatch):
        db_path = tmp_path / "nested" / "register.db"
        monkeypatch.setenv("ASSETREG_DATABASE_URL", f"sqlite:///{db_path}")
        get_settings.cache_clear()
        try:
            init_db()
        finally:
            get_settings.cache_clear()
        assert db_path.exists()
