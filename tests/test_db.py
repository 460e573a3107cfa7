from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import text

import rentledger.db as db_module


@pytest.fixture()
def fresh_db(monkeypatch):
    monkeypatch.setattr(db_module, "_engine", None)
    monkeypatch.setattr(db_module, "_connection", None)
    yield
    db_module.close_db()


class TestGetEngine:
    def test_sqlite_enables_foreign_keys(self, fresh_db):
        with patch.object(db_module, "settings") as mock_settings:
            mock_settings.db_url = "sqlite:///:memory:"
            engine = db_module.get_engine()

        assert db_module._engine is engine
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1

    @patch("rentledger.db.create_engine")
    def test_server_url_uses_pool_options(self, mock_create, fresh_db):
        with patch.object(db_module, "settings") as mock_settings:
            mock_settings.db_url = "postgresql://ledger@localhost/ledger"
            db_module.get_engine()

        mock_create.assert_called_once_with(
            "postgresql://ledger@localhost/ledger", pool_pre_ping=True, pool_recycle=1800
        )

    def test_returns_cached_engine(self, monkeypatch):
        sentinel = MagicMock()
        monkeypatch.setattr(db_module, "_engine", sentinel)
        assert db_module.get_engine() is sentinel


class TestGetConnection:
    def test_creates_connection_once(self, monkeypatch):
        monkeypatch.setattr(db_module, "_connection", None)
        mock_engine = MagicMock()
        with patch.object(db_module, "get_engine", return_value=mock_engine):
            first = db_module.get_connection()
            second = db_module.get_connection()
        assert first is second is mock_engine.connect.return_value
        mock_engine.connect.assert_called_once_with()


class TestCloseDb:
    def test_closes_and_resets(self, monkeypatch):
        engine, connection = MagicMock(), MagicMock()
        monkeypatch.setattr(db_module, "_engine", engine)
        monkeypatch.setattr(db_module, "_connection", connection)

        db_module.close_db()

        connection.close.assert_called_once_with()
        engine.dispose.assert_called_once_with()
        assert db_module._engine is None
        assert db_module._connection is None

    def test_noop_when_never_opened(self, fresh_db):
        db_module.close_db()


class TestAlembicConfig:
    def test_points_at_settings_url(self):
        with patch.object(db_module, "settings") as mock_settings:
            mock_settings.db_url = "sqlite:///x.db"
            cfg = db_module._alembic_config()
        assert cfg.get_main_option("sqlalchemy.url") == "sqlite:///x.db"
        assert cfg.config_file_name.endswith("alembic.ini")


class TestInitializeDb:
    @patch("rentledger.db.command")
    @patch("rentledger.db._alembic_config")
    def test_calls_alembic_upgrade(self, mock_config, mock_command):
        db_module.initialize_db()
        mock_command.upgrade.assert_called_once_with(mock_config.return_value, "head")


def test_migration_creates_schema(tmp_path):
    """Run the real migration against a throwaway SQLite file."""
    from alembic import command
    from sqlalchemy import create_engine, inspect

    url = f"sqlite:///{tmp_path / 'ledger.db'}"
    with patch.object(db_module, "settings") as mock_settings:
        mock_settings.db_url = url
        cfg = db_module._alembic_config()
    command.upgrade(cfg, "head")

    tables = set(inspect(create_engine(url)).get_table_names())
    assert {"bills", "bill_line_items", "transactions", "transaction_items", "contracts", "audit_logs"} <= tables
