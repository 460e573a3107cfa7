import logging
import os

from alembic.config import Config
from sqlalchemy import Connection, create_engine, event
from sqlalchemy.engine import Engine

from alembic import command
from rentledger.settings import settings

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_connection: Connection | None = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def get_engine() -> Engine:
    """Lazily build the engine for ``settings.db_url``.

    SQLite files get foreign keys switched on so line items and transaction
    items cascade with their parents; server databases get pre-ping and
    connection recycling instead.
    """
    global _engine
    if _engine is not None:
        return _engine

    url = settings.db_url
    if url.startswith("sqlite"):
        _engine = create_engine(url)
        event.listen(_engine, "connect", _enable_sqlite_foreign_keys)
    else:
        _engine = create_engine(url, pool_pre_ping=True, pool_recycle=1800)
    logger.info("Database engine ready (%s)", _engine.url.get_backend_name())
    return _engine


def get_connection() -> Connection:
    """The single connection every repository in the process shares."""
    global _connection
    if _connection is None:
        _connection = get_engine().connect()
        logger.debug("Shared ledger connection opened")
    return _connection


def close_db() -> None:
    global _engine, _connection
    if _connection is not None:
        _connection.close()
        _connection = None
    if _engine is not None:
        _engine.dispose()
        _engine = None
    logger.debug("Database connection closed")


def _alembic_config() -> Config:
    # Source checkout first, then the working directory for installed copies.
    candidates = [
        os.path.join(os.path.dirname(os.path.dirname(__file__)), "alembic.ini"),
        os.path.join(os.getcwd(), "alembic.ini"),
    ]
    ini_path = next((path for path in candidates if os.path.exists(path)), candidates[-1])
    cfg = Config(ini_path)
    cfg.set_main_option("sqlalchemy.url", settings.db_url)
    return cfg


def initialize_db() -> None:
    """Bring the ledger schema up to the latest migration."""
    cfg = _alembic_config()
    logger.info("Upgrading ledger schema using %s", cfg.config_file_name)
    command.upgrade(cfg, "head")
    logger.info("Ledger schema is up to date")
