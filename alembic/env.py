import logging
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

config = context.config

# Only the standalone `alembic` command uses the ini logging; inside the app
# the root logger is already configured.
if config.config_file_name is not None and not logging.getLogger().handlers:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# Migrations are written by hand with op.create_table; nothing to autogenerate from.
target_metadata = None


def database_url() -> str:
    url = config.get_main_option("sqlalchemy.url")
    if not url:
        from rentledger.settings import settings

        url = settings.db_url
    return url


def run_offline() -> None:
    context.configure(url=database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    engine = create_engine(database_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        # Batch mode lets later ALTERs run on SQLite.
        context.configure(connection=connection, target_metadata=target_metadata, render_as_batch=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
