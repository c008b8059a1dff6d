"""Migrations for the licensing tables.

The database URL comes from `alignex.core.config`, so migrations and the
running service always target the same database.
"""

from __future__ import annotations

from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool

from alembic import context
from alignex.core.config import SETTINGS
from alignex.db.engine import Base

config = context.config


def _sync_url(url: str) -> str:
    """Alembic runs synchronously, so asyncpg gives way to the default driver."""
    return url.replace("postgresql+asyncpg", "postgresql")


if SETTINGS.database_url:
    config.set_main_option("sqlalchemy.url", _sync_url(SETTINGS.database_url))

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Registers the licensing tables on Base.metadata.
import alignex.db.tables  # noqa: E402, F401

target_metadata = Base.metadata


def _configure_and_run(**options) -> None:
    context.configure(target_metadata=target_metadata, **options)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    """Write the licensing DDL as a SQL script."""
    _configure_and_run(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        _configure_and_run(connection=connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
