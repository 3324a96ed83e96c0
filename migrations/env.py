"""Alembic environment for the credit ledger tables.

The database URL comes from ``sqlalchemy.url`` when it is set on the
alembic config, and from ``CREDIT_LEDGER_DATABASE__URL`` otherwise.
"""

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection

from creditledger.core.config import DatabaseSettings, get_settings
from creditledger.db import models  # noqa: F401
from creditledger.infrastructure.database.base import Base
from creditledger.infrastructure.database.session import Database

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def _database_settings() -> DatabaseSettings:
    settings = get_settings().database
    url = config.get_main_option("sqlalchemy.url")
    if url:
        settings = settings.model_copy(update={"url": url})
    return settings


def _configure(**kwargs) -> None:
    url = _database_settings().url
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        # SQLite cannot ALTER most column properties in place
        render_as_batch=url.startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit SQL for a synchronous driver instead of connecting."""
    url = _database_settings().url.replace("+aiosqlite", "")
    _configure(url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})

    with context.begin_transaction():
        context.run_migrations()


def _run_migrations_online(connection: Connection) -> None:
    _configure(connection=connection)

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    database = Database.from_settings(_database_settings())
    try:
        async with database.engine.connect() as connection:
            await connection.run_sync(_run_migrations_online)
    finally:
        await database.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
