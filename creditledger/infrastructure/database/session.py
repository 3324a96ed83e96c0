"""Async SQLAlchemy engine and session management.

A :class:`Database` is created by the process entry point (the FastAPI
lifespan or the command line) and handed to the services that need storage.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from creditledger.core.config import DatabaseSettings
from creditledger.infrastructure.database.base import Base


def _build_engine(settings: DatabaseSettings, *, debug: bool = False) -> AsyncEngine:
    engine_kwargs: dict[str, Any] = {
        "echo": settings.echo or debug,
    }
    if settings.pool_size is not None:
        engine_kwargs["pool_size"] = settings.pool_size
    if settings.max_overflow is not None:
        engine_kwargs["max_overflow"] = settings.max_overflow
    if settings.url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"timeout": settings.busy_timeout}

    return create_async_engine(settings.url, **engine_kwargs)


class Database:
    """Owns one engine and the session factory bound to it."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: DatabaseSettings, *, debug: bool = False) -> "Database":
        return cls(_build_engine(settings, debug=debug))

    async def create_all(self) -> None:
        """Create database tables in development mode (migrations preferred)."""
        from creditledger.db import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


__all__ = ["Database"]
