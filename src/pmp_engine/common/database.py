"""Async database manager for PMP-Engine (single-DB)."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from pmp_engine.common.config import PMPSettings, get_settings
from pmp_engine.common.models import Base

# Import all model modules so Base.metadata is complete for create_all().
import pmp_engine.guard.models  # noqa: F401
import pmp_engine.tickets.models  # noqa: F401
import pmp_engine.confessions.models  # noqa: F401
import pmp_engine.lottery.models  # noqa: F401


def insert_for(session: AsyncSession, model):
    """Return a dialect-specific INSERT for ``model``.

    Both supported dialects expose ``on_conflict_do_nothing`` /
    ``on_conflict_do_update``, which the services rely on to let unique
    indexes arbitrate concurrent writers.
    """
    if session.bind is not None and session.bind.dialect.name == "postgresql":
        return postgresql.insert(model)
    return sqlite.insert(model)


class DatabaseManager:
    """Manages a single async database engine."""

    def __init__(self, settings: PMPSettings | None = None):
        self._settings = settings or get_settings()
        self.engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def init(self) -> None:
        url = self._settings.db_url
        self.engine = create_async_engine(url, echo=False)
        self._session_factory = async_sessionmaker(
            self.engine, expire_on_commit=False
        )

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        if self._session_factory is None:
            raise RuntimeError("DatabaseManager not initialized — call init() first")
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        if self.engine is None:
            raise RuntimeError("DatabaseManager not initialized — call init() first")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self._session_factory = None
