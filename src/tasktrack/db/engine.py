"""Async SQLAlchemy engine and session factory.

SQLAlchemy 2.0 async mode: create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

The engine lives on an explicit Database handle created in the app lifespan
and disposed at shutdown, rather than a module-level global.
"""

from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tasktrack.db.models import Base


class Database:
    """Owns the engine and session factory for one process."""

    def __init__(self, url: str, echo: bool = False, **engine_kwargs):
        self.url = url
        kwargs = {"echo": echo}
        # SQLite (tests, local dev) uses its own pool classes.
        if not url.startswith("sqlite"):
            kwargs.update(pool_size=5, max_overflow=15, pool_pre_ping=True)
        kwargs.update(engine_kwargs)
        self.engine: AsyncEngine = create_async_engine(url, **kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        """Create tables that don't exist yet (dev/test; prod uses alembic)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: yields a session per request, auto-closes."""
    database: Database = request.app.state.db
    async with database.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
