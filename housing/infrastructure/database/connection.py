from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from housing.config import settings


class Base(DeclarativeBase):
    pass


def create_db_engine(database_url: str) -> AsyncEngine:
    """Create the async engine; PostgreSQL URLs are switched to asyncpg."""
    url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    engine_kwargs: dict[str, Any] = {"echo": False}
    if not url.startswith("sqlite"):
        engine_kwargs.update(pool_pre_ping=True, pool_size=10, max_overflow=20)

    return create_async_engine(url, **engine_kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
    )


engine = create_db_engine(settings.database_url)

AsyncSessionLocal = create_session_factory(engine)
