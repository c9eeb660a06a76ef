from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from spaceborn.core.config import get_settings


class Base(DeclarativeBase):
    """Base class for all ORM models"""

    pass


def create_engine(database_url: str | None = None) -> AsyncEngine:
    """Create the async engine for the configured database"""
    settings = get_settings()
    return create_async_engine(
        database_url or settings.database_url,
        echo=settings.debug,
        future=True,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """Session factory bound to the engine"""
    return async_sessionmaker(
        engine,
        expire_on_commit=False,
    )
