"""
Database engine and session management with SQLAlchemy async
"""

from typing import Optional, Tuple

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
)

from core.config import Settings, settings as default_settings
from core.exceptions import ConnectionSetupError
import logging

logger = logging.getLogger(__name__)


def create_engine(settings: Optional[Settings] = None) -> AsyncEngine:
    """Create the shared async engine; its pool serves every concurrent write"""
    settings = settings or default_settings
    return create_async_engine(
        settings.database_url,
        echo=False,
        pool_size=settings.MAX_CONCURRENCY,
        max_overflow=settings.MAX_CONCURRENCY,
        pool_pre_ping=True,
        future=True
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """Create session factory"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


def create_engine_and_sessions(
    settings: Optional[Settings] = None
) -> Tuple[AsyncEngine, async_sessionmaker]:
    engine = create_engine(settings)
    return engine, create_session_maker(engine)


async def verify_connection(session_factory: async_sessionmaker) -> None:
    """
    Check that the store answers before any work starts.

    Raises:
        ConnectionSetupError: If the database cannot be reached
    """
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        raise ConnectionSetupError(
            "Database connection failed",
            context={"operation": "SELECT 1"},
            original_exception=e
        )
    logger.info("Database connection verified")
