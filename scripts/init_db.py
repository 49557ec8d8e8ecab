"""
Create the harvest tables directly from the models.

Alembic migrations are the normal path (`alembic upgrade head`); this script
is for throwaway databases and local development.
"""

import asyncio
import logging
import sys
import os

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.database import create_engine_and_sessions, verify_connection
from core.exceptions import SetupError
from core.logging import setup_logging
from models import Base

logger = logging.getLogger(__name__)


async def init_database():
    logger.info("Connecting to database...")
    engine, session_factory = create_engine_and_sessions(settings)

    try:
        await verify_connection(session_factory)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    setup_logging()
    try:
        asyncio.run(init_database())
    except SetupError as e:
        logger.error(f"Database initialization failed: {e}")
        sys.exit(1)
