import asyncio
import logging
from leave_lottery.core.database import engine, async_session_maker
from leave_lottery.models import *  # noqa: F401,F403  register all tables
from leave_lottery.models.base import Base
from leave_lottery.db.seeds.initial_data import create_initial_data

logger = logging.getLogger(__name__)

async def create_tables():
    """Create all database tables"""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("Database tables created successfully")

    except Exception as e:
        logger.error(f"Error creating tables: {str(e)}")
        raise

async def init_db(seed: bool = True):
    """Create the schema and, optionally, the settings row and the first administrator"""
    try:
        logger.info("Initializing database...")
        await create_tables()

        if seed:
            async with async_session_maker() as session:
                await create_initial_data(session)

        logger.info("Database initialized successfully")

    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise

if __name__ == "__main__":
    from leave_lottery.core.logging_config import setup_logging
    setup_logging()
    asyncio.run(init_db())
