#!/usr/bin/env python3
"""Initialize database tables."""

import asyncio

from loguru import logger

from trustledger.config.database import build_engine, init_db
from trustledger.config.logging import setup_logging
from trustledger.config.settings import settings


async def main() -> None:
    """Create all database tables."""
    setup_logging()
    logger.info("Creating database tables...")

    engine = build_engine(settings.database_url, echo=settings.database_echo)
    try:
        await init_db(engine)
    finally:
        await engine.dispose()

    logger.info("Database tables created successfully")


if __name__ == "__main__":
    asyncio.run(main())
