#!/usr/bin/env python
"""
Create the users/posts tables and the post vector table.
Run once against a fresh database.
"""

import asyncio
import sys

import app.models  # noqa: F401  registers User/Post on Base.metadata
from app.core.config import settings
from app.core.db import close_db, init_db
from app.core.logging import configure_logging, get_logger
from app.vectorstore.factory import get_post_vectorstore

logger = get_logger("init_db")


async def main() -> bool:
    configure_logging()
    logger.info("init_db_start", database=settings.async_database_url.rsplit("@", 1)[-1])

    try:
        await init_db()
        logger.info("primary_tables_ready")

        vector_ready = await get_post_vectorstore().init_schema()
        if not vector_ready:
            logger.error("vector_table_init_failed", table=settings.pgvector_table_posts)
            return False
    finally:
        await close_db()

    logger.info("init_db_complete")
    return True


if __name__ == "__main__":
    sys.exit(0 if asyncio.run(main()) else 1)
