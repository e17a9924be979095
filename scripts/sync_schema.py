#!/usr/bin/env python3
"""Create the record store tables and indexes if they are missing."""

import asyncio
import logging

from taskboard.core.config import get_settings
from taskboard.core.db_client import DBClient
from taskboard.core.schema import init_db


logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


async def main() -> None:
    settings = get_settings()
    db = DBClient(settings.database_path)
    await db.connect()
    try:
        await init_db(db)
    finally:
        await db.close()
    logger.info(f"Schema ready in {settings.database_path}")


if __name__ == "__main__":
    asyncio.run(main())
