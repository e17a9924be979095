#!/usr/bin/env python3
"""Print the columns, record count and per-status counts of a collection."""

import asyncio
import logging
import sys

from taskboard.core.config import get_settings
from taskboard.core.db_client import DBClient
from taskboard.core.schema import COLLECTIONS


logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


async def main(collection: str) -> None:
    if collection not in COLLECTIONS:
        logger.error(f"Unknown collection {collection!r}; expected one of {COLLECTIONS}")
        sys.exit(1)

    db = DBClient(get_settings().database_path)
    await db.connect()
    try:
        cursor = await db.connection.execute(f"PRAGMA table_info({collection})")
        columns = await cursor.fetchall()
        if not columns:
            logger.info("No schema found; run scripts/sync_schema.py first")
            return

        logger.info("Schema fields:")
        for column in columns:
            logger.info(f"  - {column[1]}: {column[2]}{' NOT NULL' if column[3] else ''}")

        logger.info(f"Records: {await db.count_records(collection=collection)}")
        if collection == "tasks":
            for status, count in sorted((await db.count_by(collection=collection, field="status")).items()):
                logger.info(f"  {status}: {count}")
    finally:
        await db.close()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "tasks"))
