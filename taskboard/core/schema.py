"""Record store schema (code-first approach)."""

import logging

from taskboard.core.db_client import DBClient


logger = logging.getLogger(__name__)


# Central list of all collections in the schema, in dependency order
COLLECTIONS = [
    "users",
    "tasks",
]


_SCHEMAS: dict[str, str] = {
    "users": """
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL,
            password TEXT NOT NULL,
            created TEXT NOT NULL,
            updated TEXT NOT NULL
        );
        CREATE UNIQUE INDEX IF NOT EXISTS idx_users_email ON users (email);
    """,
    # owner_id is a weak reference: deleting a user leaves its tasks in place
    "tasks": """
        CREATE TABLE IF NOT EXISTS tasks (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'in-progress', 'completed')),
            owner_id TEXT,
            created TEXT NOT NULL,
            updated TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_tasks_created ON tasks (created DESC);
        CREATE INDEX IF NOT EXISTS idx_tasks_status_created ON tasks (status, created DESC);
        CREATE INDEX IF NOT EXISTS idx_tasks_owner ON tasks (owner_id);
    """,
}


async def init_db(db: DBClient) -> None:
    """Create every collection and its indexes if they do not exist yet."""
    for collection in COLLECTIONS:
        await db.execute_script(_SCHEMAS[collection])
        logger.info("Collection ready", extra={"collection": collection})
