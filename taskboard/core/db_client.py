"""SQLite record store client with CRUD operations."""

import logging
import re
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

import aiosqlite


logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
_SORT_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\s*(ASC|DESC)?$", re.IGNORECASE)
_UNIQUE_FAILED_RE = re.compile(r"UNIQUE constraint failed: \w+\.(\w+)")


class DatabaseError(RuntimeError):
    """The record store could not complete an operation."""


class RecordNotFoundError(KeyError):
    """No record exists with the requested id."""


class DuplicateRecordError(DatabaseError):
    """A unique index rejected the write."""

    def __init__(self, message: str, field: str) -> None:
        super().__init__(message)
        self.field = field


@dataclass(frozen=True)
class Condition:
    """A single field comparison. The ``~`` operator is a case-insensitive substring match."""

    field: str
    op: str = "="
    value: Any = None


@dataclass(frozen=True)
class AnyOf:
    """Conditions joined with OR."""

    conditions: tuple[Condition, ...]


Filter = Condition | AnyOf


def new_record_id() -> str:
    """Generate an opaque record id."""
    return uuid.uuid4().hex


def utc_now() -> str:
    """Current time as a sortable ISO-8601 string."""
    return datetime.now(UTC).isoformat(timespec="microseconds")


def _validate_identifier(name: str, *, kind: str = "collection") -> None:
    """Validate that a collection or field name contains only alphanumeric characters and underscores."""
    if not _IDENTIFIER_RE.match(name):
        msg = f"Invalid {kind} name: {name}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def _to_column_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat(timespec="microseconds")
    if isinstance(value, Enum):
        return value.value
    return value


def _get_sql_operator(op: str) -> str:
    """Map filter operator to SQL operator."""
    op_map = {
        "=": "=",
        "!=": "!=",
        ">": ">",
        "<": "<",
        ">=": ">=",
        "<=": "<=",
    }
    sql_op = op_map.get(op)
    if not sql_op:
        msg = f"Unsupported operator: {op}"
        raise ValueError(msg)
    return sql_op


def _build_condition(condition: Condition) -> tuple[str, list[Any]]:
    _validate_identifier(condition.field, kind="field")

    if condition.op == "~":
        return f"instr(casefold({condition.field}), ?) > 0", [str(condition.value).casefold()]

    sql_op = _get_sql_operator(condition.op)
    if condition.value is None:
        if sql_op == "=":
            return f"{condition.field} IS NULL", []
        if sql_op == "!=":
            return f"{condition.field} IS NOT NULL", []
    return f"{condition.field} {sql_op} ?", [_to_column_value(condition.value)]


def build_where(filters: Sequence[Filter]) -> tuple[str, list[Any]]:
    """Turn filters into a SQL WHERE clause (without the keyword) and parameter list."""
    conditions: list[str] = []
    params: list[Any] = []

    for item in filters:
        if isinstance(item, AnyOf):
            if not item.conditions:
                continue
            or_conditions = []
            for condition in item.conditions:
                cond, cond_params = _build_condition(condition)
                or_conditions.append(cond)
                params.extend(cond_params)
            conditions.append(f"({' OR '.join(or_conditions)})")
        else:
            cond, cond_params = _build_condition(item)
            conditions.append(cond)
            params.extend(cond_params)

    return " AND ".join(conditions), params


def build_order_by(sort: str) -> str:
    """Validate a ``column [ASC|DESC]`` sort and add an insertion-order tie-break."""
    column, direction = "rowid", "ASC"
    if sort:
        match = _SORT_RE.match(sort.strip())
        if match:
            column = match.group(1)
            direction = (match.group(2) or "ASC").upper()
        else:
            logger.warning("Invalid sort parameter, using default", extra={"sort": sort})

    if column == "rowid":
        return f"rowid {direction}"
    return f"{column} {direction}, rowid {direction}"


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value is not None else None


def _row_to_record(cursor: aiosqlite.Cursor, row: Sequence[Any]) -> dict[str, Any]:
    columns = [description[0] for description in cursor.description]
    return dict(zip(columns, row, strict=True))


class DBClient:
    """Async record store over a single SQLite connection.

    Each collection is a table whose rows carry an opaque ``id`` plus
    ``created``/``updated`` timestamps that the client maintains.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        self._conn: aiosqlite.Connection | None = None

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            msg = "Database is not connected. Call connect() first."
            raise DatabaseError(msg)
        return self._conn

    async def connect(self) -> None:
        """Open the connection if it is not open yet."""
        if self._conn is not None:
            return

        if self._db_path != ":memory:":
            Path(self._db_path).resolve().parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(self._db_path)
        await conn.execute("PRAGMA foreign_keys = ON")
        await conn.execute("PRAGMA journal_mode = WAL")
        await conn.create_function("casefold", 1, _casefold, deterministic=True)
        self._conn = conn

        logger.info("Created new SQLite connection", extra={"db_path": self._db_path})

    async def close(self) -> None:
        """Close the connection if it is open."""
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        await conn.close()
        logger.info("Closed SQLite connection", extra={"db_path": self._db_path})

    async def ping(self) -> bool:
        """Return True when the store answers a trivial query."""
        if self._conn is None:
            return False
        try:
            cursor = await self._conn.execute("SELECT 1")
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            logger.warning("Database ping failed", extra={"error": str(e)})
            return False
        return row is not None

    async def execute_script(self, script: str) -> None:
        """Run a multi-statement SQL script (schema setup)."""
        await self.connection.executescript(script)
        await self.connection.commit()

    async def create_record(self, *, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a new record and return it with its assigned id and timestamps."""
        _validate_identifier(collection)
        now = utc_now()
        record = {"id": new_record_id(), **data, "created": now, "updated": now}

        for key in record:
            _validate_identifier(key, kind="field")

        columns_str = ", ".join(record)
        placeholders_str = ", ".join("?" for _ in record)
        values = [_to_column_value(value) for value in record.values()]

        query = f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - identifiers are validated
        try:
            await self.connection.execute(query, values)
            await self.connection.commit()
        except aiosqlite.IntegrityError as e:
            await self.connection.rollback()
            raise self._integrity_error(collection, e) from e
        except aiosqlite.Error as e:
            logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to create record in {collection}: {e}"
            raise DatabaseError(msg) from e

        logger.info("Created record", extra={"collection": collection, "record_id": record["id"]})
        return await self.get_record(collection=collection, record_id=record["id"])

    async def get_record(self, *, collection: str, record_id: str) -> dict[str, Any]:
        """Fetch a single record by ID, raising RecordNotFoundError if not found."""
        _validate_identifier(collection)
        query = f"SELECT * FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        try:
            cursor = await self.connection.execute(query, (record_id,))
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            logger.error("get_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
            msg = f"Failed to get record from {collection}: {e}"
            raise DatabaseError(msg) from e

        if row is None:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        return _row_to_record(cursor, row)

    async def update_record(self, *, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Update a record by ID and return the updated record."""
        if not data:
            msg = "Empty update payload"
            raise ValueError(msg)

        _validate_identifier(collection)
        changes = {key: value for key, value in data.items() if key not in ("id", "created")}
        changes["updated"] = utc_now()
        for key in changes:
            _validate_identifier(key, kind="field")

        set_clause = ", ".join(f"{key} = ?" for key in changes)
        values = [_to_column_value(value) for value in changes.values()]
        values.append(record_id)

        query = f"UPDATE {collection} SET {set_clause} WHERE id = ?"  # noqa: S608 - identifiers are validated
        try:
            cursor = await self.connection.execute(query, values)
            await self.connection.commit()
        except aiosqlite.IntegrityError as e:
            await self.connection.rollback()
            raise self._integrity_error(collection, e) from e
        except aiosqlite.Error as e:
            logger.error("update_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
            msg = f"Failed to update record in {collection}: {e}"
            raise DatabaseError(msg) from e

        if cursor.rowcount == 0:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
        return await self.get_record(collection=collection, record_id=record_id)

    async def delete_record(self, *, collection: str, record_id: str) -> None:
        """Delete a record by ID, raising RecordNotFoundError if not found."""
        _validate_identifier(collection)
        query = f"DELETE FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        try:
            cursor = await self.connection.execute(query, (record_id,))
            await self.connection.commit()
        except aiosqlite.Error as e:
            logger.error("delete_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
            msg = f"Failed to delete record from {collection}: {e}"
            raise DatabaseError(msg) from e

        if cursor.rowcount == 0:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})

    async def list_records(
        self,
        *,
        collection: str,
        filters: Sequence[Filter] = (),
        sort: str = "",
        page: int = 1,
        per_page: int = 50,
    ) -> list[dict[str, Any]]:
        """List records with optional filtering, sorting, and pagination."""
        _validate_identifier(collection)
        where_clause, params = build_where(filters)
        where_sql = f"WHERE {where_clause}" if where_clause else ""
        order_by = build_order_by(sort)
        offset = (max(page, 1) - 1) * per_page

        query = f"SELECT * FROM {collection} {where_sql} ORDER BY {order_by} LIMIT ? OFFSET ?"  # noqa: S608 - identifiers are validated
        try:
            cursor = await self.connection.execute(query, [*params, per_page, offset])
            rows = await cursor.fetchall()
        except (aiosqlite.Error, OverflowError) as e:
            logger.error("list_records_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to list records from {collection}: {e}"
            raise DatabaseError(msg) from e

        records = [_row_to_record(cursor, row) for row in rows]
        logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
        return records

    async def count_records(self, *, collection: str, filters: Sequence[Filter] = ()) -> int:
        """Count records matching the filters."""
        _validate_identifier(collection)
        where_clause, params = build_where(filters)
        where_sql = f"WHERE {where_clause}" if where_clause else ""

        query = f"SELECT COUNT(*) FROM {collection} {where_sql}"  # noqa: S608 - collection is validated
        try:
            cursor = await self.connection.execute(query, params)
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            logger.error("count_records_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to count records in {collection}: {e}"
            raise DatabaseError(msg) from e

        return int(row[0]) if row else 0

    async def count_by(self, *, collection: str, field: str, filters: Sequence[Filter] = ()) -> dict[Any, int]:
        """Count records grouped by the value of one field."""
        _validate_identifier(collection)
        _validate_identifier(field, kind="field")
        where_clause, params = build_where(filters)
        where_sql = f"WHERE {where_clause}" if where_clause else ""

        query = f"SELECT {field}, COUNT(*) FROM {collection} {where_sql} GROUP BY {field}"  # noqa: S608 - identifiers are validated
        try:
            cursor = await self.connection.execute(query, params)
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            logger.error("count_by_failed", extra={"collection": collection, "field": field, "error": str(e)})
            msg = f"Failed to aggregate records in {collection}: {e}"
            raise DatabaseError(msg) from e

        return {value: int(count) for value, count in rows}

    async def get_first_record(self, *, collection: str, filters: Sequence[Filter]) -> dict[str, Any] | None:
        """Return the first record matching the filters, or None."""
        records = await self.list_records(collection=collection, filters=filters, per_page=1)
        return records[0] if records else None

    def _integrity_error(self, collection: str, error: aiosqlite.IntegrityError) -> DatabaseError:
        match = _UNIQUE_FAILED_RE.search(str(error))
        if match:
            field = match.group(1)
            logger.warning("Unique constraint violated", extra={"collection": collection, "field": field})
            return DuplicateRecordError(f"Duplicate value for {collection}.{field}", field=field)
        logger.error("integrity_error", extra={"collection": collection, "error": str(error)})
        return DatabaseError(f"Integrity error in {collection}: {error}")
