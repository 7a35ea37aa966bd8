"""Module to store documents in a SQLite database."""

import aiosqlite
import asyncio
import contextvars
import json
import logging
import sqlite3
import uuid

from contextlib import asynccontextmanager, contextmanager
from docmerge.document import Object, is_object
from docmerge.error import BadRequestError, ConflictError, NotFoundError, RateLimitError
from docmerge.store import document_key
from typing import Any


_logger = logging.getLogger(__name__)


class Database:
    """
    Manages access to a SQLite database.

    Parameter:
    • path: path to SQLite database file
    """

    def __init__(self, path: str):
        self.path = path
        self._conn = contextvars.ContextVar("docmerge_sqlite_conn", default=None)
        self._txn = contextvars.ContextVar("docmerge_sqlite_txn", default=None)
        self._task = contextvars.ContextVar("docmerge_sqlite_task", default=None)

    @asynccontextmanager
    async def connection(self):
        task = asyncio.current_task()
        if self._conn.get() and self._task.get() is task:
            yield  # connection already established
            return
        _logger.debug("open connection")
        self._task.set(task)
        connection = await aiosqlite.connect(self.path, isolation_level=None)
        connection.row_factory = sqlite3.Row
        self._conn.set(connection)
        try:
            yield
        finally:
            _logger.debug("close connection")
            self._conn.set(None)
            try:
                await connection.close()
            except Exception:
                _logger.exception("error closing connection")

    @asynccontextmanager
    async def transaction(self):
        """
        Return an asynchronous context manager, which scopes a transaction in which
        statement(s) are executed. Upon exit of the context, if an exception was raised,
        changes will be rolled back; otherwise changes will be committed.
        """
        txid = f"_{uuid.uuid4().hex}"
        _logger.debug("transaction begin %s", txid)
        token = self._txn.set(txid)

        async def commit():
            _logger.debug("transaction commit %s", txid)
            await connection.execute(f"RELEASE SAVEPOINT {txid};")

        async def rollback():
            _logger.debug("transaction rollback %s", txid)
            await connection.execute(f"ROLLBACK TO SAVEPOINT {txid};")
            await connection.execute(f"RELEASE SAVEPOINT {txid};")

        async with self.connection():
            connection = self._conn.get()
            await connection.execute(f"SAVEPOINT {txid};")
            try:
                yield
            except Exception:
                await rollback()
                raise
            else:
                await commit()
            finally:
                self._txn.reset(token)

    async def execute(self, statement: str, params: tuple[Any, ...] = ()) -> aiosqlite.Cursor:
        """
        Execute a SQL statement, returning its cursor. Must be called within a database
        transaction context.
        """
        if not self._txn.get():
            raise RuntimeError("transaction context required to execute statement")
        _logger.debug("execute: %s", statement)
        return await self._conn.get().execute(statement, params)


@contextmanager
def _store_errors(operation: str):
    try:
        yield
    except sqlite3.OperationalError as oe:
        if "locked" in str(oe) or "busy" in str(oe):
            raise RateLimitError(f"{operation}: {oe}", retry_after=0.05) from oe
        raise


class SQLiteCollection:
    """
    A collection of documents stored in a SQLite database table.

    Parameters:
    • database: database where table resides
    • name: name of database table
    • partition_key: name of the document property holding the partition key value  ["id"]

    Documents are stored as JSON text. Query text is the condition of a SQL WHERE clause;
    document properties are addressed with json_extract, for example:
    json_extract(document, '$.employer') = 'Some Company'
    """

    def __init__(self, database: Database, name: str, partition_key: str = "id"):
        if not name.isidentifier():
            raise ValueError(f"invalid table name: {name}")
        self.database = database
        self.name = name
        self.partition_key = partition_key

    async def create_table(self) -> None:
        """Create the table that stores the collection's documents, if it does not exist."""
        async with self.database.transaction():
            await self.database.execute(
                f"CREATE TABLE IF NOT EXISTS {self.name} "
                "(pk TEXT NOT NULL, id TEXT NOT NULL, document TEXT NOT NULL, "
                "PRIMARY KEY (pk, id));"
            )

    async def drop_table(self) -> None:
        """Drop the table that stores the collection's documents."""
        async with self.database.transaction():
            await self.database.execute(f"DROP TABLE IF EXISTS {self.name};")

    def _encode(self, document: Object) -> tuple[str, str, str]:
        if not is_object(document):
            raise BadRequestError("document must be an object")
        pk, id = document_key(self, document)
        return pk, id, json.dumps(document, separators=(",", ":"))

    async def read(self, partition_key: str, id: str) -> Object:
        """Return document with partition key and id."""
        with _store_errors("read"):
            async with self.database.transaction():
                cursor = await self.database.execute(
                    f"SELECT document FROM {self.name} WHERE pk = ? AND id = ?;",
                    (partition_key, id),
                )
                row = await cursor.fetchone()
        if row is None:
            raise NotFoundError(f"document not found: partition key {partition_key}, id {id}")
        return json.loads(row["document"])

    async def create(self, document: Object) -> Object:
        """Store new document."""
        pk, id, text = self._encode(document)
        with _store_errors("create"):
            try:
                async with self.database.transaction():
                    await self.database.execute(
                        f"INSERT INTO {self.name} (pk, id, document) VALUES (?, ?, ?);",
                        (pk, id, text),
                    )
            except sqlite3.IntegrityError as ie:
                raise ConflictError(
                    f"document already exists: partition key {pk}, id {id}"
                ) from ie
        return json.loads(text)

    async def upsert(self, document: Object) -> Object:
        """Store new document or replace existing document."""
        pk, id, text = self._encode(document)
        with _store_errors("upsert"):
            async with self.database.transaction():
                await self.database.execute(
                    f"INSERT INTO {self.name} (pk, id, document) VALUES (?, ?, ?) "
                    "ON CONFLICT (pk, id) DO UPDATE SET document = excluded.document;",
                    (pk, id, text),
                )
        return json.loads(text)

    async def replace(self, document: Object) -> Object:
        """Replace existing document."""
        pk, id, text = self._encode(document)
        with _store_errors("replace"):
            async with self.database.transaction():
                cursor = await self.database.execute(
                    f"UPDATE {self.name} SET document = ? WHERE pk = ? AND id = ?;",
                    (text, pk, id),
                )
                updated = cursor.rowcount
        if not updated:
            raise NotFoundError(f"document not found: partition key {pk}, id {id}")
        return json.loads(text)

    async def delete(self, partition_key: str, id: str) -> None:
        """Delete document with partition key and id."""
        with _store_errors("delete"):
            async with self.database.transaction():
                cursor = await self.database.execute(
                    f"DELETE FROM {self.name} WHERE pk = ? AND id = ?;",
                    (partition_key, id),
                )
                deleted = cursor.rowcount
        if not deleted:
            raise NotFoundError(f"document not found: partition key {partition_key}, id {id}")

    async def query(self, query_text: str) -> list[Object]:
        """Return documents satisfying a SQL WHERE condition, in the order they were stored."""
        with _store_errors("query"):
            try:
                async with self.database.transaction():
                    cursor = await self.database.execute(
                        f"SELECT document FROM {self.name} WHERE {query_text} ORDER BY rowid;"
                    )
                    rows = await cursor.fetchall()
            except sqlite3.OperationalError as oe:
                if "locked" in str(oe) or "busy" in str(oe):
                    raise
                raise BadRequestError(f"invalid query: {query_text}") from oe
        return [json.loads(row["document"]) for row in rows]
