# key-value persistence: one sqlite table of JSON values, one row per collection
from __future__ import annotations

import asyncio
import json
import os.path
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import aiosqlite

from utils.logger import get_logger

_logger = get_logger(__name__)

# collection keys
USERS = "users"
CURRENT_USER = "currentUser"
PRODUCTS = "products"
CART = "cart"
ORDERS = "orders"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class Transaction:
    """
    Reads and writes issued inside an open `BEGIN IMMEDIATE` transaction.
    Writes become visible to other connections only when the owning
    `KeyValueStore.transaction()` block exits without an exception.
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def get(self, key: str, default: Any = None) -> Any:
        cur = await self._conn.execute("SELECT value FROM kv WHERE key = ?;", (key,))
        row = await cur.fetchone()
        await cur.close()
        if row is None:
            return default
        return json.loads(row[0])

    async def set(self, key: str, value: Any) -> None:
        await self._conn.execute(
            """
            INSERT INTO kv(key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value;
            """,
            (key, json.dumps(value)),
        )

    async def delete(self, key: str) -> None:
        await self._conn.execute("DELETE FROM kv WHERE key = ?;", (key,))


class KeyValueStore:
    """
    Durable mapping from string key to JSON value, stored in a sqlite file.

    Constructed once at application start and handed to every store.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._initialized = False
        self._init_lock = asyncio.Lock()

    async def _init_db(self, conn: aiosqlite.Connection) -> None:
        _logger.info(f"Initializing key-value store at {self.path}...")
        await conn.executescript(_SCHEMA)

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Async context manager yielding an autocommit aiosqlite connection.

        Ensures the kv table exists on first use.
        """
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        conn = await aiosqlite.connect(self.path, isolation_level=None)
        if not self._initialized:
            async with self._init_lock:
                if not self._initialized:
                    await self._init_db(conn)
                    self._initialized = True
        try:
            yield conn
        finally:
            await conn.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Transaction]:
        """
        Open a write transaction. All writes made through the yielded
        `Transaction` are committed together, or rolled back together if the
        block raises.
        """
        async with self.connect() as conn:
            await conn.execute("BEGIN IMMEDIATE;")
            try:
                yield Transaction(conn)
            except BaseException:
                await conn.execute("ROLLBACK;")
                raise
            await conn.execute("COMMIT;")

    async def get(self, key: str, default: Any = None) -> Any:
        async with self.connect() as conn:
            return await Transaction(conn).get(key, default)
