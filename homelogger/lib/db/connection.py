"""Database connection management.

Provides async database operations using aiosqlite for non-blocking
database access from the polling loop.

Connection Model
----------------
connect() returns a ConnectionPool, the single handle the polling loop
keeps between cycles:

- At most ``max_open`` connections are checked out at once (semaphore)
- At most ``max_idle`` connections are kept open between uses
- Connections older than ``max_lifetime_sec`` are recycled; None keeps
  them forever
- The pool is verified with a ping before connect() returns it

The loop never shares the pool, it replaces it: on a failed liveness check
it calls connect() again and only closes the old pool once the new one is
up.

Example:
    pool = await connect("homelogger.sqlite3", timeout=5)
    await ping(pool)
    async with pool.acquire() as db:
        await db.execute("INSERT INTO ...", params)
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import cache
from pathlib import Path

import aiosqlite

from homelogger.lib.config import get_settings
from homelogger.lib.db.types import SQLParams
from homelogger.lib.exceptions import (
    DatabaseError,
    DatabaseNotConnectedError,
    StoreConnectError,
)
from homelogger.logging import get_logger

_logger = get_logger("lib.db")

# SQL templates directory
_SQL_DIR = Path(__file__).resolve().parent.parent / "sql"

_SQLITE_SCHEME = "sqlite://"

# aiosqlite raises ValueError once its worker thread has been closed
STORE_ERRORS: tuple[type[Exception], ...] = (
    TimeoutError,
    OSError,
    ValueError,
    aiosqlite.Error,
    DatabaseError,
)


@cache
def load_template(name: str) -> str:
    """Load and cache a SQL template file.

    Templates are lazy-loaded on first access and cached for subsequent calls.

    Raises:
        FileNotFoundError: If the template file does not exist, with a message
            indicating the expected location.
    """
    path = _SQL_DIR / name
    if not path.exists():
        raise FileNotFoundError(f"SQL template not found: {path}")
    return path.read_text()


def resolve_dsn(dsn: str) -> str:
    """Turn a DSN into a database path.

    Accepts a plain path or a ``sqlite:///path`` URL.
    """
    if dsn.startswith(_SQLITE_SCHEME):
        dsn = dsn.removeprefix(_SQLITE_SCHEME)
        # sqlite:///relative.db keeps one slash, sqlite:////abs.db keeps two
        if dsn.startswith("/"):
            dsn = dsn[1:]
    if not dsn:
        raise ValueError("Empty database DSN")
    return dsn


class Database:
    """Async database connection wrapper."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._connection: aiosqlite.Connection | None = None
        self.opened_at: float | None = None

    @property
    def connected(self) -> bool:
        return self._connection is not None

    async def connect(self) -> None:
        """Open the database connection."""
        if self._connection is None:
            self._connection = await aiosqlite.connect(self._db_path)
            self.opened_at = time.monotonic()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            self.opened_at = None

    def expired(self, max_lifetime_sec: float | None) -> bool:
        """Return True if the connection outlived max_lifetime_sec."""
        if max_lifetime_sec is None or self.opened_at is None:
            return False
        return time.monotonic() - self.opened_at >= max_lifetime_sec

    async def execute(self, sql: str, params: SQLParams = ()) -> int:
        """Execute a single SQL statement and commit.

        The cursor only lives for this call.

        Returns:
            Number of rows affected by the statement.
        """
        if self._connection is None:
            raise DatabaseNotConnectedError()
        async with self._connection.execute(sql, params) as cursor:
            rowcount = cursor.rowcount
        await self._connection.commit()
        return rowcount

    async def ping(self) -> None:
        """Run a trivial round-trip query."""
        if self._connection is None:
            raise DatabaseNotConnectedError()
        async with self._connection.execute(load_template("ping.sql")) as cursor:
            await cursor.fetchone()


class ConnectionPool:
    """Async connection pool with bounded concurrency.

    Limits concurrent database connections using a semaphore. Connections
    are reused when available, created on demand up to max_open, and only
    max_idle of them are kept open once released.
    """

    def __init__(
        self,
        db_path: str,
        *,
        max_open: int = 4,
        max_idle: int = 2,
        max_lifetime_sec: float | None = None,
    ) -> None:
        self.db_path = db_path
        self._max_open = max_open
        self._max_idle = max_idle
        self._max_lifetime_sec = max_lifetime_sec
        self._idle: list[Database] = []
        self._semaphore: asyncio.Semaphore | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def idle_count(self) -> int:
        return len(self._idle)

    def _get_semaphore(self) -> asyncio.Semaphore:
        # Lazy init: asyncio.Semaphore requires running event loop
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self._max_open)
        return self._semaphore

    async def _take(self) -> Database:
        while self._idle:
            conn = self._idle.pop()
            if not conn.expired(self._max_lifetime_sec):
                return conn
            _logger.debug("Recycling expired connection to %s", self.db_path)
            await conn.close()
        return Database(self.db_path)

    async def _release(self, conn: Database) -> None:
        if self._closed or len(self._idle) >= self._max_idle:
            await conn.close()
        else:
            self._idle.append(conn)

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[Database]:
        """Acquire a connection from the pool."""
        if self._closed:
            raise DatabaseNotConnectedError("Connection pool is closed")
        async with self._get_semaphore():
            conn = await self._take()
            try:
                if not conn.connected:
                    await conn.connect()
                yield conn
            except BaseException:
                # Never hand a connection that just failed back to the pool
                await conn.close()
                raise
            await self._release(conn)

    async def ping(self) -> None:
        """Check that a pooled connection answers a query."""
        async with self.acquire() as db:
            await db.ping()

    async def close(self) -> None:
        """Close all idle connections and refuse new acquisitions."""
        self._closed = True
        for conn in self._idle:
            await conn.close()
        count = len(self._idle)
        self._idle = []
        self._semaphore = None
        if count:
            _logger.info("Closed %d pooled connections", count)


async def connect(
    dsn: str | None = None, *, timeout: float | None = None
) -> ConnectionPool:
    """Open a connection pool and verify it with a bounded ping.

    Also makes sure the sensor_data table exists.

    Raises:
        StoreConnectError: If the pool cannot be opened or does not answer
            within the timeout. The half-open pool is closed first.
    """
    cfg = get_settings().store
    dsn = dsn or cfg.dsn
    timeout = timeout or cfg.timeout_sec

    try:
        pool = ConnectionPool(
            resolve_dsn(dsn),
            max_open=cfg.max_open_conns,
            max_idle=cfg.max_idle_conns,
            max_lifetime_sec=cfg.conn_max_lifetime_sec,
        )
    except ValueError as e:
        raise StoreConnectError(f"Invalid DSN {dsn!r}: {e}") from e

    try:
        async with asyncio.timeout(timeout):
            await pool.ping()
            async with pool.acquire() as db:
                await db.execute(load_template("init_sensor_data_table.sql"))
    except STORE_ERRORS as e:
        await pool.close()
        raise StoreConnectError(
            f"Could not connect to {pool.db_path}: {e!r}"
        ) from e

    _logger.info("Connected to database successfully: %s", pool.db_path)
    return pool


async def ping(pool: ConnectionPool) -> None:
    """Liveness check with no timeout beyond the driver default.

    Raises:
        DatabaseError: If the pool is closed or the round-trip fails.
    """
    try:
        await pool.ping()
    except STORE_ERRORS as e:
        raise DatabaseError(f"Ping failed: {e!r}") from e
