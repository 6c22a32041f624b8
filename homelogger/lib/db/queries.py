"""Database query functions."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from homelogger.lib.config import get_settings
from homelogger.lib.db.connection import STORE_ERRORS, ConnectionPool, load_template
from homelogger.lib.exceptions import StoreInsertError
from homelogger.logging import get_logger

if TYPE_CHECKING:
    from homelogger.sensor.models import Reading

_logger = get_logger("lib.db")


async def insert_reading(
    pool: ConnectionPool, reading: Reading, *, timeout: float | None = None
) -> int:
    """Insert one reading into sensor_data.

    Values are bound positionally, in column order. The whole call,
    connection checkout included, is bounded by ``timeout``.

    Returns:
        Number of rows affected.

    Raises:
        StoreInsertError: If the statement could not be executed in time.
    """
    timeout = timeout or get_settings().store.timeout_sec
    sql = load_template("insert_sensor_data.sql")

    try:
        async with asyncio.timeout(timeout):
            async with pool.acquire() as db:
                rows = await db.execute(sql, reading.as_params())
    except STORE_ERRORS as e:
        raise StoreInsertError(f"Insert failed: {e!r}") from e

    _logger.debug("%d rows inserted", rows)
    return rows
