"""Async database operations for the homelogger application.

This package provides async database operations using aiosqlite for
non-blocking database access from the polling loop.

See connection.py for details on the pooled connection model.
"""

from homelogger.lib.db.connection import ConnectionPool as ConnectionPool
from homelogger.lib.db.connection import Database as Database
from homelogger.lib.db.connection import connect as connect
from homelogger.lib.db.connection import ping as ping
from homelogger.lib.db.connection import resolve_dsn as resolve_dsn
from homelogger.lib.db.queries import insert_reading as insert_reading
from homelogger.lib.db.types import SQLParams as SQLParams
