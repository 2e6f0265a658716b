"""Async SQLite wrapper using stdlib sqlite3 + anyio.

Every blocking sqlite3 call runs in a worker thread via
``anyio.to_thread``. The connection is opened in autocommit mode;
``Database.transaction()`` flips it to manual mode as needed.
"""

import sqlite3
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import anyio

type SQLParams = Sequence[Any] | Mapping[str, Any]


def _run_sync(func: Callable[..., Any], *args: Any) -> Any:
    """Run a blocking call in an anyio worker thread."""
    return anyio.to_thread.run_sync(func, *args)  # type: ignore[union-attr]


class AsyncCursor:
    """Async wrapper around ``sqlite3.Cursor``."""

    __slots__ = ("_cursor",)

    def __init__(self, cursor: sqlite3.Cursor) -> None:
        self._cursor = cursor

    @property
    def columns(self) -> list[str]:
        """Result column names; empty for statements without rows."""
        if self._cursor.description is None:
            return []
        return [desc[0] for desc in self._cursor.description]

    @property
    def rowcount(self) -> int:
        return self._cursor.rowcount

    async def fetchall(self) -> list[Any]:
        return await _run_sync(self._cursor.fetchall)

    async def fetchone(self) -> Any:
        return await _run_sync(self._cursor.fetchone)


class AsyncConnection:
    """Async wrapper around ``sqlite3.Connection``."""

    __slots__ = ("_conn",)

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    @property
    def autocommit(self) -> bool:
        return bool(self._conn.autocommit)

    @autocommit.setter
    def autocommit(self, value: bool) -> None:
        self._conn.autocommit = value

    async def execute(self, sql: str, params: SQLParams = ()) -> AsyncCursor:
        """Run one statement. *params* may be positional or named (``:name``)."""
        cursor = await _run_sync(lambda: self._conn.execute(sql, params))
        return AsyncCursor(cursor)

    async def executescript(self, sql: str) -> None:
        """Execute several statements at once.

        ``executescript`` commits any pending transaction first and
        ignores ``autocommit``.
        """
        await _run_sync(lambda: self._conn.executescript(sql))

    async def commit(self) -> None:
        await _run_sync(self._conn.commit)

    async def rollback(self) -> None:
        await _run_sync(self._conn.rollback)

    async def close(self) -> None:
        await _run_sync(self._conn.close)


async def connect(path: str) -> AsyncConnection:
    """Open an async SQLite connection.

    ``check_same_thread=False`` because anyio's pool may dispatch
    consecutive calls to different threads.
    """
    conn = await _run_sync(lambda: sqlite3.connect(path, autocommit=True, check_same_thread=False))
    return AsyncConnection(conn)
