#!/usr/bin/env python3
"""General testing utilities for the pgroles testsuite"""

import pathlib
import types
from collections.abc import Sequence
from typing import Any, Optional

import psycopg2.extensions
from psycopg2 import sql

#: directory with the configuration files of the test suite
CONFIG_DIR = pathlib.Path(__file__).resolve().parent / "config"
TEST_CONFIGPATH = CONFIG_DIR / "base.py"


def render(query: Any) -> str:
    """Render a query as PostgreSQL would see it, without a connection.

    psycopg2 needs a live connection to quote identifiers, so this mimics
    its quoting for the composables we use.
    """
    if isinstance(query, str):
        return query
    if isinstance(query, sql.Composed):
        return "".join(render(part) for part in query.seq)
    if isinstance(query, sql.SQL):
        return query.string
    if isinstance(query, sql.Identifier):
        return ".".join('"' + s.replace('"', '""') + '"' for s in query.strings)
    raise TypeError(f"Can not render {query!r}.")


def literal(value: Any) -> str:
    """Quote a parameter like psycopg2 does for the types we pass."""
    if value is None:
        return "NULL"
    if isinstance(value, (int, float)):
        return str(value)
    return "'" + str(value).replace("'", "''") + "'"


def interpolate(query: Any, params: Optional[Sequence[Any]]) -> str:
    """Merge the parameters into the statement like psycopg2.

    Without parameters the statement is taken literally. Otherwise every
    percent sign is a placeholder or has to be escaped as ``%%``, else this
    raises like psycopg2.
    """
    statement = render(query)
    if params is None:
        return statement
    return statement % tuple(literal(p) for p in params)


class FakeCursor:
    """Cursor recording all statements at its connection."""

    def __init__(self, conn: "FakeConnection", cursor_factory: Any) -> None:
        self.conn = conn
        self.cursor_factory = cursor_factory
        self.rowcount = -1
        self._result: list[dict[str, Any]] = []

    def __enter__(self) -> "FakeCursor":
        return self

    def __exit__(self, *args: Any) -> bool:
        return False

    def mogrify(self, query: Any, params: Optional[Sequence[Any]]) -> bytes:
        return interpolate(query, params).encode()

    def execute(self, query: Any, params: Optional[Sequence[Any]]) -> None:
        statement = interpolate(query, params)
        self.conn.info.transaction_status = \
            psycopg2.extensions.TRANSACTION_STATUS_INTRANS
        if self.conn.error:
            self.conn.info.transaction_status = \
                psycopg2.extensions.TRANSACTION_STATUS_INERROR
            raise self.conn.error
        self.conn.executed.append((render(query), tuple(params or ())))
        self.conn.statements.append(statement)
        self.conn.pending.append(statement)
        self._result = self.conn.results.pop(0) if self.conn.results else []
        self.rowcount = len(self._result)

    def fetchone(self) -> Optional[dict[str, Any]]:
        return self._result[0] if self._result else None

    def fetchall(self) -> list[dict[str, Any]]:
        return list(self._result)


class FakeConnection:
    """Stand-in for :py:class:`psycopg2.extensions.connection`.

    Like a connection without autocommit, the first statement opens a
    transaction which lasts until :py:meth:`commit` or :py:meth:`rollback`.
    Only committed statements end up in :py:attr:`committed`.

    :param results: One list of rows per expected statement.
    :param error: If given, every statement raises this.
    """

    def __init__(self, results: list[list[dict[str, Any]]] = None,
                 error: Exception = None) -> None:
        self.results = list(results or [])
        self.error = error
        self.info = types.SimpleNamespace(
            transaction_status=psycopg2.extensions.TRANSACTION_STATUS_IDLE)
        self.executed: list[tuple[str, tuple[Any, ...]]] = []
        self.statements: list[str] = []
        self.pending: list[str] = []
        self.committed: list[str] = []
        self.cursors: list[FakeCursor] = []
        self.commits = 0
        self.rollbacks = 0
        self.closed = 0

    def __enter__(self) -> "FakeConnection":
        return self

    def __exit__(self, etype: Any, evalue: Any, tb: Any) -> bool:
        if etype is None:
            self.commit()
        else:
            self.rollback()
        return False

    def commit(self) -> None:
        self.commits += 1
        self.committed.extend(self.pending)
        self.pending = []
        self.info.transaction_status = psycopg2.extensions.TRANSACTION_STATUS_IDLE

    def rollback(self) -> None:
        self.rollbacks += 1
        self.pending = []
        self.info.transaction_status = psycopg2.extensions.TRANSACTION_STATUS_IDLE

    def cursor(self, cursor_factory: Any = None) -> FakeCursor:
        cur = FakeCursor(self, cursor_factory)
        self.cursors.append(cur)
        return cur

    def close(self) -> None:
        self.closed = 1
