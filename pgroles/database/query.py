#!/usr/bin/env python3

"""Provide a generic interface to query the database.

This is used by :py:class:`pgroles.roles.RoleAdmin` to access the database.
"""

import logging
from collections.abc import Sequence
from typing import Any, Optional, Union

import psycopg2.extensions
import psycopg2.extras
import psycopg2.sql

from pgroles.database.connection import ConnectionContainer, transaction

# Anything psycopg accepts as statement. Composables are needed whenever
# identifiers have to be quoted.
Query = Union[str, psycopg2.sql.Composable]
DatabaseValue = Union[int, str, float, None]
DatabaseRow = dict[str, Any]

# Stand-in for parameters which must not end up in the log.
REDACTED = "********"


class SqlQueryBackend:
    """Python backend to access the SQL database layer.

    Every query is executed inside a transaction context of the connection
    (see :py:func:`pgroles.database.connection.transaction`), thus it is atomic
    on its own if the connection is idle. If the owner of the connection has
    begun a transaction, the query joins it and is committed or rolled back
    together with the rest of it.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger

    def execute_db_query(self, cur: psycopg2.extensions.cursor, query: Query,
                         params: Sequence[DatabaseValue], *,
                         redact: bool = False) -> None:
        """Perform a database query. This low-level wrapper should be used
        for all explicit database queries, mostly because it takes care of
        logging. However in nearly all cases you want to call one of
        :py:meth:`query_exec`, :py:meth:`query_one`, :py:meth:`query_all`
        which utilize a transaction to do the query.

        psycopg2 interprets every percent sign of the statement as part of a
        placeholder if parameters are given. Without parameters we pass None,
        so that percent signs inside quoted identifiers are left untouched.

        :param redact: Replace all parameters in the log message, use this
            for passwords and the like.
        """
        sanitized_params = tuple(params) or None
        logged_params = sanitized_params
        if redact and sanitized_params:
            logged_params = (REDACTED,) * len(sanitized_params)
        self.logger.debug(f"Execute PostgreSQL query"
                          f" {cur.mogrify(query, logged_params).decode()}.")
        cur.execute(query, sanitized_params)

    def query_exec(self, container: ConnectionContainer, query: Query,
                   params: Sequence[DatabaseValue], *,
                   redact: bool = False) -> int:
        """Execute a query in a safe way (inside a transaction).

        :returns: number of affected rows, -1 for utility statements
        """
        with transaction(container.conn) as conn:
            with conn.cursor() as cur:
                self.execute_db_query(cur, query, params, redact=redact)
                return cur.rowcount

    def query_one(self, container: ConnectionContainer, query: Query,
                  params: Sequence[DatabaseValue], *,
                  redact: bool = False) -> Optional[DatabaseRow]:
        """Execute a query in a safe way (inside a transaction).

        :returns: First result of query as plain dict or None if there is none
        """
        with transaction(container.conn) as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                self.execute_db_query(cur, query, params, redact=redact)
                row = cur.fetchone()
                return dict(row) if row else None

    def query_all(self, container: ConnectionContainer, query: Query,
                  params: Sequence[DatabaseValue], *,
                  redact: bool = False) -> tuple[DatabaseRow, ...]:
        """Execute a query in a safe way (inside a transaction).

        :returns: all results of query as plain dicts
        """
        with transaction(container.conn) as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                self.execute_db_query(cur, query, params, redact=redact)
                return tuple(dict(row) for row in cur.fetchall())
