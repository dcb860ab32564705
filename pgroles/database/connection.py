#!/usr/bin/env python3

"""This module provides our python interface to the database connection.

This should be the only module which creates connections via psycopg2.
"""

import contextlib
import functools
import logging
from collections.abc import Iterator, Mapping
from typing import Any, Callable

import psycopg2
import psycopg2.extensions
import psycopg2.extras
from typing_extensions import Protocol

from pgroles.common import ConfigError

# Any mapping with the keys of pgroles.config.Config resp. SecretsConfig.
Config = Mapping[str, Any]
SecretsConfig = Mapping[str, Any]

ConnectionProvider = Callable[[], psycopg2.extensions.connection]

_LOGGER = logging.getLogger(__name__)


class ConnectionContainer(Protocol):
    """Anything holding a database connection which queries should use."""

    @property
    def conn(self) -> psycopg2.extensions.connection: ...


@contextlib.contextmanager
def transaction(conn: psycopg2.extensions.connection
                ) -> Iterator[psycopg2.extensions.connection]:
    """Transaction context which leaves an already open transaction alone.

    If the connection is idle, this behaves like ``with conn``: the statements
    are committed on success and rolled back on error. If the owner of the
    connection has begun a transaction, the statements become part of it and
    committing or rolling back stays with the owner. This also holds if a
    statement fails, the exception is propagated in any case.
    """
    if (conn.info.transaction_status
            != psycopg2.extensions.TRANSACTION_STATUS_IDLE):
        yield conn
    else:
        with conn:
            yield conn


def create_connection(dbname: str, dbuser: str, password: str, host: str,
                      port: int, *, autocommit: bool = False
                      ) -> psycopg2.extensions.connection:
    """Open a database connection and correctly initialize it.

    :param autocommit: Whether every statement should be committed
        immediately. Otherwise each transaction context (``with conn``)
        commits on leaving.
    :returns: open database connection
    """
    connection_parameters = {
        "dbname": dbname,
        "user": dbuser,
        "host": host,
        "port": port,
        "cursor_factory": psycopg2.extras.RealDictCursor,
    }
    # An empty password lets libpq fall back to peer authentication and .pgpass.
    if password:
        connection_parameters["password"] = password
    conn = psycopg2.connect(**connection_parameters)
    conn.set_client_encoding("UTF8")
    conn.set_session(autocommit=autocommit)
    _LOGGER.debug(f"Created connection to {dbname} as {dbuser}")
    return conn


def connection_provider(config: Config, secrets: SecretsConfig,
                        dbuser: str = None) -> ConnectionProvider:
    """Create a callable opening a new connection as configured.

    The connection is only opened once the callable is invoked, so this may be
    handed to :py:class:`pgroles.roles.RoleAdmin` which resolves it lazily.

    :param dbuser: Login role to connect as, defaults to the configured DB_USER.
    """
    dbuser = dbuser or config["DB_USER"]
    passwords = secrets["DB_PASSWORDS"]
    if dbuser not in passwords:
        raise ConfigError(f"No password for role {dbuser} configured.")
    return functools.partial(
        create_connection, config["DB_NAME"], dbuser, passwords[dbuser],
        config["DB_HOST"], config["DB_PORT"])
