#!/usr/bin/env python3

"""Administration of PostgreSQL roles.

A role is the only kind of principal PostgreSQL knows, it can act as a
user, as a group or as both. The :py:class:`RoleAdmin` creates and drops
roles, manages memberships between them and inspects the resulting
membership graph.

Every operation issues exactly one statement. Role names are always quoted
as identifiers and values are always passed as bound parameters. If a
required argument is missing, the operation returns a falsy value without
touching the database. Errors of the database are not caught.
"""

import hashlib
import logging
from typing import Optional

import psycopg2.extensions
from psycopg2 import sql

from pgroles.common import DefaultReturnCode, n_
from pgroles.database.connection import ConnectionProvider
from pgroles.database.query import SqlQueryBackend

_LOGGER = logging.getLogger(__name__)


def quote_role(name: Optional[str]) -> Optional[sql.Identifier]:
    """Quote a role name for use as identifier.

    :returns: None if the name can not be used as a role name.
    """
    if not isinstance(name, str) or not name or "\x00" in name:
        return None
    return sql.Identifier(name)


def md5_digest(user: str, password: str) -> str:
    """Compute a password digest like PostgreSQL's md5 password storage.

    This is a weak hash and only kept for compatibility with roles whose
    password was stored with ``password_encryption = 'md5'``.
    """
    digest = hashlib.md5((password + user).encode("utf-8"), usedforsecurity=False)
    return "md5" + digest.hexdigest()


class RoleAdmin(SqlQueryBackend):
    """Manage roles and role memberships of a PostgreSQL cluster.

    The connection may be given directly or via a provider which is called on
    first use. Subclasses may instead override :py:meth:`_build_connection`.
    The connection is never closed by this class.

    The role used for connecting needs the CREATEROLE privilege for the
    modifying operations and read access to ``pg_catalog.pg_authid`` for
    :py:meth:`roles` and :py:meth:`check_user`.
    """

    def __init__(self, conn: psycopg2.extensions.connection = None, *,
                 provider: ConnectionProvider = None,
                 logger: logging.Logger = None) -> None:
        if conn is not None and provider is not None:
            raise ValueError(
                n_("Provide either a connection or a connection provider."))
        super().__init__(logger or _LOGGER)
        self._conn = conn
        self._provider = provider

    def _build_connection(self) -> Optional[psycopg2.extensions.connection]:
        """Obtain the connection. This is called at most once per success."""
        if self._provider is None:
            return None
        return self._provider()

    @property
    def conn(self) -> psycopg2.extensions.connection:
        if self._conn is None:
            self._conn = self._build_connection()
            if self._conn is None:
                raise RuntimeError(n_("No database connection available."))
        return self._conn

    def create(self, *, role: str = None, password: str = None
               ) -> DefaultReturnCode:
        """Create a role, which may be used as user or group afterwards.

        :param password: If given, the role is created with an encrypted password.
        """
        if not (ident := quote_role(role)):
            return 0
        params = []
        if password:
            # The parameter makes psycopg2 format the whole statement.
            ident = sql.Identifier(role.replace("%", "%%"))
            params.append(password)
        query = sql.SQL("CREATE ROLE {role}").format(role=ident)
        if password:
            query += sql.SQL(" WITH ENCRYPTED PASSWORD %s")
        self.query_exec(self, query, params, redact=True)
        self.logger.info(f"Created role {role}.")
        return 1

    def drop(self, *, role: str = None) -> DefaultReturnCode:
        """Drop a role.

        Memberships of and in the role vanish with it, everything else which
        depends on the role has to be removed beforehand.
        """
        if not (ident := quote_role(role)):
            return 0
        query = sql.SQL("DROP ROLE {role}").format(role=ident)
        self.query_exec(self, query, ())
        self.logger.info(f"Dropped role {role}.")
        return 1

    def add(self, *, group: str = None, member: str = None) -> DefaultReturnCode:
        """Make a role member of a group. The member may be a group itself."""
        group_ident, member_ident = quote_role(group), quote_role(member)
        if not group_ident or not member_ident:
            return 0
        query = sql.SQL("GRANT {group} TO {member}").format(
            group=group_ident, member=member_ident)
        self.query_exec(self, query, ())
        self.logger.info(f"Added {member} to {group}.")
        return 1

    def remove(self, *, group: str = None, member: str = None
               ) -> DefaultReturnCode:
        """Remove a direct membership of a role in a group."""
        group_ident, member_ident = quote_role(group), quote_role(member)
        if not group_ident or not member_ident:
            return 0
        query = sql.SQL("REVOKE {group} FROM {member}").format(
            group=group_ident, member=member_ident)
        self.query_exec(self, query, ())
        self.logger.info(f"Removed {member} from {group}.")
        return 1

    def check_user(self, *, user: str = None, password: str = None) -> int:
        """Check whether a role exists with the given password.

        Warning: This compares against md5 digests only and is no substitute
        for real authentication. Passwords stored as SCRAM never match.

        :returns: 1 if the password matches, 0 otherwise.
        """
        if not user or password is None:
            return 0
        query = ("SELECT 1 AS match FROM pg_catalog.pg_authid"
                 " WHERE rolname = %s AND rolpassword = %s")
        params = (user, md5_digest(user, password))
        return 1 if self.query_one(self, query, params, redact=True) else 0

    def roles(self, *, user: str = None) -> list[str]:
        """List all roles the user is a member of, directly or indirectly.

        The user itself is always part of the result.

        :returns: role names sorted ascending
        """
        if not user:
            return []
        query = ("SELECT a.rolname FROM pg_catalog.pg_authid AS a"
                 " WHERE pg_has_role(%s::name, a.oid, 'member')")
        data = self.query_all(self, query, (user,))
        return sorted({e["rolname"] for e in data})

    def member_of(self, *, user: str = None, group: str = None) -> bool:
        """Check whether the user is a member of the group, possibly indirectly."""
        if not user or not group:
            return False
        return group in self.roles(user=user)

    def set(self, *, role: str = None) -> DefaultReturnCode:
        """Assume the privileges of another role for the current session."""
        if not (ident := quote_role(role)):
            return 0
        query = sql.SQL("SET ROLE {role}").format(role=ident)
        self.query_exec(self, query, ())
        self.logger.debug(f"Assumed role {role}.")
        return 1

    def reset(self) -> DefaultReturnCode:
        """Return to the role the session was started with."""
        self.query_exec(self, "RESET ROLE", ())
        self.logger.debug("Reset role.")
        return 1
