"""
auth/directory.py -- Directory service (LDAP / Active Directory) client.

The directory is the authentication oracle: a user is who they say they are
if the directory accepts a simple bind with their user principal name
("z1111111@ad.unsw.edu.au") and password. The same bound connection is then
used to read the display name attribute from the user's entry.

Resource handling:
  One ldap3 Connection per login. DirectoryClient.connect() is a context
  manager; the connection is unbound when the block exits, whether the login
  succeeded, the bind was rejected, or the search blew up. Connect and
  receive are both bounded by the configured timeout so a dead directory
  cannot pin a worker thread.

Failure handling:
  A rejected bind is an ordinary False from verify(). Anything ldap3 raises
  (socket errors, timeouts, protocol errors) becomes DirectoryUnavailableError,
  which the API renders as a 401 for that request only.

Layer rule: no imports from api/ or content/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from ldap3 import NONE, SUBTREE, Connection, Server
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars

from core.errors import AuthenticationError, DirectoryUnavailableError

logger = logging.getLogger("contentapi.auth.directory")

# LDAP result codes that mean "the search ran, nothing matched".
_RESULT_SUCCESS = 0
_RESULT_NO_SUCH_OBJECT = 32


class DirectoryConnection:
    """A single-use directory session: one bind, then attribute lookups.

    Obtain through DirectoryClient.connect(); do not construct directly.
    """

    def __init__(self, server: Server, domain: str, base_dn: str, timeout: float) -> None:
        self._server = server
        self._domain = domain
        self._base_dn = base_dn
        self._timeout = timeout
        self._conn: Connection | None = None

    def verify(self, identifier: str, secret: str) -> bool:
        """Bind as identifier@domain. Returns True if the directory accepts the secret.

        An empty secret is refused before contacting the server: many
        directories treat a bind with a name and no password as an anonymous
        "unauthenticated bind" and report success.
        """
        if not identifier or not secret:
            return False
        principal = f"{identifier}@{self._domain}"
        self._conn = Connection(
            self._server,
            user=principal,
            password=secret,
            receive_timeout=self._timeout,
            raise_exceptions=False,
        )
        try:
            bound = self._conn.bind()
        except LDAPException as exc:
            logger.warning("Directory bind failed for %s: %s", self._server.host, exc)
            raise DirectoryUnavailableError("The directory service is unavailable.") from exc
        if not bound:
            logger.info("Directory rejected bind: %s", self._conn.result.get("description"))
        return bool(bound)

    def lookup_attribute(self, identifier: str, attribute: str) -> str | None:
        """Return the first value of attribute on the identifier's entry, or None."""
        if self._conn is None or not self._conn.bound:
            raise AuthenticationError("Directory lookup attempted before a successful bind.")
        search_filter = f"(cn={escape_filter_chars(identifier)})"
        try:
            found = self._conn.search(
                search_base=self._base_dn,
                search_filter=search_filter,
                search_scope=SUBTREE,
                attributes=[attribute],
                size_limit=1,
            )
        except LDAPException as exc:
            logger.warning("Directory search failed: %s", exc)
            raise DirectoryUnavailableError("The directory service is unavailable.") from exc
        if not found:
            result_code = self._conn.result.get("result", _RESULT_SUCCESS)
            if result_code not in (_RESULT_SUCCESS, _RESULT_NO_SUCH_OBJECT):
                raise DirectoryUnavailableError(
                    "The directory service is unavailable.",
                    detail=str(self._conn.result.get("description")),
                )
            return None
        if not self._conn.entries:
            return None
        values = self._conn.entries[0].entry_attributes_as_dict.get(attribute) or []
        return str(values[0]) if values else None

    def close(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.unbind()
        except LDAPException as exc:
            # The primary outcome has already been decided; a failed unbind only leaks a socket.
            logger.warning("Directory unbind failed: %s", exc)
        self._conn = None


class DirectoryClient:
    """Factory for per-login directory connections.

    Usage:
        directory = DirectoryClient("ldap://ad.example.edu", "ad.example.edu", "OU=People,DC=...")
        with directory.connect() as conn:
            if conn.verify("z1111111", password):
                name = conn.lookup_attribute("z1111111", "givenName")
    """

    def __init__(self, server_uri: str, domain: str, base_dn: str, timeout: float = 5.0) -> None:
        self.server_uri = server_uri
        self.domain = domain
        self.base_dn = base_dn
        self.timeout = timeout
        use_ssl = server_uri.lower().startswith("ldaps://")
        self._server = Server(server_uri, use_ssl=use_ssl, get_info=NONE, connect_timeout=timeout)

    @contextmanager
    def connect(self) -> Iterator[DirectoryConnection]:
        conn = DirectoryConnection(self._server, self.domain, self.base_dn, self.timeout)
        try:
            yield conn
        finally:
            conn.close()
