"""Thin adapter over ``ldap3.Connection``.

The transport speaks in request/entry value types and raises
``ldap3.core.exceptions.LDAPException`` on any failure. It knows nothing
about the application error taxonomy; see `ldapmgr.directory.errors`.
"""

from __future__ import annotations

import logging
import ssl
from typing import Any, Callable, Optional, Protocol

from ldap3 import AUTO_BIND_NONE, DEREF_NEVER, NONE, SIMPLE, Connection, Server, Tls
from ldap3.core.exceptions import LDAPException, LDAPInvalidPortError, LDAPOperationResult
from ldap3.core.results import RESULT_SUCCESS

from ..schema import LDAPConfig
from .requests import AddRequest, DeleteRequest, Entry, ModifyRequest, PasswordModifyRequest, SearchRequest

log = logging.getLogger(__name__)


class Transport(Protocol):
    def connect(self) -> None: ...

    def bind(self, user: str, password: str) -> None: ...

    def search(self, request: SearchRequest) -> list[Entry]: ...

    def add(self, request: AddRequest) -> None: ...

    def delete(self, request: DeleteRequest) -> None: ...

    def modify(self, request: ModifyRequest) -> None: ...

    def password_modify(self, request: PasswordModifyRequest) -> Optional[str]: ...

    def close(self) -> None: ...


TransportFactory = Callable[[LDAPConfig], Transport]


def _to_str(v: Any) -> str:
    if isinstance(v, bytes):
        return v.decode("utf-8", errors="replace")
    return str(v)


def entries_from_response(response: list[dict]) -> list[Entry]:
    """Convert an ldap3 search response into entries.

    Referrals are skipped. Single-valued attributes (schema-aware ldap3
    returns them as scalars) are normalised to one-element lists.
    """
    entries: list[Entry] = []
    for item in response or []:
        if item.get("type") != "searchResEntry":
            continue
        attrs: dict[str, list[str]] = {}
        for name, value in (item.get("attributes") or {}).items():
            if isinstance(value, (list, tuple)):
                attrs[name] = [_to_str(x) for x in value]
            else:
                attrs[name] = [_to_str(value)]
        entries.append(Entry(dn=str(item.get("dn") or ""), attributes=attrs))
    return entries


class LDAPTransport:
    """One ldap3 connection, opened by `connect` and released by `close`."""

    def __init__(self, cfg: LDAPConfig) -> None:
        self.cfg = cfg
        self.conn: Connection | None = None

    def _server(self) -> Server:
        try:
            port = int(self.cfg.port)
        except ValueError:
            raise LDAPInvalidPortError(f"invalid port '{self.cfg.port}'") from None

        tls_kwargs: dict[str, Any] = {
            "validate": ssl.CERT_REQUIRED if self.cfg.tls_validate else ssl.CERT_NONE,
        }
        # Apply custom CA only when verification is enabled.
        if self.cfg.tls_validate and self.cfg.ca_certs_file:
            tls_kwargs["ca_certs_file"] = self.cfg.ca_certs_file

        server_kwargs: dict[str, Any] = {
            "host": self.cfg.hostname,
            "port": port,
            "use_ssl": self.cfg.use_ssl,
            "get_info": NONE,
            "tls": Tls(**tls_kwargs),
        }
        if self.cfg.connect_timeout:
            server_kwargs["connect_timeout"] = self.cfg.connect_timeout
        return Server(**server_kwargs)

    def _new_connection(self) -> Connection:
        return Connection(
            self._server(),
            user=self.cfg.bind_user or None,
            password=self.cfg.bind_password or None,
            auto_bind=AUTO_BIND_NONE,
            raise_exceptions=False,
        )

    def _open(self) -> Connection:
        if self.conn is None:
            raise LDAPException("connection is not open")
        return self.conn

    def _result_error(self) -> LDAPOperationResult:
        res = dict(self._open().result or {})
        return LDAPOperationResult(
            result=res.get("result"),
            description=res.get("description"),
            dn=res.get("dn"),
            message=res.get("message"),
            response_type=res.get("type"),
        )

    def _check(self, ok: Any) -> None:
        code = (self._open().result or {}).get("result")
        if not ok or code not in (None, RESULT_SUCCESS):
            raise self._result_error()

    def connect(self) -> None:
        self.conn = self._new_connection()
        self.conn.open()

    def bind(self, user: str, password: str) -> None:
        if self.conn is None:
            # Dial was skipped; ldap3 opens the socket lazily on bind.
            self.conn = self._new_connection()
        self.conn.user = user
        self.conn.password = password
        self.conn.authentication = SIMPLE
        self._check(self.conn.bind())

    def search(self, request: SearchRequest) -> list[Entry]:
        conn = self._open()
        conn.search(
            search_base=request.base_dn,
            search_filter=request.search_filter,
            search_scope=request.scope,
            dereference_aliases=DEREF_NEVER,
            attributes=request.attributes,
        )
        # An empty result set makes ldap3 return False, so only the code counts.
        code = (conn.result or {}).get("result")
        if code != RESULT_SUCCESS:
            raise self._result_error()
        return entries_from_response(conn.response or [])

    def add(self, request: AddRequest) -> None:
        self._check(self._open().add(request.dn, attributes=request.attributes))

    def delete(self, request: DeleteRequest) -> None:
        self._check(self._open().delete(request.dn))

    def modify(self, request: ModifyRequest) -> None:
        self._check(self._open().modify(request.dn, request.changes))

    def password_modify(self, request: PasswordModifyRequest) -> Optional[str]:
        result = self._open().extend.standard.modify_password(
            user=request.dn,
            old_password=request.old_password or None,
            new_password=request.new_password or None,
        )
        self._check(result is not False)
        if isinstance(result, (str, bytes)):
            return _to_str(result)
        return None

    def close(self) -> None:
        conn, self.conn = self.conn, None
        if conn is None:
            return
        try:
            conn.unbind()
        except LDAPException as e:
            log.debug("LDAP unbind failed: %s", e)
