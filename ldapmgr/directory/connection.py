from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, TypeVar

from ldap3.core.exceptions import LDAPException

from ..errors import MissingParametersError
from ..schema import LDAPConfig
from .errors import translate_ldap_error
from .requests import AddRequest, DeleteRequest, Entry, ModifyRequest, PasswordModifyRequest, SearchRequest
from .transport import LDAPTransport, Transport, TransportFactory

log = logging.getLogger(__name__)

T = TypeVar("T")


class ConnectionManager:
    """Runs each directory operation on its own connection.

    Every call validates the configuration, dials (unless ``dial`` is off,
    which test harnesses use together with a fake transport), binds,
    executes and releases the transport whatever the outcome.
    """

    def __init__(
        self,
        cfg: LDAPConfig,
        transport_factory: Optional[TransportFactory] = None,
        dial: bool = True,
    ) -> None:
        self.cfg = cfg
        self.transport_factory: TransportFactory = transport_factory or LDAPTransport
        self.dial = dial

    def validate(self) -> None:
        missing = self.cfg.missing_fields()
        if missing:
            raise MissingParametersError(missing, what="configuration parameter")

    def connect(self) -> Transport:
        """Validate, dial and bind. The caller owns the returned transport."""
        self.validate()

        log.debug("Connecting to the LDAP server %s...", self.cfg.url)
        transport = self.transport_factory(self.cfg)
        try:
            if self.dial:
                transport.connect()
            transport.bind(self.cfg.bind_user, self.cfg.bind_password)
        except LDAPException as e:
            self.release(transport)
            raise translate_ldap_error(e) from e
        log.debug("Connected to the LDAP server")
        return transport

    def release(self, transport: Transport) -> None:
        try:
            transport.close()
        except LDAPException as e:
            log.debug("Closing LDAP connection failed: %s", e)

    @contextmanager
    def session(self) -> Iterator[Transport]:
        transport = self.connect()
        try:
            yield transport
        finally:
            self.release(transport)

    def _execute(self, operation: Callable[[Transport], T]) -> T:
        with self.session() as transport:
            try:
                return operation(transport)
            except LDAPException as e:
                raise translate_ldap_error(e) from e

    def authenticate(self) -> None:
        with self.session():
            pass

    def search(self, request: SearchRequest) -> list[Entry]:
        return self._execute(lambda t: t.search(request))

    def add(self, request: AddRequest) -> None:
        self._execute(lambda t: t.add(request))

    def delete(self, request: DeleteRequest) -> None:
        self._execute(lambda t: t.delete(request))

    def modify(self, request: ModifyRequest) -> None:
        self._execute(lambda t: t.modify(request))

    def password_modify(self, request: PasswordModifyRequest) -> Optional[str]:
        return self._execute(lambda t: t.password_modify(request))
