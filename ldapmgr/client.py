from __future__ import annotations

from typing import Optional

from .directory.connection import ConnectionManager
from .directory.transport import TransportFactory
from .env_settings import get_env
from .schema import LDAPConfig
from .services.groups import GroupsManager, LDAPGroupsManager
from .services.org_units import LDAPOrgUnitsManager, OrgUnitsManager
from .services.user_types import UserTypeClassifier
from .services.users import LDAPUsersManager, UsersManager


class LDAPClient:
    """Entry point wiring the connection manager and the entity managers.

    Any manager can be replaced by an object implementing the matching
    protocol, which is how tests isolate one manager from another.
    ``dial=False`` skips opening the socket so a fake transport can be used
    without network access.
    """

    def __init__(
        self,
        config: LDAPConfig,
        *,
        transport_factory: Optional[TransportFactory] = None,
        dial: bool = True,
        org_units: Optional[OrgUnitsManager] = None,
        groups: Optional[GroupsManager] = None,
        users: Optional[UsersManager] = None,
        classifier: Optional[UserTypeClassifier] = None,
    ) -> None:
        self.config = config
        self.connection = ConnectionManager(config, transport_factory=transport_factory, dial=dial)

        self.org_units: OrgUnitsManager = org_units or LDAPOrgUnitsManager(self.connection)
        self.groups: GroupsManager = groups or LDAPGroupsManager(self.connection, self.org_units)
        self.users: UsersManager = users or LDAPUsersManager(self.connection, classifier)

    @classmethod
    def from_env(cls, **kwargs) -> "LDAPClient":
        return cls(get_env().to_config(), **kwargs)

    def set_protocol(self, protocol: str) -> "LDAPClient":
        """Set ``ldap`` or ``ldaps``; anything else falls back to ``ldaps``."""
        self.config.protocol = protocol
        return self

    def set_hostname(self, hostname: str) -> "LDAPClient":
        self.config.hostname = hostname
        return self

    def set_port(self, port: str | int) -> "LDAPClient":
        self.config.port = port
        return self

    def set_bind_credentials(self, bind_user: str, bind_password: str) -> "LDAPClient":
        self.config.bind_user = bind_user
        self.config.bind_password = bind_password
        return self

    def connect(self) -> None:
        """Validate, connect and bind once, then release the connection."""
        self.connection.authenticate()
