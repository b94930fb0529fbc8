"""LDAP plumbing: transport, connection lifecycle and error translation.

Public API:
    - ConnectionManager
    - LDAPTransport / Transport
    - translate_ldap_error
    - Group, User
"""

from .connection import ConnectionManager
from .errors import translate_ldap_error
from .models import Group, User
from .transport import LDAPTransport, Transport, TransportFactory

__all__ = [
    "ConnectionManager",
    "Group",
    "LDAPTransport",
    "Transport",
    "TransportFactory",
    "User",
    "translate_ldap_error",
]
