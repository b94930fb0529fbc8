"""Directory-service client: organizational units, groups and users over LDAP."""

from .client import LDAPClient
from .directory.models import Group, User
from .errors import (
    BadRequestError,
    ConflictError,
    DirectoryError,
    EntryAlreadyExistsError,
    ForbiddenError,
    InternalServerError,
    MissingParametersError,
    NotFoundError,
    UnauthorizedError,
)
from .schema import LDAPConfig

__all__ = [
    "BadRequestError",
    "ConflictError",
    "DirectoryError",
    "EntryAlreadyExistsError",
    "ForbiddenError",
    "Group",
    "InternalServerError",
    "LDAPClient",
    "LDAPConfig",
    "MissingParametersError",
    "NotFoundError",
    "UnauthorizedError",
    "User",
]
