"""Entity managers: organizational units, groups and users."""

from .groups import GroupsManager, LDAPGroupsManager
from .org_units import LDAPOrgUnitsManager, OrgUnitsManager
from .user_types import UserTypeClassifier
from .users import LDAPUsersManager, UsersManager

__all__ = [
    "GroupsManager",
    "LDAPGroupsManager",
    "LDAPOrgUnitsManager",
    "LDAPUsersManager",
    "OrgUnitsManager",
    "UserTypeClassifier",
    "UsersManager",
]
