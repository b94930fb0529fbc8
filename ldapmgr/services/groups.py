from __future__ import annotations

import logging
from typing import Optional, Protocol

from ..directory.connection import ConnectionManager
from ..directory.models import Group
from ..directory.requests import SUBTREE, AddRequest, DeleteRequest, Entry, ModifyRequest, SearchRequest
from ..directory.utils import dn_component_value, escape_ldap_filter_value, unique
from ..errors import BadRequestError, ConflictError, EntryAlreadyExistsError, MissingParametersError, NotFoundError
from .org_units import ORGANIZATIONAL_UNIT_ATTR, OrgUnitsManager

log = logging.getLogger(__name__)

COMMON_NAME_ATTR = "cn"
UNIQUE_MEMBER_ATTR = "uniqueMember"
OBJECT_CLASS_ATTR = "objectClass"
USER_ID_ATTR = "uid"

GROUP_SEARCH_FILTER = "(&(objectClass=groupOfUniqueNames))"
WILDCARD_GROUP_SEARCH_FILTER = "(&(cn={prefix}*)(objectClass=groupOfUniqueNames))"

DEFAULT_GROUP_OBJECT_CLASSES = ["groupOfUniqueNames", "top"]

# Placeholder member that keeps uniqueMember non-empty.
NO_SUCH_USER = "NO_SUCH_USER"


class GroupsManager(Protocol):
    def get_all(self) -> list[Group]: ...

    def get(self, cn: str, ou: str) -> list[Group]: ...

    def get_by_filter(self, search_filter: str) -> list[Group]: ...

    def find(self, cn_prefix: str) -> list[Group]: ...

    def create(self, cn: str, ou: str, member_ids: Optional[list[str]] = None) -> None: ...

    def delete(self, cn: str, ou: str) -> None: ...

    def add_members(self, cn: str, ou: str, member_ids: list[str]) -> None: ...

    def remove_members(self, cn: str, ou: str, member_ids: list[str]) -> None: ...


def _not_found(cn: str, ou: str) -> NotFoundError:
    return NotFoundError(f"Group with cn = '{cn}' and ou = '{ou}' was not found")


class LDAPGroupsManager:
    """Groups (``groupOfUniqueNames``) stored below the group base DN.

    A group always has at least one ``uniqueMember``. When no real member
    is left the ``NO_SUCH_USER`` placeholder takes the slot, and it is
    dropped again once real members are added.
    """

    def __init__(self, conn: ConnectionManager, org_units: OrgUnitsManager) -> None:
        self.conn = conn
        self.org_units = org_units

    def get_all(self) -> list[Group]:
        return self.get("", "")

    def get(self, cn: str, ou: str) -> list[Group]:
        """Return the groups addressed by ``cn`` and ``ou``.

        Both set: the single group. Only ``ou``: every group in that unit.
        Neither: every group under the base DN. A ``cn`` without an ``ou``
        is ignored.

        Raises
        ------
        BadRequestError
            ``ou`` is not an existing organizational unit.
        NotFoundError
            The group or unit does not exist.
        """
        if ou:
            self.validate_ou(ou)
        try:
            entries = self.conn.search(self.search_request(cn, ou, GROUP_SEARCH_FILTER))
        except NotFoundError as e:
            raise _not_found(cn, ou) from e
        return self.parse_search_result(entries)

    def get_by_filter(self, search_filter: str) -> list[Group]:
        entries = self.conn.search(self.search_request("", "", search_filter))
        return self.parse_search_result(entries)

    def find(self, cn_prefix: str) -> list[Group]:
        """Return groups whose cn starts with ``cn_prefix``, in any unit."""
        prefix = escape_ldap_filter_value(cn_prefix or "")
        return self.get_by_filter(WILDCARD_GROUP_SEARCH_FILTER.format(prefix=prefix))

    def create(self, cn: str, ou: str, member_ids: Optional[list[str]] = None) -> None:
        """Create a group. Without members the placeholder member is used.

        Raises
        ------
        ConflictError
            A group with this cn already exists in the unit.
        """
        self.validate_group(cn, ou)
        ids = list(member_ids or [])
        if not ids:
            ids = [NO_SUCH_USER]
        try:
            self.conn.add(self.add_request(cn, ou, ids))
        except EntryAlreadyExistsError as e:
            raise ConflictError(f"Group with cn = '{cn}' and ou = '{ou}' already exists") from e

    def delete(self, cn: str, ou: str) -> None:
        self.validate_group(cn, ou)
        try:
            self.conn.delete(DeleteRequest(dn=self.get_dn(cn, ou)))
        except NotFoundError as e:
            raise _not_found(cn, ou) from e

    def add_members(self, cn: str, ou: str, member_ids: list[str]) -> None:
        """Add members that are not in the group yet.

        Already present members are skipped. Once the group holds two or
        more entries the placeholder member is removed.
        """
        self.validate_group(cn, ou)
        group = self._fetch(cn, ou)
        group_dn = self.get_dn(cn, ou)

        to_add: list[str] = []
        for member_dn in unique(self.get_unique_member_dn(m) for m in member_ids or []):
            if member_dn in group.members:
                continue
            log.info("UniqueMember '%s' will be added to the group '%s'", member_dn, group_dn)
            to_add.append(member_dn)

        to_remove: list[str] = []
        sentinel = self.get_unique_member_dn(NO_SUCH_USER)
        if len(group.members) + len(to_add) >= 2 and sentinel in group.members and sentinel not in to_add:
            to_remove.append(sentinel)

        self._apply(group_dn, to_add, to_remove)

    def remove_members(self, cn: str, ou: str, member_ids: list[str]) -> None:
        """Remove members that are in the group.

        Absent members are skipped. If nothing would be left the
        placeholder member is added in the same request.
        """
        self.validate_group(cn, ou)
        group = self._fetch(cn, ou)
        group_dn = self.get_dn(cn, ou)
        sentinel = self.get_unique_member_dn(NO_SUCH_USER)

        to_remove: list[str] = []
        for member_dn in unique(self.get_unique_member_dn(m) for m in member_ids or []):
            if member_dn not in group.members:
                continue
            if member_dn != sentinel:
                log.info("UniqueMember '%s' will be removed from the group '%s'", member_dn, group_dn)
            to_remove.append(member_dn)

        to_add: list[str] = []
        if len(group.members) - len(to_remove) == 0:
            if sentinel in to_remove:
                to_remove.remove(sentinel)
            else:
                to_add.append(sentinel)

        self._apply(group_dn, to_add, to_remove)

    def _fetch(self, cn: str, ou: str) -> Group:
        groups = self.get(cn, ou)
        if not groups:
            raise _not_found(cn, ou)
        return groups[0]

    def _apply(self, group_dn: str, to_add: list[str], to_remove: list[str]) -> None:
        mr = ModifyRequest(dn=group_dn)
        if to_add:
            mr.add(UNIQUE_MEMBER_ATTR, to_add)
        if to_remove:
            mr.delete(UNIQUE_MEMBER_ATTR, to_remove)
        if mr.is_empty():
            log.debug("No membership changes for the group '%s'", group_dn)
            return
        self.conn.modify(mr)

    def get_dn(self, cn: str, ou: str) -> str:
        base = self.conn.cfg.group_base_dn
        if cn and ou:
            return f"{COMMON_NAME_ATTR}={cn},{ORGANIZATIONAL_UNIT_ATTR}={ou},{base}"
        if ou:
            return f"{ORGANIZATIONAL_UNIT_ATTR}={ou},{base}"
        return base

    def get_unique_member_dn(self, member_id: str) -> str:
        return f"{USER_ID_ATTR}={member_id.upper()},{self.conn.cfg.user_base_dn}"

    def search_request(self, cn: str, ou: str, search_filter: str) -> SearchRequest:
        return SearchRequest(
            base_dn=self.get_dn(cn, ou),
            scope=SUBTREE,
            search_filter=search_filter,
            attributes=[COMMON_NAME_ATTR, UNIQUE_MEMBER_ATTR],
        )

    def add_request(self, cn: str, ou: str, member_ids: list[str]) -> AddRequest:
        ar = AddRequest(dn=self.get_dn(cn, ou))
        ar.attribute(OBJECT_CLASS_ATTR, DEFAULT_GROUP_OBJECT_CLASSES)
        ar.attribute(COMMON_NAME_ATTR, [cn])
        ar.attribute(UNIQUE_MEMBER_ATTR, unique(self.get_unique_member_dn(m) for m in member_ids))
        return ar

    @staticmethod
    def parse_search_result(entries: list[Entry]) -> list[Group]:
        return [
            Group(
                dn=e.dn,
                ou=dn_component_value(e.dn, 1, ORGANIZATIONAL_UNIT_ATTR),
                cn=e.get_attribute_value(COMMON_NAME_ATTR),
                members=e.get_attribute_values(UNIQUE_MEMBER_ATTR),
            )
            for e in entries
        ]

    def validate_group(self, cn: str, ou: str) -> None:
        missing = []
        if not (cn or "").strip():
            missing.append(COMMON_NAME_ATTR)
        if not (ou or "").strip():
            missing.append(ORGANIZATIONAL_UNIT_ATTR)
        if missing:
            raise MissingParametersError(missing)
        self.validate_ou(ou)

    def validate_ou(self, ou: str) -> None:
        units = self.org_units.get_all()
        if ou not in units:
            raise BadRequestError(f"Invalid organizational unit '{ou}'. Valid values are {units}")
