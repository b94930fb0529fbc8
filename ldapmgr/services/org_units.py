from __future__ import annotations

from typing import Protocol

from ..directory.connection import ConnectionManager
from ..directory.requests import LEVEL, Entry, SearchRequest

ORGANIZATIONAL_UNIT_ATTR = "ou"
ORG_UNIT_SEARCH_FILTER = "(&(objectClass=organizationalUnit))"


class OrgUnitsManager(Protocol):
    def get_all(self) -> list[str]: ...


class LDAPOrgUnitsManager:
    """Read-only view of the organizational units under the group base DN.

    Units are provisioned out of band, so there is nothing to create or
    delete here.
    """

    def __init__(self, conn: ConnectionManager) -> None:
        self.conn = conn

    def get_all(self) -> list[str]:
        """Return unit names in the order the directory sent them.

        Raises
        ------
        BadRequestError
            The client configuration is incomplete.
        DirectoryError
            The connection, bind or search failed.
        """
        return self.parse_search_result(self.conn.search(self.search_request()))

    def search_request(self) -> SearchRequest:
        return SearchRequest(
            base_dn=self.conn.cfg.group_base_dn,
            scope=LEVEL,
            search_filter=ORG_UNIT_SEARCH_FILTER,
            attributes=[ORGANIZATIONAL_UNIT_ATTR],
        )

    @staticmethod
    def parse_search_result(entries: list[Entry]) -> list[str]:
        return [e.get_attribute_value(ORGANIZATIONAL_UNIT_ATTR) for e in entries]
