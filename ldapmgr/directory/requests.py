"""Value types exchanged with the transport.

Scopes and modify operations reuse the ldap3 constants so a request can be
handed to ``ldap3.Connection`` without translation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ldap3 import BASE, LEVEL, MODIFY_ADD, MODIFY_DELETE, MODIFY_REPLACE, SUBTREE

__all__ = [
    "BASE",
    "LEVEL",
    "SUBTREE",
    "AddRequest",
    "DeleteRequest",
    "Entry",
    "ModifyRequest",
    "PasswordModifyRequest",
    "SearchRequest",
]


@dataclass
class SearchRequest:
    base_dn: str
    scope: str
    search_filter: str
    attributes: list[str] = field(default_factory=list)


@dataclass
class AddRequest:
    dn: str
    attributes: dict[str, list[str]] = field(default_factory=dict)

    def attribute(self, name: str, values: Iterable[str]) -> None:
        self.attributes[name] = list(values)


@dataclass
class ModifyRequest:
    """Changes in the ldap3 format: ``{attr: [(operation, [values]), ...]}``."""

    dn: str
    changes: dict[str, list[tuple[str, list[str]]]] = field(default_factory=dict)

    def add(self, name: str, values: Iterable[str]) -> None:
        self.changes.setdefault(name, []).append((MODIFY_ADD, list(values)))

    def delete(self, name: str, values: Iterable[str]) -> None:
        self.changes.setdefault(name, []).append((MODIFY_DELETE, list(values)))

    def replace(self, name: str, values: Iterable[str]) -> None:
        self.changes.setdefault(name, []).append((MODIFY_REPLACE, list(values)))

    def is_empty(self) -> bool:
        return not any(self.changes.values())


@dataclass
class DeleteRequest:
    dn: str


@dataclass
class PasswordModifyRequest:
    """RFC 3062 password modify. An empty ``new_password`` asks the server to generate one."""

    dn: str
    old_password: str = ""
    new_password: str = ""


@dataclass
class Entry:
    dn: str
    attributes: dict[str, list[str]] = field(default_factory=dict)

    def _lookup(self, name: str) -> list[str]:
        if name in self.attributes:
            return self.attributes[name]
        lowered = name.lower()
        for key, values in self.attributes.items():
            if key.lower() == lowered:
                return values
        return []

    def get_attribute_value(self, name: str) -> str:
        values = self._lookup(name)
        return values[0] if values else ""

    def get_attribute_values(self, name: str) -> list[str]:
        return list(self._lookup(name))
