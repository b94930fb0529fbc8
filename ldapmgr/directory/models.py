from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

USER_STATUS_ACTIVE = "Active"
USER_STATUS_DISABLED = "Disabled"
USER_STATUS_REVOKED = "Revoked"
USER_STATUS_DELETED = "Deleted"

VALID_STATUSES = [
    USER_STATUS_ACTIVE,
    USER_STATUS_DISABLED,
    USER_STATUS_REVOKED,
    USER_STATUS_DELETED,
]


@dataclass
class Group:
    dn: str
    ou: str
    cn: str
    members: List[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"dn": self.dn, "ou": self.ou, "cn": self.cn, "members": list(self.members)}


@dataclass
class User:
    uid: str
    alt_uid: str = ""
    cn: str = ""
    sn: str = ""
    display_name: str = ""
    employee_number: str = ""
    mail: str = ""
    user_password: str = field(default="", repr=False)
    status: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the directory attribute names; empty optionals are omitted."""
        d: dict[str, Any] = {
            "uid": self.uid,
            "altUid": self.alt_uid,
            "cn": self.cn,
            "sn": self.sn,
            "displayName": self.display_name,
            "mail": self.mail,
            "status": self.status,
        }
        if self.employee_number:
            d["employeeNumber"] = self.employee_number
        if self.user_password:
            d["userPassword"] = self.user_password
        return d
