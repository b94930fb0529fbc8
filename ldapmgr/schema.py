from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROTOCOL_LDAP = "ldap"
PROTOCOL_LDAPS = "ldaps"
VALID_PROTOCOLS = (PROTOCOL_LDAP, PROTOCOL_LDAPS)

ProtocolName = Literal["ldap", "ldaps"]

PERSONAL_USER_PATTERN = (
    "^[A-Za-z]{1,2}[0-9]{4,5}[A-Za-z]{0,1}|^[A-Za-z]{4,5}$|^[A-Za-z]{2,3}[0-9]{1,2}$"
)

# Declaration order is the order missing fields are reported in, under
# their aliases.
REQUIRED_FIELDS = (
    "protocol",
    "hostname",
    "port",
    "base_dn",
    "user_base_dn",
    "group_base_dn",
    "bind_user",
    "bind_password",
)


class LDAPConfig(BaseModel):
    """Connection details for the directory.

    Every field may be left empty at construction time. Completeness is
    checked before each connection attempt, see `missing_fields`.
    """

    model_config = ConfigDict(validate_assignment=True, populate_by_name=True)

    protocol: ProtocolName = Field(default=PROTOCOL_LDAPS)
    hostname: str = Field(default="", max_length=255)
    port: str = Field(default="")
    base_dn: str = Field(default="", alias="baseDN")
    user_base_dn: str = Field(default="", alias="userBaseDN")
    group_base_dn: str = Field(default="", alias="groupBaseDN")

    bind_user: str = Field(default="", alias="bindUser")
    bind_password: str = Field(default="", alias="bindPassword")  # never stripped

    tls_validate: bool = Field(default=False)
    ca_certs_file: str = Field(default="")
    connect_timeout: float | None = Field(default=None, gt=0)

    personal_user_pattern: str = Field(default=PERSONAL_USER_PATTERN)

    @field_validator("protocol", mode="before")
    @classmethod
    def _normalize_protocol(cls, v: Any) -> str:
        s = str(v or "").strip().lower()
        return s if s in VALID_PROTOCOLS else PROTOCOL_LDAPS

    @field_validator("port", mode="before")
    @classmethod
    def _port_to_str(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("hostname", "base_dn", "user_base_dn", "group_base_dn", "bind_user", "ca_certs_file")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()

    @property
    def url(self) -> str:
        return f"{self.protocol}://{self.hostname}:{self.port}"

    @property
    def use_ssl(self) -> bool:
        return self.protocol == PROTOCOL_LDAPS

    def missing_fields(self) -> list[str]:
        fields = type(self).model_fields
        return [
            fields[name].alias or name
            for name in REQUIRED_FIELDS
            if not str(getattr(self, name) or "").strip()
        ]
