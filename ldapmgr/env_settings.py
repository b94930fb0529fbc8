from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from .schema import PERSONAL_USER_PATTERN, PROTOCOL_LDAPS, LDAPConfig


class LDAPEnvSettings(BaseSettings):
    protocol: str = Field(PROTOCOL_LDAPS, alias="LDAP_PROTOCOL")
    hostname: str = Field("", alias="LDAP_HOSTNAME")
    port: str = Field("", alias="LDAP_PORT")
    base_dn: str = Field("", alias="LDAP_BASE_DN")
    user_base_dn: str = Field("", alias="LDAP_USER_BASE_DN")
    group_base_dn: str = Field("", alias="LDAP_GROUP_BASE_DN")
    bind_user: str = Field("", alias="LDAP_BIND_USER")
    bind_password: str = Field("", alias="LDAP_BIND_PASSWORD")

    tls_validate: bool = Field(False, alias="LDAP_TLS_VALIDATE")
    ca_certs_file: str = Field("", alias="LDAP_CA_CERTS_FILE")
    connect_timeout: Optional[float] = Field(None, alias="LDAP_CONNECT_TIMEOUT")

    personal_user_pattern: str = Field(PERSONAL_USER_PATTERN, alias="LDAP_PERSONAL_USER_PATTERN")

    log_level: str = Field("INFO", alias="LDAP_LOG_LEVEL")

    class Config:
        populate_by_name = True

    def to_config(self) -> LDAPConfig:
        return LDAPConfig(**self.model_dump(exclude={"log_level"}))


@lru_cache(maxsize=1)
def get_env() -> LDAPEnvSettings:
    return LDAPEnvSettings()
