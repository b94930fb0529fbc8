"""Test fixtures."""

from __future__ import annotations

import pytest

from ldapmgr import LDAPClient, LDAPConfig

from .support.constants import (
    TEST_BIND_PASSWORD,
    TEST_BIND_USER,
    TEST_GROUP_BASE_DN,
    TEST_ORG_UNITS,
    TEST_USER_BASE_DN,
    make_config,
)
from .support.ldap import MockLDAP


@pytest.fixture
def config() -> LDAPConfig:
    return make_config()


@pytest.fixture
def mock_ldap() -> MockLDAP:
    """Directory with the base entries and the test organizational units."""
    ldap = MockLDAP(credentials={TEST_BIND_USER: TEST_BIND_PASSWORD})
    ldap.add_entry("o=company", {"objectClass": ["organization"], "o": ["company"]})
    ldap.add_entry(TEST_USER_BASE_DN, {"objectClass": ["organizationalUnit"], "ou": ["users"]})
    ldap.add_entry(TEST_GROUP_BASE_DN, {"objectClass": ["organizationalUnit"], "ou": ["projects"]})
    for ou in TEST_ORG_UNITS:
        ldap.add_entry(f"ou={ou},{TEST_GROUP_BASE_DN}", {"objectClass": ["organizationalUnit"], "ou": [ou]})
    return ldap


@pytest.fixture
def client(config: LDAPConfig, mock_ldap: MockLDAP) -> LDAPClient:
    return LDAPClient(config, transport_factory=mock_ldap, dial=False)
