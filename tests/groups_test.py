"""Tests for group management and membership reconciliation."""

from __future__ import annotations

import pytest
from ldap3 import MODIFY_ADD, MODIFY_DELETE, SUBTREE
from ldap3.core.results import RESULT_BUSY, RESULT_INSUFFICIENT_ACCESS_RIGHTS

from ldapmgr import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    Group,
    InternalServerError,
    LDAPClient,
    LDAPConfig,
    MissingParametersError,
    NotFoundError,
)
from ldapmgr.services.groups import NO_SUCH_USER

from .support.constants import SENTINEL_DN, TEST_GROUP_BASE_DN, TEST_USER_BASE_DN, member_dn
from .support.ldap import MockLDAP, ldap_error


class StaticOrgUnits:
    """Organizational units manager double that never touches the directory."""

    def __init__(self, units: list[str]) -> None:
        self.units = units
        self.calls = 0

    def get_all(self) -> list[str]:
        self.calls += 1
        return list(self.units)


def _group_entry(mock_ldap: MockLDAP, cn: str, ou: str, members: list[str]) -> None:
    mock_ldap.add_entry(
        f"cn={cn},ou={ou},{TEST_GROUP_BASE_DN}",
        {"objectClass": ["groupOfUniqueNames", "top"], "cn": [cn], "uniqueMember": members},
    )


def _members(client: LDAPClient, cn: str, ou: str) -> list[str]:
    return client.groups.get(cn, ou)[0].members


def test_get_dn(client: LDAPClient) -> None:
    groups = client.groups
    assert groups.get_dn("g1", "ou1") == f"cn=g1,ou=ou1,{TEST_GROUP_BASE_DN}"
    assert groups.get_dn("", "ou1") == f"ou=ou1,{TEST_GROUP_BASE_DN}"
    assert groups.get_dn("", "") == TEST_GROUP_BASE_DN
    assert groups.get_dn("g1", "") == TEST_GROUP_BASE_DN


def test_get_unique_member_dn(client: LDAPClient) -> None:
    assert client.groups.get_unique_member_dn("c00001") == f"uid=C00001,{TEST_USER_BASE_DN}"
    assert client.groups.get_unique_member_dn(NO_SUCH_USER) == SENTINEL_DN


def test_get_all(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    _group_entry(mock_ldap, "g1", "ou1", [member_dn("A")])
    _group_entry(mock_ldap, "g2", "ou1", [member_dn("B")])
    _group_entry(mock_ldap, "g1", "ou2", [SENTINEL_DN])

    groups = client.groups.get_all()

    assert [(g.cn, g.ou) for g in groups] == [("g1", "ou1"), ("g2", "ou1"), ("g1", "ou2")]
    request = mock_ldap.calls_of("search")[-1]
    assert request.base_dn == TEST_GROUP_BASE_DN
    assert request.scope == SUBTREE
    assert request.attributes == ["cn", "uniqueMember"]


def test_get_by_ou(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    _group_entry(mock_ldap, "g1", "ou1", [member_dn("A")])
    _group_entry(mock_ldap, "g1", "ou2", [member_dn("A")])

    groups = client.groups.get("", "ou1")

    assert groups == [
        Group(dn=f"cn=g1,ou=ou1,{TEST_GROUP_BASE_DN}", ou="ou1", cn="g1", members=[member_dn("A")])
    ]


def test_get_invalid_ou(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    with pytest.raises(BadRequestError) as excinfo:
        client.groups.get("g1", "nope")
    assert excinfo.value.message == "Invalid organizational unit 'nope'. Valid values are ['ou1', 'ou2']"


def test_get_ou_lookup_error(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    mock_ldap.fail("search", ldap_error(RESULT_INSUFFICIENT_ACCESS_RIGHTS))
    with pytest.raises(ForbiddenError):
        client.groups.get("", "ou1")


def test_get_not_found(client: LDAPClient) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        client.groups.get("missing", "ou1")
    assert excinfo.value.message == "Group with cn = 'missing' and ou = 'ou1' was not found"


def test_get_by_filter(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    _group_entry(mock_ldap, "team-a", "ou1", [member_dn("A")])
    _group_entry(mock_ldap, "team-b", "ou2", [member_dn("B")])
    _group_entry(mock_ldap, "other", "ou2", [member_dn("B")])

    groups = client.groups.get_by_filter("(&(cn=team-*)(objectClass=groupOfUniqueNames))")
    assert sorted(g.cn for g in groups) == ["team-a", "team-b"]

    assert [g.cn for g in client.groups.find("oth")] == ["other"]
    assert mock_ldap.calls_of("search")[-1].search_filter == "(&(cn=oth*)(objectClass=groupOfUniqueNames))"


def test_create(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    client.groups.create("g1", "ou1", ["c00001", "C00002", "c00001"])

    request = mock_ldap.calls_of("add")[0]
    assert request.dn == f"cn=g1,ou=ou1,{TEST_GROUP_BASE_DN}"
    assert request.attributes["objectClass"] == ["groupOfUniqueNames", "top"]
    assert request.attributes["cn"] == ["g1"]
    assert _members(client, "g1", "ou1") == [member_dn("C00001"), member_dn("C00002")]


def test_create_without_members(client: LDAPClient) -> None:
    client.groups.create("g1", "ou1", [])
    assert _members(client, "g1", "ou1") == [SENTINEL_DN]


def test_create_twice(client: LDAPClient) -> None:
    client.groups.create("g1", "ou1", [])
    with pytest.raises(ConflictError) as excinfo:
        client.groups.create("g1", "ou1", [])
    assert excinfo.value.status_code == 409
    assert excinfo.value.message == "Group with cn = 'g1' and ou = 'ou1' already exists"


def test_create_missing_params(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    with pytest.raises(MissingParametersError) as excinfo:
        client.groups.create(" ", "", [])
    assert excinfo.value.params == ["cn", "ou"]
    assert mock_ldap.calls == []


def test_create_invalid_ou(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    with pytest.raises(BadRequestError):
        client.groups.create("g1", "ou9", [])
    assert mock_ldap.calls_of("add") == []


def test_create_bad_config_is_not_conflict(config: LDAPConfig, mock_ldap: MockLDAP) -> None:
    config.hostname = ""
    client = LDAPClient(config, transport_factory=mock_ldap, dial=False, org_units=StaticOrgUnits(["ou1"]))
    with pytest.raises(MissingParametersError):
        client.groups.create("g1", "ou1", [])


def test_delete(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    client.groups.create("g1", "ou1", [])
    client.groups.delete("g1", "ou1")
    assert mock_ldap.get_entry(f"cn=g1,ou=ou1,{TEST_GROUP_BASE_DN}") is None


def test_delete_not_found(client: LDAPClient) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        client.groups.delete("g1", "ou2")
    assert "cn = 'g1'" in excinfo.value.message
    assert "ou = 'ou2'" in excinfo.value.message


def test_add_members_replaces_sentinel(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    client.groups.create("g1", "ou1", [])

    client.groups.add_members("g1", "ou1", ["c00001"])

    assert _members(client, "g1", "ou1") == [member_dn("C00001")]
    request = mock_ldap.calls_of("modify")[0]
    assert request.dn == f"cn=g1,ou=ou1,{TEST_GROUP_BASE_DN}"
    assert request.changes == {
        "uniqueMember": [(MODIFY_ADD, [member_dn("C00001")]), (MODIFY_DELETE, [SENTINEL_DN])]
    }


def test_add_members_is_idempotent(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    client.groups.create("g1", "ou1", ["A"])

    client.groups.add_members("g1", "ou1", ["B", "C"])
    once = _members(client, "g1", "ou1")
    client.groups.add_members("g1", "ou1", ["B", "C"])

    assert _members(client, "g1", "ou1") == once == [member_dn("A"), member_dn("B"), member_dn("C")]
    # Nothing left to change on the second call.
    assert len(mock_ldap.calls_of("modify")) == 1


def test_add_members_without_sentinel(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    client.groups.create("g1", "ou1", ["A"])

    client.groups.add_members("g1", "ou1", ["b"])

    request = mock_ldap.calls_of("modify")[0]
    assert request.changes == {"uniqueMember": [(MODIFY_ADD, [member_dn("B")])]}
    assert _members(client, "g1", "ou1") == [member_dn("A"), member_dn("B")]


def test_add_members_keeps_sentinel_below_two(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    client.groups.create("g1", "ou1", [])

    client.groups.add_members("g1", "ou1", [])

    assert _members(client, "g1", "ou1") == [SENTINEL_DN]
    assert mock_ldap.calls_of("modify") == []


def test_add_members_case_sensitive(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    _group_entry(mock_ldap, "g1", "ou1", [f"uid=a,{TEST_USER_BASE_DN}"])

    client.groups.add_members("g1", "ou1", ["a"])

    assert _members(client, "g1", "ou1") == [f"uid=a,{TEST_USER_BASE_DN}", member_dn("A")]


def test_add_members_group_not_found(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    with pytest.raises(NotFoundError):
        client.groups.add_members("g1", "ou1", ["A"])
    assert mock_ldap.calls_of("modify") == []


def test_add_members_modify_error(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    client.groups.create("g1", "ou1", [])
    mock_ldap.fail("modify", ldap_error(RESULT_BUSY, "busy"))

    with pytest.raises(InternalServerError):
        client.groups.add_members("g1", "ou1", ["A"])

    assert _members(client, "g1", "ou1") == [SENTINEL_DN]


def test_remove_last_member(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    client.groups.create("g1", "ou1", ["A"])

    client.groups.remove_members("g1", "ou1", ["a"])

    assert _members(client, "g1", "ou1") == [SENTINEL_DN]
    request = mock_ldap.calls_of("modify")[0]
    assert request.changes == {
        "uniqueMember": [(MODIFY_ADD, [SENTINEL_DN]), (MODIFY_DELETE, [member_dn("A")])]
    }


def test_remove_some_members(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    client.groups.create("g1", "ou1", ["A", "B", "C"])

    client.groups.remove_members("g1", "ou1", ["B", "X"])

    assert _members(client, "g1", "ou1") == [member_dn("A"), member_dn("C")]
    request = mock_ldap.calls_of("modify")[0]
    assert request.changes == {"uniqueMember": [(MODIFY_DELETE, [member_dn("B")])]}


def test_remove_absent_members(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    client.groups.create("g1", "ou1", ["A"])

    client.groups.remove_members("g1", "ou1", ["X", "Y"])

    assert _members(client, "g1", "ou1") == [member_dn("A")]
    assert mock_ldap.calls_of("modify") == []


def test_remove_all_members(client: LDAPClient) -> None:
    client.groups.create("g1", "ou1", ["A", "B"])

    client.groups.remove_members("g1", "ou1", ["A", "B"])

    assert _members(client, "g1", "ou1") == [SENTINEL_DN]


def test_membership_never_empty(client: LDAPClient) -> None:
    client.groups.create("g1", "ou1", [])
    steps = [
        ("add", ["A"]),
        ("remove", ["A"]),
        ("add", ["A", "B"]),
        ("remove", ["B"]),
        ("remove", ["A"]),
        ("remove", [NO_SUCH_USER]),
    ]
    for action, ids in steps:
        if action == "add":
            client.groups.add_members("g1", "ou1", ids)
        else:
            client.groups.remove_members("g1", "ou1", ids)
        assert len(_members(client, "g1", "ou1")) >= 1

    assert _members(client, "g1", "ou1") == [SENTINEL_DN]


def test_remove_members_missing_params(client: LDAPClient, mock_ldap: MockLDAP) -> None:
    with pytest.raises(MissingParametersError) as excinfo:
        client.groups.remove_members("g1", "", ["A"])
    assert excinfo.value.params == ["ou"]
    assert mock_ldap.calls == []


def test_org_units_double(config: LDAPConfig, mock_ldap: MockLDAP) -> None:
    units = StaticOrgUnits(["ou1"])
    client = LDAPClient(config, transport_factory=mock_ldap, dial=False, org_units=units)

    client.groups.create("g1", "ou1", ["A"])
    with pytest.raises(BadRequestError):
        client.groups.create("g1", "ou2", ["A"])

    assert units.calls == 2
    assert all(request.search_filter != "(&(objectClass=organizationalUnit))" for request in mock_ldap.calls_of("search"))
