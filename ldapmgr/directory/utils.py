from __future__ import annotations

from typing import Iterable


def escape_ldap_filter_value(value: str, *, allow_wildcard: bool = False) -> str:
    """RFC 4515 escaping for LDAP filter values.

    With ``allow_wildcard`` the ``*`` character is passed through so callers
    can express substring matches.
    """
    out: list[str] = []
    for ch in value:
        if ch == "\\":
            out.append("\\5c")
        elif ch == "*":
            out.append("*" if allow_wildcard else "\\2a")
        elif ch == "(":
            out.append("\\28")
        elif ch == ")":
            out.append("\\29")
        elif ch == "\x00":
            out.append("\\00")
        else:
            out.append(ch)
    return "".join(out)


def split_dn(dn: str) -> list[tuple[str, str]]:
    """Split a DN into ``(attribute, value)`` pairs, honouring escaped commas.

    ``cn=g1,ou=team\\,a,o=company`` -> ``[("cn", "g1"), ("ou", "team,a"), ("o", "company")]``
    """
    s = (dn or "").strip()
    if not s:
        return []

    rdns: list[str] = []
    current: list[str] = []
    esc = False
    for ch in s:
        if esc:
            current.append(ch)
            esc = False
            continue
        if ch == "\\":
            current.append(ch)
            esc = True
            continue
        if ch == ",":
            rdns.append("".join(current))
            current = []
            continue
        current.append(ch)
    rdns.append("".join(current))

    out: list[tuple[str, str]] = []
    for rdn in rdns:
        rdn = rdn.strip()
        if "=" in rdn:
            attr, val = rdn.split("=", 1)
        else:
            attr, val = "", rdn
        # Unescape common DN escapes
        val = val.strip().replace("\\,", ",").replace("\\+", "+").replace("\\=", "=").replace('\\"', '"')
        out.append((attr.strip(), val))
    return out


def dn_component_value(dn: str, index: int, attr: str) -> str:
    """Return the value of RDN number ``index`` if its attribute is ``attr``.

    ``dn_component_value("cn=g1,ou=team,o=company", 1, "ou")`` -> ``"team"``
    """
    parts = split_dn(dn)
    if index >= len(parts):
        return ""
    name, value = parts[index]
    if name.lower() != attr.lower():
        return ""
    return value


def unique(values: Iterable[str]) -> list[str]:
    """Drop duplicates, keeping first-seen order."""
    seen: set[str] = set()
    out: list[str] = []
    for v in values:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out
