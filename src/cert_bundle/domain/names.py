"""
Distinguished-name parser — organization and common name sub-fields.

The decoder prints names as comma-separated `key = value` components, e.g.

    C = US, O = Let's Encrypt, CN = R3

A component boundary is a comma followed by `KEY =`, so commas inside a
value ("O = Example, Inc., CN = Root") do not split it. The organization
runs to the next component; the common name runs to the end of the
string. Only the first occurrence of each key is used.
"""

from __future__ import annotations

import re

from cert_bundle.domain.models import DistinguishedName

# Key spellings produced by the supported decoders and openssl -nameopt variants.
_ORGANIZATION_KEYS = frozenset({"O", "organizationName"})
_COMMON_NAME_KEYS = frozenset({"CN", "commonName"})

_COMPONENT_START = re.compile(r"(?:^|,\s*)(?P<key>[A-Za-z][A-Za-z0-9.]*|\d+(?:\.\d+)+)\s*=\s*")


def _components(raw: str) -> list[tuple[str, int, int]]:
    """Return (key, value_start, component_end) for each component, in order."""
    starts = [(m.group("key"), m.start(), m.end()) for m in _COMPONENT_START.finditer(raw)]
    components = []
    for index, (key, _, value_start) in enumerate(starts):
        end = starts[index + 1][1] if index + 1 < len(starts) else len(raw)
        components.append((key, value_start, end))
    return components


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def parse_name(raw: str) -> DistinguishedName:
    """
    Parse a decoder-printed distinguished name.

    >>> parse_name("C = US, O = Example Corp, CN = Example Root").organization
    'Example Corp'
    >>> parse_name("C = US, O = Example Corp, CN = Example Root").common_name
    'Example Root'
    """
    raw = raw.strip()
    organization = ""
    common_name = ""
    found_org = found_cn = False

    for key, value_start, end in _components(raw):
        if key in _ORGANIZATION_KEYS and not found_org:
            organization = _unquote(raw[value_start:end])
            found_org = True
        elif key in _COMMON_NAME_KEYS and not found_cn:
            common_name = _unquote(raw[value_start:])
            found_cn = True

    return DistinguishedName(raw=raw, organization=organization, common_name=common_name)
