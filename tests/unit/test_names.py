"""
Unit tests for the distinguished-name parser.

Table-driven: each case is (raw name, expected organization, expected common name).
"""

from __future__ import annotations

import pytest

from cert_bundle.domain.names import parse_name

CASES = [
    ("C = US, O = Let's Encrypt, CN = R3", "Let's Encrypt", "R3"),
    ("C = US, O = Example Corp, OU = Web, CN = www.example.com", "Example Corp", "www.example.com"),
    ("CN = Lone Common Name", "", "Lone Common Name"),
    ("C = DE, O = Only Organization", "Only Organization", ""),
    ("C = US, ST = Texas, L = Houston", "", ""),
    ("", "", ""),
    ("C=US, O=Compact Spacing, CN=Old OpenSSL", "Compact Spacing", "Old OpenSSL"),
    ("C = US, O = Example, Inc., CN = Root CA", "Example, Inc.", "Root CA"),
    ('C = US, O = "Quoted, LLC", CN = Quoted Root', "Quoted, LLC", "Quoted Root"),
    ("CN = Terminal, Has Comma", "", "Terminal, Has Comma"),
    ("C = US, OU = Unit, CN = Unit Only", "", "Unit Only"),
    ("C = US, O = First, O = Second, CN = Two Orgs", "First", "Two Orgs"),
    ("countryName = US, organizationName = Long Keys, commonName = Long CN", "Long Keys", "Long CN"),
    ("  C = US, O = Padded, CN = Padded Root  ", "Padded", "Padded Root"),
]


@pytest.mark.parametrize(("raw", "organization", "common_name"), CASES)
def test_parse_name(raw: str, organization: str, common_name: str) -> None:
    name = parse_name(raw)
    assert name.organization == organization
    assert name.common_name == common_name


def test_raw_is_kept_stripped() -> None:
    assert parse_name("  C = US, CN = X  ").raw == "C = US, CN = X"
