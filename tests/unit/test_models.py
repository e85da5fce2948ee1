"""
Unit tests for domain models — derived properties only.
"""

from __future__ import annotations

import pytest

from cert_bundle.domain.models import (
    CertificateRecord,
    DistinguishedName,
    Selection,
)


class TestCertificateRecord:
    def test_name_shortcuts(self) -> None:
        record = CertificateRecord(
            position=1,
            issuer=DistinguishedName(raw="O = Trust, CN = Root", organization="Trust", common_name="Root"),
            subject=DistinguishedName(raw="CN = leaf", common_name="leaf"),
        )
        assert (record.issuer_org, record.issuer_common_name) == ("Trust", "Root")
        assert (record.subject_org, record.subject_common_name) == ("", "leaf")

    def test_validity_range(self) -> None:
        record = CertificateRecord(position=1, not_before_raw="A", not_after_raw="B")
        assert record.validity_range == "A - B"
        assert CertificateRecord(position=1).validity_range == ""

    def test_report_not_part_of_equality(self) -> None:
        assert CertificateRecord(position=1, report="x") == CertificateRecord(position=1, report="y")

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            CertificateRecord(position=1).position = 2  # type: ignore[misc]


class TestSelection:
    def test_mask_and_counts(self) -> None:
        selection = Selection(
            records=(
                CertificateRecord(position=1),
                CertificateRecord(position=2, marked_for_removal=True),
                CertificateRecord(position=3),
            )
        )
        assert selection.removal_mask == (False, True, False)
        assert selection.total == 3
        assert selection.removal_count == 1

    def test_empty(self) -> None:
        assert Selection().removal_mask == ()
        assert Selection().removal_count == 0
