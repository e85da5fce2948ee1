"""
Unit tests for the validity classifier and decoder timestamp parsing.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from cert_bundle.domain.models import CertificateRecord, ValidityAnnotation
from cert_bundle.domain.validity import annotate, classify, parse_decoder_time
from tests.conftest import NOW


class TestParseDecoderTime:
    """
    GIVEN timestamp text from the decoder
    WHEN parse_decoder_time is called
    THEN it returns an aware UTC datetime, or None for unusable text.
    """

    def test_space_padded_day(self) -> None:
        assert parse_decoder_time("Jan  1 00:00:00 2030 GMT") == datetime(2030, 1, 1, tzinfo=UTC)

    def test_two_digit_day(self) -> None:
        assert parse_decoder_time("Dec 31 23:59:59 2029 GMT") == datetime(
            2029, 12, 31, 23, 59, 59, tzinfo=UTC
        )

    def test_utc_zone_accepted(self) -> None:
        assert parse_decoder_time("Mar 15 08:30:00 2031 UTC") == datetime(2031, 3, 15, 8, 30, tzinfo=UTC)

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "garbage",
            "2030-01-01T00:00:00Z",
            "Foo  1 00:00:00 2030 GMT",
            "Jan  1 00:00:00 2030 PST",
            "Jan 32 00:00:00 2030 GMT",
        ],
    )
    def test_unparseable_is_none(self, text: str) -> None:
        assert parse_decoder_time(text) is None


class TestClassify:
    """
    GIVEN a validity window and the current time
    WHEN classify is called
    THEN the annotation reflects where now falls relative to the window.
    """

    def test_inside_window(self) -> None:
        assert classify(NOW - timedelta(days=1), NOW + timedelta(days=1), NOW) is ValidityAnnotation.NONE

    def test_not_after_in_past_is_expired(self) -> None:
        assert classify(NOW - timedelta(days=10), NOW - timedelta(seconds=1), NOW) is ValidityAnnotation.EXPIRED

    def test_not_before_in_future_is_not_yet_valid(self) -> None:
        assert (
            classify(NOW + timedelta(seconds=1), NOW + timedelta(days=10), NOW)
            is ValidityAnnotation.NOT_YET_VALID
        )

    def test_bounds_equal_to_now_are_valid(self) -> None:
        assert classify(NOW, NOW, NOW) is ValidityAnnotation.NONE

    def test_both_absent(self) -> None:
        assert classify(None, None, NOW) is ValidityAnnotation.NONE

    def test_absent_bound_is_skipped(self) -> None:
        assert classify(None, NOW - timedelta(days=1), NOW) is ValidityAnnotation.EXPIRED
        assert classify(NOW + timedelta(days=1), None, NOW) is ValidityAnnotation.NOT_YET_VALID

    def test_inverted_window_reports_expired(self) -> None:
        """Expired takes precedence when both conditions hold."""
        assert classify(NOW + timedelta(days=1), NOW - timedelta(days=1), NOW) is ValidityAnnotation.EXPIRED


class TestAnnotate:
    def test_sets_annotation_on_copy(self) -> None:
        record = CertificateRecord(position=1, not_after=NOW - timedelta(days=1))
        annotated = annotate(record, NOW)
        assert annotated.validity is ValidityAnnotation.EXPIRED
        assert record.validity is ValidityAnnotation.NONE

    def test_decode_failed_record_is_left_alone(self) -> None:
        record = CertificateRecord(position=1, decode_failed=True)
        assert annotate(record, NOW) is record
