"""
Validity classifier — place a certificate's validity window relative to now.

Timestamps come from the decoder's text ("Jan  1 00:00:00 2030 GMT");
a bound that could not be parsed is None and is simply not considered.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime

import structlog

from cert_bundle.domain.models import CertificateRecord, ValidityAnnotation

log = structlog.get_logger()

# Decoder layout: "Mar  1 12:00:00 2031 GMT" (month-abbrev day time year zone)
_UTC_ZONES = frozenset({"GMT", "UTC", "Z"})


def parse_decoder_time(text: str) -> datetime | None:
    """
    Parse a decoder timestamp into an aware UTC datetime.

    Returns None (and logs) for anything not in the fixed
    "month-abbrev day time year timezone" layout or not in GMT/UTC.
    """
    parts = text.split()
    if len(parts) != 5 or parts[4].upper() not in _UTC_ZONES:
        log.debug("validity.unparsed_time", text=text)
        return None
    try:
        parsed = datetime.strptime(" ".join(parts[:4]), "%b %d %H:%M:%S %Y")
    except ValueError:
        log.debug("validity.unparsed_time", text=text)
        return None
    return parsed.replace(tzinfo=UTC)


def classify(
    not_before: datetime | None,
    not_after: datetime | None,
    now: datetime,
) -> ValidityAnnotation:
    """
    Return the validity annotation for the window [not_before, not_after].

    Expired wins over not-yet-valid when both hold (only possible for an
    inverted window).
    """
    if not_after is not None and not_after < now:
        return ValidityAnnotation.EXPIRED
    if not_before is not None and not_before > now:
        return ValidityAnnotation.NOT_YET_VALID
    return ValidityAnnotation.NONE


def annotate(record: CertificateRecord, now: datetime) -> CertificateRecord:
    """Return `record` with its validity annotation set for `now`."""
    if record.decode_failed:
        return record
    return replace(record, validity=classify(record.not_before, record.not_after, now))
