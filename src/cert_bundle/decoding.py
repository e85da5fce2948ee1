"""
Certificate decoder adapter — decoder report text → CertificateRecord.

Invokes a CertificateDecoder port per block and reads its report line by
line. The first line carrying each label wins:

    Issuer: C = US, O = Example, CN = Example Root
    Validity
        Not Before: Jan  1 00:00:00 2024 GMT
        Not After : Jan  1 00:00:00 2034 GMT
    Subject: C = US, O = Example, CN = Example Leaf

A timestamp that cannot be parsed leaves its bound as None. A decoder
failure (or an empty report) yields a record with only its position and
`decode_failed=True`; it never stops the run.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import datetime
from typing import Any

import structlog
from railway import ErrorCode
from railway.failure import FailureDescription

from cert_bundle.domain.models import CertificateBlock, CertificateRecord
from cert_bundle.domain.names import parse_name
from cert_bundle.domain.ports import CertificateDecoder
from cert_bundle.domain.validity import annotate, parse_decoder_time

log = structlog.get_logger()

ISSUER_LABEL = "Issuer: "
SUBJECT_LABEL = "Subject: "
VALIDITY_LABEL = "Validity"
NOT_BEFORE_LABEL = "Not Before: "
NOT_AFTER_LABEL = "Not After : "


def _after(line: str, label: str) -> str | None:
    index = line.find(label)
    if index < 0:
        return None
    return line[index + len(label):].strip()


def parse_report(position: int, report: str) -> CertificateRecord:
    """Build the record for the certificate at `position` from its decoder report."""
    fields: dict[str, Any] = {}

    for raw in report.splitlines():
        line = raw.rstrip()
        if (value := _after(line, ISSUER_LABEL)) is not None:
            fields.setdefault("issuer", parse_name(value))
        elif (value := _after(line, SUBJECT_LABEL)) is not None:
            fields.setdefault("subject", parse_name(value))
        elif (value := _after(line, NOT_BEFORE_LABEL)) is not None:
            if "not_before_raw" not in fields:
                fields["not_before_raw"] = value
                fields["not_before"] = parse_decoder_time(value)
        elif (value := _after(line, NOT_AFTER_LABEL)) is not None:
            if "not_after_raw" not in fields:
                fields["not_after_raw"] = value
                fields["not_after"] = parse_decoder_time(value)
        elif VALIDITY_LABEL in line:
            fields.setdefault("validity_line", line)

    return CertificateRecord(position=position, report=report, **fields)


def _failed_record(block: CertificateBlock, error: FailureDescription) -> CertificateRecord:
    log.warning("decoder.failed", position=block.position, error=error.message)
    return CertificateRecord(position=block.position, decode_failed=True)


def decode_block(block: CertificateBlock, decoder: CertificateDecoder) -> CertificateRecord:
    """Decode one block into an (unclassified) record, absorbing decoder failures."""
    return (
        decoder.decode(block)
        .ensure(
            lambda report: bool(report.strip()),
            ErrorCode.DECODE_ERROR,
            f"decoder produced no output for certificate {block.position}",
        )
        .either(
            on_success=lambda report: parse_report(block.position, report),
            on_failure=lambda error: _failed_record(block, error),
        )
    )


def decode_blocks(
    blocks: Iterable[CertificateBlock],
    decoder: CertificateDecoder,
    now: datetime,
) -> Iterator[CertificateRecord]:
    """
    Decode and classify blocks lazily, one record per block, in order.

    Exceptions raised while iterating `blocks` (e.g. a malformed bundle)
    propagate to the caller after the records already yielded.
    """
    for block in blocks:
        yield annotate(decode_block(block, decoder), now)
