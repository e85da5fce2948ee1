"""
Selection engine — decide which certificates leave the bundle.

Criteria are evaluated per record in a fixed order; the first one that
matches marks the record and later criteria are not consulted:

  1. position equals the requested position
  2. issuer string equals the issuer's organization or common name
  3. subject string equals the subject's organization or common name
  4. expired-only flag and the record is annotated expired

Name comparisons are case-insensitive equality, not substring matches.
Records that failed to decode are only eligible by position.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

import structlog

from cert_bundle.domain.models import (
    CertificateRecord,
    DistinguishedName,
    Selection,
    SelectionCriteria,
    ValidityAnnotation,
)

log = structlog.get_logger()


def _name_matches(wanted: str | None, name: DistinguishedName) -> bool:
    if not wanted:
        return False
    key = wanted.casefold()
    return key in (name.organization.casefold(), name.common_name.casefold())


def matching_criterion(record: CertificateRecord, criteria: SelectionCriteria) -> str | None:
    """Return the name of the first criterion that selects `record`, or None."""
    if criteria.position is not None and record.position == criteria.position:
        return "position"
    if record.decode_failed:
        return None
    if _name_matches(criteria.issuer, record.issuer):
        return "issuer"
    if _name_matches(criteria.subject, record.subject):
        return "subject"
    if criteria.include_expired and record.validity is ValidityAnnotation.EXPIRED:
        return "expired"
    return None


def select_for_removal(
    records: Iterable[CertificateRecord],
    criteria: SelectionCriteria,
) -> Selection:
    """
    Mark the records selected by `criteria` and return them as a Selection.

    A record already marked stays marked and is counted once. A position
    that matches no record selects nothing; this is logged, not an error.
    """
    selected: list[CertificateRecord] = []
    for record in records:
        if not record.marked_for_removal:
            criterion = matching_criterion(record, criteria)
            if criterion is not None:
                log.debug("selection.marked", position=record.position, criterion=criterion)
                record = replace(record, marked_for_removal=True)
        selected.append(record)

    selection = Selection(records=tuple(selected))
    if criteria.position is not None and not any(
        r.position == criteria.position for r in selection.records
    ):
        log.warning(
            "selection.position_not_found",
            position=criteria.position,
            certificates=selection.total,
        )
    return selection
