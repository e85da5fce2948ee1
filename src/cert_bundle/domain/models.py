"""
Domain models — immutable data structures for bundle inspection and editing.

These are pure value objects with no behavior beyond derived properties.
They represent the certificates found in a PEM bundle, the metadata the
decoder reports for each one, the operator's selection, and the plan the
rewriter executes.

All models are frozen dataclasses (immutable) following functional principles.
A record's removal flag is set by producing a new record (dataclasses.replace),
never by mutation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

BEGIN_MARKER = "-----BEGIN CERTIFICATE-----"
END_MARKER = "-----END CERTIFICATE-----"


@dataclass(frozen=True, slots=True)
class CertificateBlock:
    """
    One certificate's PEM text, begin and end markers included.

    `position` is 1-based and follows file order.
    `text` holds the marker-delimited lines joined by newlines, with a
    trailing newline, exactly as they are re-emitted on rewrite.
    """

    position: int
    text: str


class ValidityAnnotation(Enum):
    """Validity window status relative to the time of the run."""

    NONE = ""
    NOT_YET_VALID = "*** NOT YET VALID ***"
    EXPIRED = "*** EXPIRED ***"


@dataclass(frozen=True, slots=True)
class DistinguishedName:
    """
    A distinguished name as reported by the decoder, plus the two
    sub-fields the selection engine matches against.

    Missing components are empty strings, never None.
    """

    raw: str = ""
    organization: str = ""
    common_name: str = ""


@dataclass(frozen=True, slots=True)
class CertificateRecord:
    """
    Structured metadata for one certificate of a bundle.

    A record whose decoder invocation failed keeps only its position and
    `decode_failed=True`; name and validity fields stay empty/None.
    """

    position: int
    issuer: DistinguishedName = field(default_factory=DistinguishedName)
    subject: DistinguishedName = field(default_factory=DistinguishedName)
    not_before: datetime | None = None
    not_after: datetime | None = None
    not_before_raw: str = ""
    not_after_raw: str = ""
    validity_line: str = ""
    validity: ValidityAnnotation = ValidityAnnotation.NONE
    decode_failed: bool = False
    marked_for_removal: bool = False
    report: str = field(default="", repr=False, compare=False)

    @property
    def issuer_org(self) -> str:
        return self.issuer.organization

    @property
    def issuer_common_name(self) -> str:
        return self.issuer.common_name

    @property
    def subject_org(self) -> str:
        return self.subject.organization

    @property
    def subject_common_name(self) -> str:
        return self.subject.common_name

    @property
    def validity_range(self) -> str:
        """'<not before> - <not after>' as printed by the decoder."""
        if not self.not_before_raw and not self.not_after_raw:
            return ""
        return f"{self.not_before_raw} - {self.not_after_raw}"


@dataclass(frozen=True, slots=True)
class SelectionCriteria:
    """
    Operator-supplied removal criteria.

    Empty strings are treated the same as None (criterion not given).
    """

    position: int | None = None
    issuer: str | None = None
    subject: str | None = None
    include_expired: bool = False


@dataclass(frozen=True, slots=True)
class Selection:
    """
    The ordered records of one bundle after the selection engine ran.

    The removal mask is derived from the records' flags and is never
    stored independently.
    """

    records: tuple[CertificateRecord, ...] = ()

    @property
    def removal_mask(self) -> tuple[bool, ...]:
        return tuple(record.marked_for_removal for record in self.records)

    @property
    def total(self) -> int:
        return len(self.records)

    @property
    def removal_count(self) -> int:
        return sum(self.removal_mask)


@dataclass(frozen=True, slots=True)
class FileSnapshot:
    """Ownership and permission bits of a file, taken before it is edited."""

    mode: int
    uid: int
    gid: int


@dataclass(frozen=True, slots=True)
class BundleRewritePlan:
    """
    Everything the rewriter needs for one bundle, built once per file.

    `snapshot` is the original file's metadata before any change;
    `overwrite_backup` authorizes replacing an existing backup file.
    """

    original: Path
    backup: Path
    mask: tuple[bool, ...]
    snapshot: FileSnapshot
    overwrite_backup: bool = False


class RewriteStatus(Enum):
    """What the rewriter did with the filesystem."""

    REWRITTEN = "rewritten"
    BACKUP_OVERWRITTEN = "backup_overwritten"
    BACKUP_EXISTS = "backup_exists"


class EditStatus(Enum):
    """Per-bundle outcome reported to the operator."""

    NOT_MODIFIED = "not_modified"
    WHOLE_BUNDLE = "whole_bundle"
    TEST_MODE = "test_mode"
    BACKUP_EXISTS = "backup_exists"
    BACKUP_OVERWRITTEN = "backup_overwritten"
    REWRITTEN = "rewritten"


@dataclass(frozen=True, slots=True)
class EditReport:
    """
    The result of processing one bundle with the delete command.

    `backup` is set whenever a backup path was computed, even if the
    rewrite was skipped because the backup already existed.
    """

    path: Path
    selection: Selection
    status: EditStatus
    backup: Path | None = None
