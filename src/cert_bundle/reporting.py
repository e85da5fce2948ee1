"""
Reporting — human-readable output for the decode and delete commands.

Pure formatting: every function returns lines and never changes a record
or a report. The command layer decides where the lines go.
"""

from __future__ import annotations

import grp
import os
import pwd
import stat
from datetime import datetime
from pathlib import Path

from cert_bundle.domain.models import (
    CertificateRecord,
    EditReport,
    EditStatus,
    Selection,
)

DECODE_FAILED = "*** DECODE FAILED ***"


def display_path(path: Path, full_path: bool = False) -> str:
    return str(path.absolute()) if full_path else str(path)


def _owner(uid: int) -> str:
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def _group(gid: int) -> str:
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return str(gid)


def file_label(path: Path, full_path: bool = False) -> str:
    """
    `ls -l`-style description of `path`, or just the path if it can't be stat'ed.

    -rw-r--r-- 1 root root 3912 Mar 04 09:15 /etc/ssl/certs/chain.pem
    """
    shown = display_path(path, full_path)
    try:
        st = os.stat(path)
    except OSError:
        return shown
    modified = datetime.fromtimestamp(st.st_mtime)
    return (
        f"{stat.filemode(st.st_mode)} {st.st_nlink} {_owner(st.st_uid)} {_group(st.st_gid)} "
        f"{st.st_size} {modified:%b %d %H:%M} {shown}"
    )


def _status_text(report: EditReport) -> str:
    match report.status:
        case EditStatus.NOT_MODIFIED:
            return "File NOT Modified"
        case EditStatus.WHOLE_BUNDLE:
            return "Entire file must be deleted"
        case EditStatus.TEST_MODE:
            return "File not updated in Test Mode"
        case EditStatus.BACKUP_EXISTS:
            return f"Backup {report.backup} already exists so {report.path} will NOT be updated"
        case EditStatus.BACKUP_OVERWRITTEN:
            return f"Backup {report.backup} overwritten in Force Mode"
        case EditStatus.REWRITTEN:
            return f"Backup to {report.backup}"
    raise TypeError(f"unknown status {report.status!r}")  # pragma: no cover


def summary_line(report: EditReport, label: str) -> str:
    selection = report.selection
    return (
        f"######## {label}, {selection.total} Certificates in File, "
        f"Delete {selection.removal_count} ({_status_text(report)})"
    )


def _annotation(record: CertificateRecord) -> str:
    return DECODE_FAILED if record.decode_failed else record.validity.value


def _parsed_times(record: CertificateRecord) -> list[str]:
    lines = []
    for name, raw, parsed in (
        ("NOT BEFORE", record.not_before_raw, record.not_before),
        ("NOT AFTER", record.not_after_raw, record.not_after),
    ):
        shown = parsed.strftime("%Y-%m-%d-%a %H:%M:%S %Z") if parsed else "<unparsed>"
        lines.append(f"*** PARSED {name} ({raw}): {shown}")
    return lines


def certificate_line(record: CertificateRecord) -> str:
    action = "DELETE" if record.marked_for_removal else "      "
    return (
        f"{record.position:3d}. {action} {_annotation(record):<21.21} {record.validity_range}; "
        f"Issuer <{record.issuer.raw}>; Subject <{record.subject.raw}>"
    )


def selection_lines(selection: Selection, debug: bool = False, verbose: bool = False) -> list[str]:
    """One line per certificate; debug adds parsed timestamps, verbose the decoder report."""
    lines = []
    for record in selection.records:
        lines.append(certificate_line(record))
        if debug and not record.decode_failed:
            lines.extend(f"     {line}" for line in _parsed_times(record))
        if verbose and record.report:
            lines.extend(line.rstrip() for line in record.report.splitlines())
    return lines


def edit_report_lines(report: EditReport, label: str, debug: bool = False, verbose: bool = False) -> list[str]:
    return [summary_line(report, label), *selection_lines(report.selection, debug, verbose)]


def decoded_lines(
    record: CertificateRecord,
    label: str,
    debug: bool = False,
    verbose: bool = False,
) -> list[str]:
    """
    The decode command's block for one certificate.

    Verbose passes the decoder's full report through unchanged.
    """
    lines = [f"======== {label}, Certificate {record.position}"]
    if record.decode_failed:
        lines.append(DECODE_FAILED)
        return lines
    if verbose:
        lines.extend(line.rstrip() for line in record.report.splitlines())
        return lines

    validity = record.validity_line or "        Validity"
    if record.validity.value:
        validity = f"{validity} {record.validity.value}"

    lines.append(f"        Issuer: {record.issuer.raw}")
    if debug:
        lines.extend(_parsed_times(record))
    lines.extend(
        [
            validity,
            f"            Not Before: {record.not_before_raw}",
            f"            Not After : {record.not_after_raw}",
            f"        Subject: {record.subject.raw}",
        ]
    )
    return lines


def decode_trailer(label: str, count: int) -> str | None:
    if count > 1:
        return f"######## {label}, {count} Certificates in File"
    return None


def ignored_backup_line(label: str) -> str:
    return f"######## {label}: Ignoring BACKUP File"
