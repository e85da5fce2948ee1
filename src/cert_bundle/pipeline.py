"""
Pipeline — the ROP pipelines behind the decode and delete commands.

All I/O is injected via ports (Protocol interfaces) or confined to the
segmenter's file read. The delete pipeline connects stages via flat_map:

  segment_bundle(path)
    → decode + classify each block        (decoder port)
      → select_for_removal(criteria)
        → skip checks (nothing / everything / test mode)
          → snapshot + plan
            → rewrite(plan)               (rewriter port)

Each stage returns Result[T]. Failures short-circuit automatically
through the railway; one file's failure never affects the next file.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import structlog
from railway import ErrorCode
from railway.result import Result

from cert_bundle.adapters.rewriter import backup_path_for, snapshot_file
from cert_bundle.config import EditOptions
from cert_bundle.decoding import decode_blocks
from cert_bundle.domain.models import (
    BundleRewritePlan,
    CertificateRecord,
    EditReport,
    EditStatus,
    RewriteStatus,
    Selection,
)
from cert_bundle.domain.ports import BundleRewriter, CertificateDecoder
from cert_bundle.domain.segmenter import MalformedBundleError, iter_blocks, segment_bundle
from cert_bundle.domain.selection import select_for_removal

log = structlog.get_logger()

_EDIT_STATUS = {
    RewriteStatus.REWRITTEN: EditStatus.REWRITTEN,
    RewriteStatus.BACKUP_OVERWRITTEN: EditStatus.BACKUP_OVERWRITTEN,
    RewriteStatus.BACKUP_EXISTS: EditStatus.BACKUP_EXISTS,
}


def inspect_bundle(
    path: Path,
    decoder: CertificateDecoder,
    now: datetime,
) -> Result[list[CertificateRecord]]:
    """Segment, decode and classify every certificate of the bundle at `path`."""
    return segment_bundle(path).map(lambda blocks: list(decode_blocks(blocks, decoder, now)))


def skip_status(selection: Selection, options: EditOptions) -> EditStatus | None:
    """
    Return why the bundle must not be rewritten, or None to go ahead.

    Removing every certificate is never done implicitly: the operator
    has to delete the file themselves.
    """
    if selection.removal_count == 0:
        return EditStatus.NOT_MODIFIED
    if selection.removal_count == selection.total:
        return EditStatus.WHOLE_BUNDLE
    if options.test_mode:
        return EditStatus.TEST_MODE
    return None


def plan_rewrite(
    path: Path,
    selection: Selection,
    options: EditOptions,
    backup_suffix: str,
) -> Result[BundleRewritePlan]:
    """Build the rewrite plan, snapshotting the original's owner and mode."""
    return snapshot_file(path).map(
        lambda snapshot: BundleRewritePlan(
            original=path,
            backup=backup_path_for(path, backup_suffix),
            mask=selection.removal_mask,
            snapshot=snapshot,
            overwrite_backup=options.force,
        )
    )


def edit_bundle(
    path: Path,
    selection: Selection,
    options: EditOptions,
    rewriter: BundleRewriter,
    backup_suffix: str = "-BACKUP",
) -> Result[EditReport]:
    """Rewrite the bundle without the selected certificates, unless a skip rule applies."""
    status = skip_status(selection, options)
    if status is not None:
        return Result.success(EditReport(path=path, selection=selection, status=status))

    return plan_rewrite(path, selection, options, backup_suffix).flat_map(
        lambda plan: rewriter.rewrite(plan).map(
            lambda rewrite_status: EditReport(
                path=path,
                selection=selection,
                status=_EDIT_STATUS[rewrite_status],
                backup=plan.backup,
            )
        )
    )


def run_delete(
    path: Path,
    decoder: CertificateDecoder,
    rewriter: BundleRewriter,
    options: EditOptions,
    backup_suffix: str = "-BACKUP",
    now: datetime | None = None,
) -> Result[EditReport]:
    """
    Execute the delete pipeline for one bundle file.

    Returns Result[EditReport] describing what happened, or the failure of
    the first failing stage (input, malformed bundle, rewrite, restore).
    """
    now = now or datetime.now(UTC)
    return (
        inspect_bundle(path, decoder, now)
        .map(lambda records: select_for_removal(records, options.criteria))
        .flat_map(lambda selection: edit_bundle(path, selection, options, rewriter, backup_suffix))
        .peek(
            lambda report: log.info(
                "pipeline.complete",
                path=str(path),
                certificates=report.selection.total,
                removed=report.selection.removal_count,
                status=report.status.value,
            )
        )
    )


def run_decode(
    path: Path,
    decoder: CertificateDecoder,
    on_record: Callable[[CertificateRecord], object],
    now: datetime | None = None,
) -> Result[int]:
    """
    Stream the bundle's certificates through the decoder.

    `on_record` sees each classified record as soon as it is decoded.
    Returns the number of certificates, or a failure if the file cannot be
    read or ends inside a certificate (after the complete ones were seen).
    """
    now = now or datetime.now(UTC)
    count = 0
    try:
        with path.open("r", encoding="utf-8", errors="replace") as handle:
            for record in decode_blocks(iter_blocks(handle), decoder, now):
                on_record(record)
                count += 1
    except MalformedBundleError as e:
        return Result.failure(ErrorCode.MALFORMED_BUNDLE, f"{path}: {e}", e)
    except OSError as e:
        return Result.failure(ErrorCode.INPUT_ERROR, f"{path}: {e.strerror or e}", e)
    return Result.success(count)
