"""
Filesystem rewriter adapter — backup-then-rewrite of a bundle file.

Adapter layer — implements the BundleRewriter port with plain os calls.

Uses a BACKUP-THEN-REWRITE pattern so there is always one complete copy
of the original content on disk:
  1. Existing backup: refuse (BACKUP_EXISTS) unless overwrite is
     authorized, in which case make it writable
  2. rename(original → backup): the only irreversible step
  3. Re-segment the backup, write the kept certificates to a NEW file at
     the original path (O_EXCL), one blank line between certificates
  4. Backup becomes read-only (r-x bits only)
  5. New file gets the original's owner/group and rwx bits
  6. Any failure in steps 3-5 removes the new file and renames the
     backup back; a failure of that reversal is reported separately
"""

from __future__ import annotations

import os
import stat
from collections.abc import Sequence
from pathlib import Path

import structlog
from railway import ErrorCode
from railway.result import Result

from cert_bundle.domain.models import (
    BundleRewritePlan,
    CertificateBlock,
    FileSnapshot,
    RewriteStatus,
)
from cert_bundle.domain.segmenter import read_blocks

log = structlog.get_logger()

_READ_EXECUTE_ONLY = (
    stat.S_IRUSR | stat.S_IXUSR | stat.S_IRGRP | stat.S_IXGRP | stat.S_IROTH | stat.S_IXOTH
)
_READ_WRITE_EXECUTE = stat.S_IRWXU | stat.S_IRWXG | stat.S_IRWXO


class BundleChangedError(ValueError):
    """The backed-up bundle no longer has as many certificates as the mask."""


def backup_path_for(path: Path, suffix: str = "-BACKUP") -> Path:
    """
    Insert `suffix` before the file name's last extension, or append it.

    >>> backup_path_for(Path("/etc/ssl/ca.pem"))
    PosixPath('/etc/ssl/ca-BACKUP.pem')
    >>> backup_path_for(Path("bundle"))
    PosixPath('bundle-BACKUP')
    """
    stem, dot, extension = path.name.rpartition(".")
    if dot and stem:
        return path.with_name(f"{stem}{suffix}.{extension}")
    return path.with_name(f"{path.name}{suffix}")


def snapshot_file(path: Path) -> Result[FileSnapshot]:
    """Capture ownership and permission bits of `path`."""
    return Result.from_computation(
        lambda: _snapshot(os.stat(path)),
        ErrorCode.INPUT_ERROR,
        f"stat ({path}) failed",
    )


def _snapshot(st: os.stat_result) -> FileSnapshot:
    return FileSnapshot(mode=stat.S_IMODE(st.st_mode), uid=st.st_uid, gid=st.st_gid)


def render_kept(blocks: Sequence[CertificateBlock], mask: Sequence[bool]) -> str:
    """Join the blocks the mask keeps, exactly one blank line between them."""
    return "\n".join(block.text for block, remove in zip(blocks, mask) if not remove)


class FilesystemBundleRewriter:
    """
    Rewrite bundle files in place, keeping the original as a backup.

    Implements the BundleRewriter port.
    OS errors become Result failures at this boundary; nothing is raised.
    """

    def rewrite(self, plan: BundleRewritePlan) -> Result[RewriteStatus]:
        """
        Execute `plan`.

        Returns Success(BACKUP_EXISTS) without touching anything when a
        backup exists and overwrite is not authorized.
        Returns Failure(REWRITE_ERROR) when the rewrite was aborted and the
        original is back in place, Failure(RESTORE_ERROR) when it is not.
        """
        backup_existed = os.path.lexists(plan.backup)
        if backup_existed:
            if not plan.overwrite_backup:
                log.info("rewriter.backup_exists", backup=str(plan.backup))
                return Result.success(RewriteStatus.BACKUP_EXISTS)
            try:
                os.chmod(plan.backup, plan.snapshot.mode & _READ_WRITE_EXECUTE)
            except OSError as e:
                return Result.failure(
                    ErrorCode.REWRITE_ERROR,
                    f"chmod ({plan.backup}) failed <{e.strerror or e}>; {plan.original} not modified",
                    e,
                )

        try:
            os.rename(plan.original, plan.backup)
        except OSError as e:
            return Result.failure(
                ErrorCode.REWRITE_ERROR,
                f"rename ({plan.original}, {plan.backup}) failed <{e.strerror or e}>",
                e,
            )
        log.info("rewriter.renamed", original=str(plan.original), backup=str(plan.backup))

        created = False
        try:
            blocks = read_blocks(plan.backup)
            if len(blocks) != len(plan.mask):
                raise BundleChangedError(
                    f"{plan.backup} now holds {len(blocks)} certificates, expected {len(plan.mask)}"
                )
            fd = os.open(plan.original, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            created = True
            with os.fdopen(fd, "w", encoding="utf-8") as out:
                out.write(render_kept(blocks, plan.mask))
                out.flush()
                os.chmod(plan.backup, plan.snapshot.mode & _READ_EXECUTE_ONLY)
                os.fchmod(out.fileno(), plan.snapshot.mode & _READ_WRITE_EXECUTE)
                os.fchown(out.fileno(), plan.snapshot.uid, plan.snapshot.gid)
        except (OSError, ValueError) as e:
            return self._restore(plan, e, remove_new_file=created)

        kept = plan.mask.count(False)
        log.info(
            "rewriter.complete",
            original=str(plan.original),
            backup=str(plan.backup),
            kept=kept,
            removed=len(plan.mask) - kept,
        )
        return Result.success(
            RewriteStatus.BACKUP_OVERWRITTEN if backup_existed else RewriteStatus.REWRITTEN
        )

    def _restore(
        self,
        plan: BundleRewritePlan,
        error: Exception,
        remove_new_file: bool,
    ) -> Result[RewriteStatus]:
        """
        Put the backup back at the original path after a failed rewrite.

        Restoring the backup's mode is best effort: the rename back is
        attempted even when the chmod is refused.
        """
        reason = getattr(error, "strerror", None) or str(error)
        log.error("rewriter.failed", original=str(plan.original), error=reason)
        try:
            os.chmod(plan.backup, plan.snapshot.mode)
        except OSError as chmod_error:
            log.warning(
                "rewriter.mode_restore_failed",
                backup=str(plan.backup),
                error=chmod_error.strerror or str(chmod_error),
            )
        try:
            if remove_new_file:
                plan.original.unlink(missing_ok=True)
            os.rename(plan.backup, plan.original)
        except OSError as restore_error:
            restore_reason = restore_error.strerror or str(restore_error)
            log.error(
                "rewriter.restore_failed",
                original=str(plan.original),
                backup=str(plan.backup),
                error=restore_reason,
            )
            return Result.failure(
                ErrorCode.RESTORE_ERROR,
                f"rewrite of {plan.original} failed <{reason}>; "
                f"restoring it from {plan.backup} also failed <{restore_reason}>",
                restore_error,
            )
        log.info("rewriter.restored", original=str(plan.original))
        return Result.failure(
            ErrorCode.REWRITE_ERROR,
            f"rewrite of {plan.original} failed <{reason}>; original restored",
            error,
        )
