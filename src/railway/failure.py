"""
Failure description — structured error information for the failure track.

An ErrorCode names the category of what went wrong; the FailureDescription
carries the code, a human-readable message and the exception (if any) that
caused it.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """
    Error categories for bundle inspection and editing.

    All of them are per-file: processing continues with the next file.
    """

    INPUT_ERROR = "INPUT_ERROR"
    """File missing, unreadable, or not a regular file."""

    MALFORMED_BUNDLE = "MALFORMED_BUNDLE"
    """Bundle ends inside a certificate (missing end marker)."""

    DECODE_ERROR = "DECODE_ERROR"
    """Certificate decoder unavailable or rejected a certificate."""

    REWRITE_ERROR = "REWRITE_ERROR"
    """Rename, open, write or permission change failed; original restored."""

    RESTORE_ERROR = "RESTORE_ERROR"
    """A rewrite failed AND restoring the original failed; manual repair needed."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor carrying error code, message, optional exception, and timestamp.

    >>> desc = FailureDescription(ErrorCode.INPUT_ERROR, "certs.pem not found")
    >>> desc.code
    <ErrorCode.INPUT_ERROR: 'INPUT_ERROR'>
    >>> desc.message
    'certs.pem not found'
    """

    code: ErrorCode
    message: str
    exception: Optional[BaseException] = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def full_stack_trace(self) -> str:
        """Full stack trace string including the message and exception chain."""
        if self.exception is None:
            return self.message
        tb = "".join(traceback.format_exception(type(self.exception), self.exception, self.exception.__traceback__))
        return f"{self.message}\n{tb}"
