"""
Bundle segmenter — split a PEM bundle's lines into certificate blocks.

A block starts at a line exactly equal to the begin marker (outside a
block) and ends at a line exactly equal to the end marker (inside a
block). Lines are compared after trailing whitespace is removed, so CRLF
files segment like LF files. Anything outside a block is ignored.

`iter_blocks` is lazy and single-pass; `segment_bundle` materializes it
behind a Result for callers on the railway.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path

import structlog
from railway import ErrorCode
from railway.result import Result

from cert_bundle.domain.models import BEGIN_MARKER, END_MARKER, CertificateBlock

log = structlog.get_logger()


class MalformedBundleError(ValueError):
    """The line stream ended inside a certificate (no end marker)."""

    def __init__(self, position: int, lines_read: int) -> None:
        super().__init__(
            f"certificate {position} has no end marker "
            f"(stream ended after {lines_read} lines)"
        )
        self.position = position
        self.lines_read = lines_read


def iter_blocks(lines: Iterable[str]) -> Iterator[CertificateBlock]:
    """
    Yield CertificateBlocks in file order, positions starting at 1.

    Raises MalformedBundleError after the last complete block if the
    stream ends inside a certificate; the partial block is discarded.
    """
    position = 0
    current: list[str] = []
    inside = False
    line_number = 0

    for line_number, raw in enumerate(lines, start=1):
        line = raw.rstrip()
        if inside:
            current.append(line)
            if line == END_MARKER:
                inside = False
                yield CertificateBlock(position=position, text="\n".join(current) + "\n")
                current = []
        elif line == BEGIN_MARKER:
            position += 1
            inside = True
            current = [line]

    if inside:
        log.warning("segmenter.malformed", position=position, lines=line_number)
        raise MalformedBundleError(position, line_number)


def read_blocks(path: Path) -> list[CertificateBlock]:
    """Read and segment a bundle file. May raise OSError or MalformedBundleError."""
    with path.open("r", encoding="utf-8", errors="replace") as handle:
        return list(iter_blocks(handle))


def segment_bundle(path: Path) -> Result[list[CertificateBlock]]:
    """
    Segment the bundle at `path` into its certificates.

    Returns Result.failure(INPUT_ERROR, ...) when the file cannot be read,
    Result.failure(MALFORMED_BUNDLE, ...) when a certificate is unterminated.
    """
    try:
        blocks = read_blocks(path)
    except MalformedBundleError as e:
        return Result.failure(ErrorCode.MALFORMED_BUNDLE, f"{path}: {e}", e)
    except OSError as e:
        return Result.failure(ErrorCode.INPUT_ERROR, f"{path}: {e.strerror or e}", e)

    log.debug("segmenter.complete", path=str(path), certificates=len(blocks))
    return Result.success(blocks)
