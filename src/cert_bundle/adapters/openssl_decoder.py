"""
OpenSSL decoder adapter — `openssl x509 -text -noout` per certificate.

Adapter layer — implements the CertificateDecoder port by writing each
block to its own temporary file and running the openssl CLI against it.

Temporary files:
  - named `cert-bundle-<pid>-<random>.pem` in the configured directory
  - created exclusively with mode 0600
  - removed after the decoder returns, whether it succeeded or not

The call blocks until openssl exits; there is no timeout.
"""

from __future__ import annotations

import os
import subprocess
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog
from railway import ErrorCode
from railway.result import Result

from cert_bundle.domain.models import CertificateBlock

log = structlog.get_logger()


@contextmanager
def scoped_pem_file(block: CertificateBlock, directory: Path | None = None) -> Iterator[Path]:
    """Write `block` to a private temporary file and remove it on exit."""
    fd, name = tempfile.mkstemp(
        prefix=f"cert-bundle-{os.getpid()}-",
        suffix=".pem",
        dir=directory,
    )
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(block.text)
        yield path
    finally:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            log.warning("decoder.temp_cleanup_failed", path=str(path), error=str(e))


class OpensslCertificateDecoder:
    """
    Decode certificates with the openssl command-line tool.

    Implements the CertificateDecoder port.
    A missing binary, a non-zero exit status or empty output is a
    Result.failure(DECODE_ERROR, ...), never an exception.
    """

    def __init__(self, binary: str = "openssl", temp_dir: Path | None = None) -> None:
        self._binary = binary
        self._temp_dir = temp_dir

    def decode(self, block: CertificateBlock) -> Result[str]:
        """Return the openssl text report for `block`."""
        return Result.from_computation(
            lambda: self._run(block),
            ErrorCode.DECODE_ERROR,
            f"Cannot decode certificate {block.position}",
        ).flat_map(lambda completed: self._check(block, completed))

    def _run(self, block: CertificateBlock) -> subprocess.CompletedProcess[str]:
        with scoped_pem_file(block, self._temp_dir) as pem_path:
            return subprocess.run(  # noqa: S603
                [self._binary, "x509", "-in", str(pem_path), "-text", "-noout"],
                capture_output=True,
                text=True,
                check=False,
            )

    def _check(
        self,
        block: CertificateBlock,
        completed: subprocess.CompletedProcess[str],
    ) -> Result[str]:
        if completed.returncode != 0:
            log.debug(
                "decoder.openssl_exit",
                position=block.position,
                returncode=completed.returncode,
                stderr=completed.stderr.strip(),
            )
            return Result.failure(
                ErrorCode.DECODE_ERROR,
                f"openssl rejected certificate {block.position} "
                f"(exit status {completed.returncode})",
            )
        if not completed.stdout.strip():
            return Result.failure(
                ErrorCode.DECODE_ERROR,
                f"openssl produced no output for certificate {block.position}",
            )
        return Result.success(completed.stdout)
