"""
Ports — Protocol-based interfaces for infrastructure adapters.

These define WHAT the pipeline needs (contracts) without specifying
HOW it's done (implementation). Following hexagonal architecture:

  Domain ← Ports (protocols) ← Adapters (implementations)

Each port is a Protocol (structural typing) so adapters satisfy
the contract simply by implementing the methods, no inheritance needed.
Tests substitute fakes returning deterministic reports.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from railway.result import Result

from cert_bundle.domain.models import BundleRewritePlan, CertificateBlock, RewriteStatus


@runtime_checkable
class CertificateDecoder(Protocol):
    """
    Port: turn one PEM certificate into the decoder's textual report.

    The report uses the `openssl x509 -text -noout` layout: an `Issuer:`
    line, a `Validity` header, `Not Before: ` and `Not After : ` lines and
    a `Subject:` line, each possibly indented.

    Returns Result.failure(DECODE_ERROR, ...) when the decoder is not
    available, rejects the input, or produces no output.
    """

    def decode(self, block: CertificateBlock) -> Result[str]: ...


@runtime_checkable
class BundleRewriter(Protocol):
    """
    Port: rewrite a bundle file without the certificates the mask removes.

    The implementation uses a BACKUP-THEN-REWRITE pattern:
      1. Refuse (BACKUP_EXISTS) or relax an existing backup file
      2. Rename the original to the backup path
      3. Write the kept certificates to a fresh file at the original path
      4. Make the backup read-only, mirror ownership/permissions on the new file
      5. On failure after step 2, rename the backup back
    """

    def rewrite(self, plan: BundleRewritePlan) -> Result[RewriteStatus]: ...
