"""
Shared test fixtures and helpers for the cert-bundle test suite.

Certificates are generated at test time with cryptography so their
validity windows can be placed relative to the current time. Tests that
only need segmentation use `fake_pem`, which has PEM armor around an
arbitrary body and is never decoded.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import structlog
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from cert_bundle.domain.models import BEGIN_MARKER, END_MARKER, CertificateBlock

NOW = datetime(2030, 6, 15, 12, 0, 0, tzinfo=UTC)


def _name(organization: str | None, common_name: str | None) -> x509.Name:
    attributes = [x509.NameAttribute(NameOID.COUNTRY_NAME, "US")]
    if organization:
        attributes.append(x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization))
    if common_name:
        attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    return x509.Name(attributes)


def make_pem(
    common_name: str = "Example Leaf",
    organization: str | None = "Example Corp",
    issuer_common_name: str = "Example Root",
    issuer_organization: str | None = "Example Trust",
    not_before: datetime | None = None,
    not_after: datetime | None = None,
) -> str:
    """Build a PEM certificate with the given names and validity window."""
    now = datetime.now(UTC)
    key = ec.generate_private_key(ec.SECP256R1())
    cert = (
        x509.CertificateBuilder()
        .subject_name(_name(organization, common_name))
        .issuer_name(_name(issuer_organization, issuer_common_name))
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before or now - timedelta(days=30))
        .not_valid_after(not_after or now + timedelta(days=365))
        .sign(key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.PEM).decode("ascii")


def fake_pem(tag: str) -> str:
    """PEM armor around a body that identifies the certificate in assertions."""
    return f"{BEGIN_MARKER}\nMIIB{tag}AAAA\n{tag}BBBBCCCC\n{END_MARKER}\n"


def block(position: int, tag: str | None = None) -> CertificateBlock:
    return CertificateBlock(position=position, text=fake_pem(tag or f"cert{position}"))


def openssl_report(
    issuer: str = "C = US, O = Example Trust, CN = Example Root",
    subject: str = "C = US, O = Example Corp, CN = Example Leaf",
    not_before: str = "Jan  1 00:00:00 2030 GMT",
    not_after: str = "Jan  1 00:00:00 2031 GMT",
) -> str:
    """A decoder report in the openssl x509 -text layout."""
    return (
        "Certificate:\n"
        "    Data:\n"
        "        Version: 3 (0x2)\n"
        "        Serial Number: 0x1f\n"
        f"        Issuer: {issuer}\n"
        "        Validity\n"
        f"            Not Before: {not_before}\n"
        f"            Not After : {not_after}\n"
        f"        Subject: {subject}\n"
        "        Subject Public Key Info:\n"
        "            Public Key Algorithm: id-ecPublicKey\n"
    )


@pytest.fixture()
def write_bundle(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper writing PEM strings to a bundle file, one blank line apart."""

    def _write(pems: Sequence[str], name: str = "bundle.pem", mode: int = 0o644) -> Path:
        path = tmp_path / name
        path.write_text("\n".join(pems), encoding="utf-8")
        path.chmod(mode)
        return path

    return _write


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Drop logger configuration bound to a test's captured stderr."""
    yield
    structlog.reset_defaults()
