"""
In-process decoder adapter — PyCA cryptography rendering openssl's layout.

Adapter layer — implements the CertificateDecoder port without spawning a
process. The report reproduces the parts of `openssl x509 -text -noout`
that the decoder adapter reads:

    Certificate:
        Data:
            Version: 3 (0x2)
            Serial Number: 0x...
            Signature Algorithm: sha256WithRSAEncryption
            Issuer: C = US, O = Example, CN = Example Root
            Validity
                Not Before: Jan  1 00:00:00 2024 GMT
                Not After : Jan  1 00:00:00 2034 GMT
            Subject: C = US, O = Example, CN = Example Leaf

Names follow openssl's default `-nameopt oneline`:
  - most-significant component first, `KEY = value`, multi-valued RDNs
    joined with ` + `
  - openssl short names for the attribute types (`emailAddress`, `SN`,
    `serialNumber`, ...); unknown types as dotted OIDs
  - bytes above 0x7E and control characters as `\\XX` hex escapes of
    their UTF-8 encoding (`Café` → `Caf\\C3\\A9`)
  - values containing `, + < > ;` or with a leading `#`/space or
    trailing space are double-quoted; `"` and `\\` are backslash-escaped

so selection by issuer or subject sees the same text with either decoder.
"""

from __future__ import annotations

from datetime import datetime

from cryptography import x509
from cryptography.x509.oid import NameOID, ObjectIdentifier, SignatureAlgorithmOID
from railway import ErrorCode
from railway.result import Result

from cert_bundle.domain.models import CertificateBlock

# Types whose RFC 4514 keyword differs from openssl's short name, or
# that have no RFC 4514 keyword at all.
_OPENSSL_SHORT_NAMES: dict[ObjectIdentifier, str] = {
    NameOID.EMAIL_ADDRESS: "emailAddress",
    NameOID.SERIAL_NUMBER: "serialNumber",
    NameOID.SURNAME: "SN",
    NameOID.GIVEN_NAME: "GN",
    NameOID.TITLE: "title",
    NameOID.GENERATION_QUALIFIER: "generationQualifier",
    NameOID.DN_QUALIFIER: "dnQualifier",
    NameOID.PSEUDONYM: "pseudonym",
    NameOID.STREET_ADDRESS: "street",
    NameOID.POSTAL_CODE: "postalCode",
    NameOID.BUSINESS_CATEGORY: "businessCategory",
    NameOID.JURISDICTION_COUNTRY_NAME: "jurisdictionC",
    NameOID.JURISDICTION_STATE_OR_PROVINCE_NAME: "jurisdictionST",
    NameOID.JURISDICTION_LOCALITY_NAME: "jurisdictionL",
    NameOID.ORGANIZATION_IDENTIFIER: "organizationIdentifier",
}

_SIGNATURE_ALGORITHMS: dict[ObjectIdentifier, str] = {
    SignatureAlgorithmOID.RSA_WITH_MD5: "md5WithRSAEncryption",
    SignatureAlgorithmOID.RSA_WITH_SHA1: "sha1WithRSAEncryption",
    SignatureAlgorithmOID.RSA_WITH_SHA224: "sha224WithRSAEncryption",
    SignatureAlgorithmOID.RSA_WITH_SHA256: "sha256WithRSAEncryption",
    SignatureAlgorithmOID.RSA_WITH_SHA384: "sha384WithRSAEncryption",
    SignatureAlgorithmOID.RSA_WITH_SHA512: "sha512WithRSAEncryption",
    SignatureAlgorithmOID.RSASSA_PSS: "rsassaPss",
    SignatureAlgorithmOID.ECDSA_WITH_SHA1: "ecdsa-with-SHA1",
    SignatureAlgorithmOID.ECDSA_WITH_SHA224: "ecdsa-with-SHA224",
    SignatureAlgorithmOID.ECDSA_WITH_SHA256: "ecdsa-with-SHA256",
    SignatureAlgorithmOID.ECDSA_WITH_SHA384: "ecdsa-with-SHA384",
    SignatureAlgorithmOID.ECDSA_WITH_SHA512: "ecdsa-with-SHA512",
    SignatureAlgorithmOID.DSA_WITH_SHA1: "dsaWithSHA1",
    SignatureAlgorithmOID.DSA_WITH_SHA256: "dsa_with_SHA256",
    SignatureAlgorithmOID.ED25519: "ED25519",
    SignatureAlgorithmOID.ED448: "ED448",
}

_QUOTE_TRIGGERS = frozenset(",+<>;")


def _attribute_key(attribute: x509.NameAttribute) -> str:
    return _OPENSSL_SHORT_NAMES.get(attribute.oid) or attribute.rfc4514_attribute_name


def escape_value(value: str | bytes) -> str:
    """Escape an attribute value the way openssl's oneline name format does."""
    if isinstance(value, bytes):
        return "#" + value.hex().upper()
    parts: list[str] = []
    quote = bool(value) and (value[0] in "# " or value[-1] == " ")
    for char in value:
        code = ord(char)
        if code < 0x20 or code > 0x7E:
            parts.extend(f"\\{byte:02X}" for byte in char.encode("utf-8"))
        elif char in '"\\':
            parts.append("\\" + char)
        else:
            quote = quote or char in _QUOTE_TRIGGERS
            parts.append(char)
    text = "".join(parts)
    return f'"{text}"' if quote else text


def format_name(name: x509.Name) -> str:
    """Render a Name the way openssl's default -nameopt does."""
    return ", ".join(
        " + ".join(
            f"{_attribute_key(attribute)} = {escape_value(attribute.value)}"
            for attribute in rdn
        )
        for rdn in name.rdns
    )


def format_time(moment: datetime) -> str:
    """Render a UTC timestamp as openssl does: 'Jan  1 00:00:00 2024 GMT'."""
    return f"{moment:%b} {moment.day:2d} {moment:%H:%M:%S %Y} GMT"


def _signature_algorithm(cert: x509.Certificate) -> str:
    oid = cert.signature_algorithm_oid
    return _SIGNATURE_ALGORITHMS.get(oid, oid.dotted_string)


def render_report(cert: x509.Certificate) -> str:
    """Render the openssl-style text report for one certificate."""
    lines = [
        "Certificate:",
        "    Data:",
        f"        Version: {cert.version.value + 1} ({cert.version.value:#x})",
        f"        Serial Number: {cert.serial_number:#x}",
        f"        Signature Algorithm: {_signature_algorithm(cert)}",
        f"        Issuer: {format_name(cert.issuer)}",
        "        Validity",
        f"            Not Before: {format_time(cert.not_valid_before_utc)}",
        f"            Not After : {format_time(cert.not_valid_after_utc)}",
        f"        Subject: {format_name(cert.subject)}",
    ]
    return "\n".join(lines) + "\n"


class CryptographyCertificateDecoder:
    """
    Decode certificates in-process with the cryptography library.

    Implements the CertificateDecoder port.
    Malformed PEM is a Result.failure(DECODE_ERROR, ...).
    """

    def decode(self, block: CertificateBlock) -> Result[str]:
        """Return an openssl-layout text report for `block`."""
        return Result.from_computation(
            lambda: render_report(x509.load_pem_x509_certificate(block.text.encode("utf-8"))),
            ErrorCode.DECODE_ERROR,
            f"Cannot decode certificate {block.position}",
        )
