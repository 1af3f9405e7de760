"""Self-signed certificates for development and testing."""

from __future__ import annotations

from datetime import datetime, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
)
from cryptography.x509.oid import NameOID

_HOSTNAME = "localhost"
_COMMON_NAME = "self signed cert"


def _build_certificate(not_before: datetime, not_after: datetime) -> tuple[bytes, bytes]:
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, _COMMON_NAME)])
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(
            x509.SubjectAlternativeName([x509.DNSName(_HOSTNAME)]), critical=False
        )
        .sign(key, hashes.SHA256())
    )
    key_der = key.private_bytes(Encoding.DER, PrivateFormat.PKCS8, NoEncryption())
    return certificate.public_bytes(Encoding.DER), key_der


def generate_self_signed_cert() -> tuple[bytes, bytes]:
    """Return a DER certificate for localhost and its PKCS#8 DER private key."""
    return _build_certificate(
        datetime(1975, 1, 1, tzinfo=timezone.utc),
        datetime(4096, 1, 1, tzinfo=timezone.utc),
    )


def generate_test_certificates() -> tuple[list[bytes], bytes]:
    """Return a one-element certificate chain for tests and its private key (DER)."""
    cert_der, key_der = _build_certificate(
        datetime(2023, 1, 1, tzinfo=timezone.utc),
        datetime(2026, 1, 1, tzinfo=timezone.utc),
    )
    return [cert_der], key_der