"""
Shared test fixtures and helpers for the uzi-reader test suite.

Builds throwaway self-signed client certificates shaped like UZI card
certificates: a subject with givenName/surname and a subjectAltName whose
otherName carries the dash-delimited UZI payload as an IA5String.

The helpers mirror the UZI reader mock certificates:
  001 no UZI data          002 otherName without IA5String
  003 unparseable value    004 IA5String nested one level deeper
  005/006 too few fields   011 valid card    012 valid admin card
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from asn1crypto import core, parser
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

OID_UZI_IA5STRING = "2.5.5.5"
OID_MS_UPN = "1.3.6.1.4.1.311.20.2.3"

UZI_PAYLOAD = "2.16.528.1.1003.1.3.5.5.2-1-12345678-N-90000111-30.015-00000000"
UZI_ADMIN_PAYLOAD = "2.16.528.1.1003.1.3.5.5.2-1-11111111-N-90000111-01.015-00000000"

# ASN.1 identifier octet parts for asn1crypto.parser.emit
_UNIVERSAL, _CONTEXT = 0, 2
_CONSTRUCTED = 1
_SEQUENCE = 16


def uzi_subject(given_name: str = "john", surname: str = "doe-12345678") -> list[x509.NameAttribute]:
    """Return a UZI-style subject: C, O, CN, givenName, surname, serialNumber, title."""
    return [
        x509.NameAttribute(NameOID.COUNTRY_NAME, "NL"),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Test Zorginstelling"),
        x509.NameAttribute(NameOID.COMMON_NAME, f"{given_name} {surname}"),
        x509.NameAttribute(NameOID.GIVEN_NAME, given_name),
        x509.NameAttribute(NameOID.SURNAME, surname),
        x509.NameAttribute(NameOID.SERIAL_NUMBER, "12345678"),
        x509.NameAttribute(NameOID.TITLE, "30.015"),
    ]


def ia5_other_name(payload: str, type_id: str = OID_UZI_IA5STRING) -> x509.OtherName:
    """otherName whose [0] EXPLICIT value is the IA5String payload."""
    return x509.OtherName(x509.ObjectIdentifier(type_id), core.IA5String(payload).dump())


def nested_other_name(payload: str, type_id: str = OID_UZI_IA5STRING) -> x509.OtherName:
    """
    otherName whose value is itself otherName-shaped:

      SEQUENCE { OBJECT IDENTIFIER type_id, [0] EXPLICIT IA5String payload }
    """
    explicit_value = parser.emit(_CONTEXT, _CONSTRUCTED, 0, core.IA5String(payload).dump())
    inner = parser.emit(
        _UNIVERSAL,
        _CONSTRUCTED,
        _SEQUENCE,
        core.ObjectIdentifier(type_id).dump() + explicit_value,
    )
    return x509.OtherName(x509.ObjectIdentifier(type_id), inner)


def utf8_other_name(value: str, type_id: str = OID_MS_UPN) -> x509.OtherName:
    """otherName carrying a UTF8String, as the Microsoft UPN entry does."""
    return x509.OtherName(x509.ObjectIdentifier(type_id), core.UTF8String(value).dump())


def build_certificate(
    subject: list[x509.NameAttribute] | None = None,
    alt_names: list[x509.GeneralName] | None = None,
) -> x509.Certificate:
    """
    Build a self-signed certificate with the given subject and subjectAltName.

    `alt_names=None` omits the subjectAltName extension entirely.
    """
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name(uzi_subject() if subject is None else subject)
    now = datetime.now(UTC)
    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "TEST UZI-register CA")]))
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
    )
    if alt_names is not None:
        builder = builder.add_extension(x509.SubjectAlternativeName(alt_names), critical=False)
    return builder.sign(key, hashes.SHA256())


def to_pem(cert: x509.Certificate) -> bytes:
    return cert.public_bytes(serialization.Encoding.PEM)


def to_der(cert: x509.Certificate) -> bytes:
    return cert.public_bytes(serialization.Encoding.DER)


def uzi_certificate_pem(payload: str = UZI_PAYLOAD) -> bytes:
    """PEM of a valid UZI card certificate carrying `payload`."""
    return to_pem(
        build_certificate(
            alt_names=[utf8_other_name("12345678@uzi.test"), ia5_other_name(payload)],
        )
    )


@pytest.fixture()
def valid_pem() -> bytes:
    """Mock 011: valid UZI card certificate (PEM)."""
    return uzi_certificate_pem()


@pytest.fixture()
def admin_pem() -> bytes:
    """Mock 012: valid UZI administrative card certificate (PEM)."""
    return to_pem(
        build_certificate(
            subject=uzi_subject(surname="doe-11111111"),
            alt_names=[ia5_other_name(UZI_ADMIN_PAYLOAD)],
        )
    )
