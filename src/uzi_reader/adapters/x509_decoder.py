"""
X.509 decoder adapter — client certificate → ParsedCertificate.

Adapter layer — implements the CertificateDecoder port using:
  - cryptography (PyCA): PEM/DER loading, subject attributes, extensions and
    the GeneralName entries of subjectAltName
  - asn1crypto: walking the raw ASN.1 content of otherName values, which
    cryptography hands back as undecoded DER

Pipeline:
  raw PEM/DER bytes
    → cryptography: load_pem/der_x509_certificate()
    → subject: NameAttribute → SubjectAttribute (explicit OID → name table)
    → subjectAltName: GeneralName → AltName nodes
        otherName value (DER) → asn1crypto.parser TLV walk
          constructed values → nested OtherName
          universal primitives → TypedValue via asn1crypto.core
    → ParsedCertificate (domain model)

A UZI card certificate carries its payload as:

  otherName ::= SEQUENCE {
      type-id    OBJECT IDENTIFIER,            -- 2.5.5.5
      value  [0] EXPLICIT IA5String            -- "<OID CA>-<version>-..."
  }

Some issuers wrap the IA5String in a further otherName-shaped SEQUENCE; the
TLV walk keeps that nesting so the extractor can search it.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import structlog
from asn1crypto import core, parser
from cryptography import x509
from cryptography.x509.oid import ExtensionOID, NameOID

from uzi_reader.domain.errors import CertificateDecodeError
from uzi_reader.domain.models import (
    SUBJECT_ALT_NAME,
    AltName,
    GeneralName,
    OtherName,
    ParsedCertificate,
    SubjectAttribute,
    TypedValue,
)

log = structlog.get_logger()

_PEM_MARKER = b"-----BEGIN"

# Nested values below this depth are kept as empty OtherName nodes, so a
# hostile otherName cannot exhaust the interpreter stack.
_MAX_NESTING = 64

# ─────────────────────── Name tables ───────────────────────

_SUBJECT_ATTRIBUTE_NAMES: dict[x509.ObjectIdentifier, str] = {
    NameOID.COMMON_NAME: "commonName",
    NameOID.GIVEN_NAME: "givenName",
    NameOID.SURNAME: "surname",
    NameOID.TITLE: "title",
    NameOID.SERIAL_NUMBER: "serialNumber",
    NameOID.COUNTRY_NAME: "countryName",
    NameOID.STATE_OR_PROVINCE_NAME: "stateOrProvinceName",
    NameOID.LOCALITY_NAME: "localityName",
    NameOID.ORGANIZATION_NAME: "organizationName",
    NameOID.ORGANIZATIONAL_UNIT_NAME: "organizationalUnitName",
    NameOID.EMAIL_ADDRESS: "emailAddress",
}

_EXTENSION_NAMES: dict[x509.ObjectIdentifier, str] = {
    ExtensionOID.SUBJECT_ALTERNATIVE_NAME: SUBJECT_ALT_NAME,
    ExtensionOID.BASIC_CONSTRAINTS: "basicConstraints",
    ExtensionOID.KEY_USAGE: "keyUsage",
    ExtensionOID.EXTENDED_KEY_USAGE: "extKeyUsage",
    ExtensionOID.CERTIFICATE_POLICIES: "certificatePolicies",
    ExtensionOID.SUBJECT_KEY_IDENTIFIER: "subjectKeyIdentifier",
    ExtensionOID.AUTHORITY_KEY_IDENTIFIER: "authorityKeyIdentifier",
    ExtensionOID.CRL_DISTRIBUTION_POINTS: "cRLDistributionPoints",
    ExtensionOID.AUTHORITY_INFORMATION_ACCESS: "authorityInfoAccess",
}

_GENERAL_NAME_KINDS: dict[type, str] = {
    x509.RFC822Name: "rfc822Name",
    x509.DNSName: "dNSName",
    x509.UniformResourceIdentifier: "uniformResourceIdentifier",
    x509.DirectoryName: "directoryName",
    x509.IPAddress: "iPAddress",
    x509.RegisteredID: "registeredID",
}

# ─────────────────────── ASN.1 leaf types ───────────────────────

_UNIVERSAL = 0
_CONSTRUCTED = 1
_TAG_CLASSES = {0: "UNIVERSAL", 1: "APPLICATION", 2: "CONTEXT", 3: "PRIVATE"}

_UNIVERSAL_LEAF_TYPES: dict[int, type[core.Asn1Value]] = {
    1: core.Boolean,
    2: core.Integer,
    4: core.OctetString,
    6: core.ObjectIdentifier,
    12: core.UTF8String,
    19: core.PrintableString,
    20: core.TeletexString,
    22: core.IA5String,
    26: core.VisibleString,
    30: core.BMPString,
}


# ─────────────────────── otherName value walk ───────────────────────


def _split_children(contents: bytes) -> Iterator[bytes]:
    """Yield each complete TLV encoded back to back in `contents`."""
    offset = 0
    while offset < len(contents):
        length = parser.peek(contents[offset:])
        yield contents[offset : offset + length]
        offset += length


def _decode_leaf(class_: int, tag: int, encoded: bytes, contents: bytes) -> TypedValue:
    """Decode a primitive TLV into a TypedValue named after its ASN.1 type."""
    leaf_type = _UNIVERSAL_LEAF_TYPES.get(tag) if class_ == _UNIVERSAL else None
    if leaf_type is None:
        return TypedValue(type_name=f"[{_TAG_CLASSES[class_]} {tag}]", value=contents.hex())

    value = leaf_type.load(encoded)
    if isinstance(value, core.ObjectIdentifier):
        text = value.dotted
    elif isinstance(value, core.OctetString):
        text = value.native.hex()
    else:
        text = str(value.native)
    return TypedValue(type_name=leaf_type.__name__, value=text)


def _decode_value(encoded: bytes, depth: int = 0) -> AltName:
    """
    Convert one DER-encoded value into an AltName node.

    Constructed values (SEQUENCE, SET, explicit tags) become OtherName nodes
    whose `type_id` is taken from a leading OBJECT IDENTIFIER, if any.
    """
    class_, method, tag, _header, contents, _trailer = parser.parse(encoded)
    if method != _CONSTRUCTED:
        return _decode_leaf(class_, tag, encoded, contents)

    if depth >= _MAX_NESTING:
        log.warning("decoder.nesting_truncated", depth=depth)
        return OtherName(type_id=None)

    values = tuple(_decode_value(child, depth + 1) for child in _split_children(contents))
    type_id = None
    if values and isinstance(values[0], TypedValue) and values[0].type_name == "ObjectIdentifier":
        type_id = values[0].value
    return OtherName(type_id=type_id, values=values)


# ─────────────────────── Certificate conversion ───────────────────────


def _convert_general_name(name: x509.GeneralName) -> AltName:
    """Convert one cryptography GeneralName into an AltName node."""
    if isinstance(name, x509.OtherName):
        return OtherName(
            type_id=name.type_id.dotted_string,
            values=(_decode_value(name.value),),
        )

    value = name.value
    if isinstance(value, x509.Name):
        text = value.rfc4514_string()
    elif isinstance(value, x509.ObjectIdentifier):
        text = value.dotted_string
    else:
        text = str(value)
    return GeneralName(kind=_GENERAL_NAME_KINDS.get(type(name), type(name).__name__), value=text)


def _extract_subject(cert: x509.Certificate) -> tuple[SubjectAttribute, ...]:
    """Flatten the subject RDNs into named attributes, preserving order."""
    attributes = []
    for attribute in cert.subject:
        name = _SUBJECT_ATTRIBUTE_NAMES.get(attribute.oid, attribute.oid.dotted_string)
        value = attribute.value
        if isinstance(value, bytes):
            value = value.hex()
        attributes.append(SubjectAttribute(name=name, value=value))
    return tuple(attributes)


def _extract_extensions(cert: x509.Certificate) -> dict[str, Any]:
    """Map extension names to decoded values; subjectAltName becomes AltName nodes."""
    extensions: dict[str, Any] = {}
    for extension in cert.extensions:
        name = _EXTENSION_NAMES.get(extension.oid, extension.oid.dotted_string)
        if isinstance(extension.value, x509.SubjectAlternativeName):
            extensions[name] = tuple(_convert_general_name(entry) for entry in extension.value)
        else:
            extensions[name] = extension.value
    return extensions


def _load_certificate(raw: bytes) -> x509.Certificate:
    if _PEM_MARKER in raw:
        return x509.load_pem_x509_certificate(raw)
    return x509.load_der_x509_certificate(raw)


# ─────────────────────── Public Decoder Class ───────────────────────


class X509CertificateDecoder:
    """
    Decode PEM/DER client certificates into a ParsedCertificate.

    Implements the CertificateDecoder port. Stateless, so one instance can
    serve concurrent requests.
    """

    def decode(self, raw: bytes) -> ParsedCertificate:
        """
        Decode raw certificate bytes.

        Raises CertificateDecodeError (a ValueError) when cryptography or
        asn1crypto reject the input, including repeated extensions and
        unsupported SAN entry types; the library error is chained as the cause.
        """
        try:
            cert = _load_certificate(raw)
            parsed = ParsedCertificate(
                subject=_extract_subject(cert),
                extensions=_extract_extensions(cert),
            )
        except (ValueError, x509.DuplicateExtension, x509.UnsupportedGeneralNameType) as e:
            log.warning("decoder.malformed_certificate", error=str(e))
            raise CertificateDecodeError(f"Client certificate could not be decoded: {e}") from e

        log.debug(
            "decoder.complete",
            subject_attributes=len(parsed.subject),
            extensions=len(parsed.extensions),
        )
        return parsed
