"""
Identity extractor — ParsedCertificate → UziIdentityRecord.

Domain layer — PURE BUSINESS LOGIC. No I/O; the certificate has already been
decoded by an adapter.

Two independent lookups, both required, then an atomic assembly:

  subject           → givenName, surname          (MissingNameError)
  subjectAltName    → first otherName IA5String   (NoUziDataError)
    IA5String       → 7 dash-separated fields     (IncorrectSanError)
  → UziIdentityRecord

Payload layout (UZI-register CPS, page 60):

  <OID CA>-<UZI version>-<UZI number>-<card type>-<subscriber number>-<role>-<AGB code>
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from uzi_reader.domain.errors import IncorrectSanError, MissingNameError, NoUziDataError
from uzi_reader.domain.models import (
    IA5_STRING,
    AltName,
    OtherName,
    ParsedCertificate,
    TypedValue,
    UziIdentityRecord,
)

log = structlog.get_logger()

DEFAULT_MAX_DEPTH = 16
PAYLOAD_SEPARATOR = "-"
MIN_PAYLOAD_SEGMENTS = 6


def extract_name(certificate: ParsedCertificate) -> tuple[str, str]:
    """Return (givenName, surname) from the subject; first match per name wins."""
    if not certificate.subject:
        raise MissingNameError("No subject rdnSequence")

    given_name = certificate.subject_value("givenName")
    surname = certificate.subject_value("surname")
    if given_name is None or surname is None:
        raise MissingNameError()
    return given_name, surname


def _search_other_name(node: OtherName, depth: int, max_depth: int) -> str | None:
    """Depth-first search for the first IA5String leaf below an otherName node."""
    if depth > max_depth:
        log.warning("extractor.max_depth_reached", max_depth=max_depth, type_id=node.type_id)
        return None

    for value in node.values:
        if isinstance(value, OtherName):
            found = _search_other_name(value, depth + 1, max_depth)
            if found is not None:
                return found
        elif isinstance(value, TypedValue) and value.type_name == IA5_STRING:
            return value.value
    return None


def find_uzi_payload(
    alt_names: Iterable[AltName],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> str | None:
    """
    Return the IA5String payload of the first otherName that carries one.

    Only otherName entries are searched; other GeneralName kinds are skipped.
    Returns None when no entry yields an IA5String.
    """
    for alt_name in alt_names:
        if not isinstance(alt_name, OtherName):
            continue
        found = _search_other_name(alt_name, 0, max_depth)
        if found is not None:
            return found
    return None


def parse_uzi_payload(payload: str, given_name: str, surname: str) -> UziIdentityRecord:
    """Split the dash-delimited payload into a record; values are kept verbatim."""
    data = payload.split(PAYLOAD_SEPARATOR)
    if len(data) < MIN_PAYLOAD_SEGMENTS:
        raise IncorrectSanError()

    return UziIdentityRecord(
        given_name=given_name,
        surname=surname,
        oid_ca=data[0],
        uzi_version=data[1],
        uzi_number=data[2],
        card_type=data[3],
        subscriber_number=data[4],
        role=data[5],
        agb_code=data[6] if len(data) > 6 else None,
    )


def extract_identity(
    certificate: ParsedCertificate,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> UziIdentityRecord:
    """
    Extract the UZI identity record from a decoded certificate.

    Raises MissingNameError, NoUziDataError or IncorrectSanError; no partial
    record is ever returned.
    """
    given_name, surname = extract_name(certificate)

    alt_names = certificate.subject_alt_names
    if alt_names is None:
        log.info("extractor.no_subject_alt_name")
        raise NoUziDataError()

    payload = find_uzi_payload(alt_names, max_depth=max_depth)
    if payload is None:
        log.info("extractor.no_uzi_data", alt_names=len(alt_names))
        raise NoUziDataError()

    return parse_uzi_payload(payload, given_name, surname)
