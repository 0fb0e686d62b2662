"""
Domain models — immutable data structures for decoded certificates and UZI records.

The decoded certificate view (ParsedCertificate + AltName nodes) is transient:
it lives only while one authentication attempt is extracted. UziIdentityRecord
is the single durable result handed back to the caller.

All models are frozen dataclasses (immutable) following functional principles.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

SUBJECT_ALT_NAME = "subjectAltName"
IA5_STRING = "IA5String"


# ─────────────────────── subjectAltName tree ───────────────────────


@dataclass(frozen=True, slots=True)
class TypedValue:
    """Leaf of an otherName tree: an ASN.1 type name and its string payload."""

    type_name: str
    value: str


@dataclass(frozen=True, slots=True)
class OtherName:
    """
    An otherName entry, or an otherName-shaped structure nested inside one.

    `type_id` is the dotted OID the structure carries (UZI cards use 2.5.5.5),
    or None for anonymous constructed values. `values` holds the nested nodes
    in encoding order.
    """

    type_id: str | None
    values: tuple[AltName, ...] = ()


@dataclass(frozen=True, slots=True)
class GeneralName:
    """Any other GeneralName kind (dNSName, rfc822Name, ...) — not used for UZI data."""

    kind: str
    value: str


AltName = OtherName | TypedValue | GeneralName


# ─────────────────────── Decoded certificate ───────────────────────


@dataclass(frozen=True, slots=True)
class SubjectAttribute:
    """One subject RDN attribute, by X.500 short name (givenName, surname, ...)."""

    name: str
    value: str


@dataclass(frozen=True, slots=True)
class ParsedCertificate:
    """
    Structural view of a client certificate, as produced by a CertificateDecoder.

    `subject` keeps the decoder's attribute order (duplicates included).
    `extensions` maps extension names to decoded values; `subjectAltName`
    maps to a tuple of AltName nodes.
    """

    subject: tuple[SubjectAttribute, ...] = ()
    extensions: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "extensions", MappingProxyType(dict(self.extensions)))

    def subject_value(self, name: str) -> str | None:
        """Return the first subject attribute value with this name, or None."""
        for attribute in self.subject:
            if attribute.name == name:
                return attribute.value
        return None

    @property
    def subject_alt_names(self) -> tuple[AltName, ...] | None:
        """The subjectAltName entries, or None when the extension is absent."""
        return self.extensions.get(SUBJECT_ALT_NAME)


# ─────────────────────── Extraction result ───────────────────────


@dataclass(frozen=True, slots=True)
class UziIdentityRecord:
    """
    A UZI card holder's identity, extracted from one client certificate.

    Field order follows the UZI-register SAN layout (CPS, page 60):

      [0] OID CA  [1] UZI version  [2] UZI number  [3] card type
      [4] subscriber number  [5] role (CPS, page 89)  [6] AGB code

    All values are stored verbatim. `agb_code` is None when the card's
    payload carries only six segments.
    """

    given_name: str
    surname: str
    oid_ca: str
    uzi_version: str
    uzi_number: str
    card_type: str
    subscriber_number: str
    role: str
    agb_code: str | None = None

    def as_dict(self) -> dict[str, str | None]:
        """Return the record keyed by the UZI register's attribute names."""
        return {
            "givenName": self.given_name,
            "surName": self.surname,
            "OidCa": self.oid_ca,
            "UziVersion": self.uzi_version,
            "UziNumber": self.uzi_number,
            "CardType": self.card_type,
            "SubscriberNumber": self.subscriber_number,
            "Role": self.role,
            "AgbCode": self.agb_code,
        }
