"""
Ports — Protocol-based interfaces for infrastructure adapters.

The extraction pipeline needs exactly one collaborator: something that turns
raw certificate bytes into a ParsedCertificate. Adapters satisfy the port
structurally, by implementing `decode`, without inheriting from it.

  Domain ← Ports (protocols) ← Adapters (implementations)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from uzi_reader.domain.models import ParsedCertificate


@runtime_checkable
class CertificateDecoder(Protocol):
    """
    Port: decode a PEM/DER X.509 certificate into a ParsedCertificate.

    The implementation handles:
      1. PEM vs DER detection and X.509 structural parsing
      2. Subject attribute naming (OID → givenName, surname, ...)
      3. subjectAltName conversion into AltName nodes, including the
         nested ASN.1 content of otherName values

    Raises CertificateDecodeError on malformed input.
    """

    def decode(self, raw: bytes) -> ParsedCertificate: ...
