"""
Error taxonomy — the closed set of ways a UZI authentication attempt can fail.

Every failure is terminal and non-retryable: it points at malformed input or a
misconfigured front end, never at a transient condition.

Each exception class carries a UziErrorKind so callers can branch on the kind
(or on the class) instead of matching message text:

    try:
        record = authenticate(verify, cert)
    except UziException as exc:
        if exc.kind is UziErrorKind.CONFIGURATION_ERROR:
            ...

The default messages are the ones the UZI reader libraries have always used,
so log searches and existing client code keep working.
"""

from __future__ import annotations

from enum import Enum, unique
from typing import ClassVar


@unique
class UziErrorKind(Enum):
    """Structured failure kinds, one per exception class."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """The front end did not perform or did not forward a client-cert check."""

    CLIENT_CERT_ERROR = "CLIENT_CERT_ERROR"
    """Verification passed but no usable certificate was forwarded."""

    MISSING_NAME = "MISSING_NAME"
    """The subject lacks givenName and/or surname."""

    NO_ALT_NAME_DATA = "NO_ALT_NAME_DATA"
    """No otherName/IA5String payload anywhere in subjectAltName."""

    MALFORMED_SAN = "MALFORMED_SAN"
    """The IA5String payload has fewer than 6 dash-separated segments."""

    DECODE_ERROR = "DECODE_ERROR"
    """The certificate bytes could not be decoded."""


class UziException(Exception):
    """Base exception for all UZI reader failures."""

    kind: ClassVar[UziErrorKind]
    default_message: ClassVar[str] = "UZI authentication failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message if message is not None else self.default_message
        super().__init__(self.message)


class ServerConfigError(UziException):
    """The web server did not pass a successful client-certificate check."""

    kind = UziErrorKind.CONFIGURATION_ERROR
    default_message = "Webserver client cert check not passed"


class ClientCertError(UziException):
    """The client did not present a certificate."""

    kind = UziErrorKind.CLIENT_CERT_ERROR
    default_message = "No client certificate presented"


class MissingNameError(UziException):
    kind = UziErrorKind.MISSING_NAME
    default_message = "No surname / givenName found"


class NoUziDataError(UziException):
    kind = UziErrorKind.NO_ALT_NAME_DATA
    default_message = "No valid UZI data found"


class IncorrectSanError(UziException):
    kind = UziErrorKind.MALFORMED_SAN
    default_message = "Incorrect SAN found"


class CertificateDecodeError(UziException, ValueError):
    """
    The raw certificate is not a decodable X.509 certificate.

    Also a ValueError, the type cryptography and asn1crypto raise, so callers
    that already catch decode errors from those libraries keep working. The
    library exception is preserved as __cause__.
    """

    kind = UziErrorKind.DECODE_ERROR
    default_message = "Client certificate could not be decoded"
