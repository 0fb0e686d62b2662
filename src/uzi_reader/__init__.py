"""
uzi_reader — UZI smartcard client-certificate reader.

Turns the client certificate forwarded by a TLS-terminating reverse proxy into
a structured UZI identity record (name, UZI number, card type, role, AGB code).
The proxy verifies the certificate; this package only extracts and structures
the identity it carries.

    from uzi_reader import authenticate

    record = authenticate(environ["SSL_CLIENT_VERIFY"], environ["SSL_CLIENT_CERT"])
    record.uzi_number
"""

from uzi_reader.domain.errors import (
    CertificateDecodeError,
    ClientCertError,
    IncorrectSanError,
    MissingNameError,
    NoUziDataError,
    ServerConfigError,
    UziErrorKind,
    UziException,
)
from uzi_reader.domain.models import UziIdentityRecord
from uzi_reader.pipeline import UziPassUser, authenticate, authenticate_environ

__version__ = "0.1.0"

__all__ = [
    "authenticate",
    "authenticate_environ",
    "UziPassUser",
    "UziIdentityRecord",
    "UziErrorKind",
    "UziException",
    "ServerConfigError",
    "ClientCertError",
    "MissingNameError",
    "NoUziDataError",
    "IncorrectSanError",
    "CertificateDecodeError",
]
