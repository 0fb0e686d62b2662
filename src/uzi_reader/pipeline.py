"""
Pipeline — verification gate, decoding and extraction, in that order.

  verify_client(verify, cert)        → raw bytes        (ServerConfigError / ClientCertError)
    → decoder.decode(raw)            → ParsedCertificate (CertificateDecodeError)
      → extract_identity(parsed)     → UziIdentityRecord (MissingNameError / NoUziDataError /
                                                          IncorrectSanError)

Each stage raises a UziException subclass; the first failure aborts the attempt
and nothing partial reaches the caller. Callers (the web-server integration,
the ASGI handler, the CLI) all branch on the exception kind, so the stages
raise directly rather than returning Result values to be unwrapped again here.

The pipeline is synchronous and holds no state between calls, so concurrent
requests need no coordination.

The decoder is injected via the CertificateDecoder port; X509CertificateDecoder
is the default.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from uzi_reader.adapters.x509_decoder import X509CertificateDecoder
from uzi_reader.domain.errors import ClientCertError, ServerConfigError, UziException
from uzi_reader.domain.models import UziIdentityRecord
from uzi_reader.domain.ports import CertificateDecoder
from uzi_reader.extractor import DEFAULT_MAX_DEPTH, extract_identity

log = structlog.get_logger()

VERIFY_SUCCESS = "SUCCESS"

# Variable names set by Apache mod_ssl (SSLOptions +ExportCertData) and
# nginx fastcgi_params.
ENV_CLIENT_VERIFY = "SSL_CLIENT_VERIFY"
ENV_CLIENT_CERT = "SSL_CLIENT_CERT"

_default_decoder = X509CertificateDecoder()


def verify_client(verify: str | None, cert: Any) -> bytes:
    """
    Check the front end's verification signal and the forwarded certificate.

    Only the exact value "SUCCESS" passes. The certificate must be a non-blank
    str or bytes-like object; it is returned as bytes, never inspected further.
    """
    if verify != VERIFY_SUCCESS:
        raise ServerConfigError()

    if isinstance(cert, str):
        raw = cert.encode("utf-8")
    elif isinstance(cert, (bytes, bytearray, memoryview)):
        raw = bytes(cert)
    else:
        raise ClientCertError()

    if not raw.strip():
        raise ClientCertError()
    return raw


def authenticate(
    verify: str | None,
    cert: Any,
    *,
    decoder: CertificateDecoder | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> UziIdentityRecord:
    """
    Authenticate a UZI card holder from the front end's client-cert variables.

    Flow:
      1. Verification gate (signal must be "SUCCESS", cert must be present)
      2. Decode the certificate (PEM or DER)
      3. Extract names and the subjectAltName UZI payload

    Returns the UziIdentityRecord, or raises a UziException subclass.
    """
    try:
        raw = verify_client(verify, cert)
        parsed = (decoder or _default_decoder).decode(raw)
        record = extract_identity(parsed, max_depth=max_depth)
    except UziException as e:
        log.info("authenticate.failed", error_kind=e.kind.value, message=e.message)
        raise

    log.info("authenticate.success", card_type=record.card_type, role=record.role)
    return record


def authenticate_environ(environ: Mapping[str, Any], **kwargs: Any) -> UziIdentityRecord:
    """
    Authenticate from a WSGI/CGI-style environment.

    Reads SSL_CLIENT_VERIFY and SSL_CLIENT_CERT; keyword arguments are passed
    through to authenticate().
    """
    return authenticate(environ.get(ENV_CLIENT_VERIFY), environ.get(ENV_CLIENT_CERT), **kwargs)


class UziPassUser(dict[str, str | None]):
    """
    UZI pass holder keyed by the UZI register's attribute names.

    Values are readable both as items and as attributes.

    Keys: givenName, surName, OidCa, UziVersion, UziNumber, CardType,
    SubscriberNumber, Role (CPS, page 89), AgbCode.

    For reference see the UZI-register Certification Practice Statement:
    https://www.zorgcsp.nl/documents/RK1%20CPS%20UZI-register%20V10.2%20ENG.pdf

        user = UziPassUser(environ["SSL_CLIENT_VERIFY"], environ["SSL_CLIENT_CERT"])
        user["UziNumber"]
        user.givenName
    """

    def __init__(self, verify: str | None = "failed", cert: Any = None, **kwargs: Any) -> None:
        self.record = authenticate(verify, cert, **kwargs)
        super().__init__(self.record.as_dict())

    def __getattr__(self, name: str) -> str | None:
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None
