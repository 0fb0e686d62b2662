"""
FastAPI + Uvicorn ASGI application — UZI authentication behind a TLS proxy.

The reverse proxy terminates TLS, verifies the client certificate and forwards
the outcome plus the certificate as request headers. This service turns those
headers into a UZI identity record.

Endpoints:
  - GET /authenticate: headers → UziIdentityRecord JSON (or an error body)
  - GET /health: liveness probe
  - GET /info: application metadata and the configured header names

Failures map to HTTP status by UziErrorKind; the body always has the shape
{"error_code", "message", "timestamp"}.

Entry point for production: uvicorn uzi_reader.asgi:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any
from urllib.parse import unquote

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from uzi_reader import __version__
from uzi_reader.config import AppSettings
from uzi_reader.domain.errors import UziErrorKind, UziException
from uzi_reader.main import configure_structlog
from uzi_reader.pipeline import authenticate

# Set during startup; lazily created when the app runs without a lifespan.
_settings: AppSettings | None = None
log = structlog.get_logger()


# ─────────────────────── Error Kind → HTTP Status ───────────────────────

HTTP_STATUS_BY_KIND: dict[UziErrorKind, int] = {
    UziErrorKind.CONFIGURATION_ERROR: 500,
    UziErrorKind.CLIENT_CERT_ERROR: 401,
    UziErrorKind.MISSING_NAME: 403,
    UziErrorKind.NO_ALT_NAME_DATA: 403,
    UziErrorKind.MALFORMED_SAN: 403,
    UziErrorKind.DECODE_ERROR: 400,
}


@dataclass(frozen=True, slots=True)
class ErrorResponse:
    """
    Standardized error response body.

        {
            "error_code": "NO_ALT_NAME_DATA",
            "message": "No valid UZI data found",
            "timestamp": "2026-02-17T10:30:00+00:00"
        }
    """

    error_code: str
    message: str
    timestamp: str

    @staticmethod
    def from_exception(error: UziException) -> ErrorResponse:
        return ErrorResponse(
            error_code=error.kind.value,
            message=error.message,
            timestamp=datetime.now(UTC).isoformat(),
        )

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def _current_settings() -> AppSettings:
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load settings and configure logging once at startup."""
    global _settings

    try:
        _settings = AppSettings()
    except Exception as e:
        log.error("asgi.startup_error", error=f"Configuration error: {e}")
        raise

    configure_structlog(_settings.log_level)
    log.info(
        "asgi.startup_complete",
        version=__version__,
        verify_header=_settings.proxy.verify_header,
        cert_header=_settings.proxy.cert_header,
    )

    yield

    log.info("asgi.shutdown_complete")


# ─────────────────────── FastAPI Application ───────────────────────

app = FastAPI(
    title="uzi-reader",
    description="UZI smartcard client-certificate authentication behind a TLS-terminating proxy",
    version=__version__,
    lifespan=lifespan,
)


@app.get("/authenticate")
async def authenticate_request(request: Request) -> JSONResponse:
    """
    Authenticate the UZI card holder from the proxy's client-cert headers.

    Returns 200 with the record on success. Failures return the status
    mapped from their UziErrorKind (400, 401, 403, or 500 when the proxy did
    not verify the client certificate).
    """
    settings = _current_settings()
    verify = request.headers.get(settings.proxy.verify_header)
    cert = request.headers.get(settings.proxy.cert_header)
    if cert is not None and settings.proxy.cert_url_encoded:
        cert = unquote(cert)

    try:
        record = await asyncio.to_thread(
            authenticate,
            verify,
            cert,
            max_depth=settings.extraction.max_altname_depth,
        )
    except UziException as e:
        status = HTTP_STATUS_BY_KIND[e.kind]
        log.warning("asgi.request_failed", error_kind=e.kind.value, status=status)
        return JSONResponse(status_code=status, content=ErrorResponse.from_exception(e).to_dict())

    return JSONResponse(
        status_code=200,
        content={"status": "authenticated", "record": record.as_dict()},
    )


@app.get("/health")
async def health() -> JSONResponse:
    """Liveness probe — the service holds no external connections to check."""
    return JSONResponse(status_code=200, content={"status": "healthy"})


@app.get("/info")
async def info() -> dict[str, Any]:
    """Application metadata, used for debugging proxy header wiring."""
    settings = _current_settings()
    return {
        "name": "uzi-reader",
        "version": __version__,
        "verify_header": settings.proxy.verify_header,
        "cert_header": settings.proxy.cert_header,
        "cert_url_encoded": settings.proxy.cert_url_encoded,
    }


if __name__ == "__main__":
    # For local testing: python -m uvicorn uzi_reader.asgi:app --reload
    import uvicorn

    uvicorn.run(
        "uzi_reader.asgi:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
        log_level="info",
    )
