"""
Application entry point — configures logging and runs the service or a one-off check.

Composition root for the command line:

  uzi-reader                 serve the ASGI app with uvicorn (AppSettings host/port)
  uzi-reader serve           same as above
  uzi-reader inspect FILE    print the UZI record of a PEM/DER certificate as JSON

`inspect` treats the certificate as already verified; it is meant for operators
checking what a card certificate carries, not for authentication.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import structlog

from uzi_reader.config import AppSettings
from uzi_reader.domain.errors import UziException
from uzi_reader.pipeline import VERIFY_SUCCESS, authenticate


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for structured logging.

    Unknown level names fall back to INFO.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="uzi-reader",
        description="Extract UZI identity records from smartcard client certificates.",
    )
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("serve", help="run the HTTP service (default)")
    inspect = commands.add_parser("inspect", help="print the UZI record of a certificate file")
    inspect.add_argument("certificate", type=Path, help="PEM or DER certificate file")
    return parser


def _inspect(path: Path, settings: AppSettings) -> int:
    """Print the record extracted from `path`; returns the process exit code."""
    try:
        raw = path.read_bytes()
    except OSError as e:
        print(f"Cannot read {path}: {e}", file=sys.stderr)  # noqa: T201
        return 2

    try:
        record = authenticate(
            VERIFY_SUCCESS, raw, max_depth=settings.extraction.max_altname_depth
        )
    except UziException as e:
        print(f"{e.kind.value}: {e.message}", file=sys.stderr)  # noqa: T201
        return 1

    print(json.dumps(record.as_dict(), indent=2))  # noqa: T201
    return 0


def _serve(settings: AppSettings) -> None:
    import uvicorn

    log = structlog.get_logger()
    log.info("app.starting", host=settings.host, port=settings.port, log_level=settings.log_level)
    uvicorn.run(
        "uzi_reader.asgi:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


def main(argv: list[str] | None = None) -> None:
    """Load settings, configure logging and dispatch the requested command."""
    args = _build_parser().parse_args(argv)

    try:
        settings = AppSettings()
    except Exception as e:
        print(f"FATAL: Configuration error — {e}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    configure_structlog(settings.log_level)

    if args.command == "inspect":
        sys.exit(_inspect(args.certificate, settings))
    _serve(settings)


if __name__ == "__main__":
    main()
