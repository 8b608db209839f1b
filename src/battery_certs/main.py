"""
Application entry point — wires dependencies and runs one operator session.

Composition root: creates concrete adapters, injects them into the
workspace, and drives it from the command line.

This is the ONLY place where concrete classes are instantiated.
Everything else depends on Protocol interfaces.

Responsibilities:
  1. Configure structlog for structured logging
  2. Load and validate configuration from environment
  3. Create concrete adapter instances (4 HTTP adapters + artifact sink)
  4. Log in, ingest the PDFs given on the command line, list the certificates
  5. Optionally generate every valid certificate into the output directory
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from pathlib import Path
from typing import TypeAlias

import structlog
from railway.failure import FailureDescription

from battery_certs import __version__
from battery_certs.adapters.http_client import (
    HttpAuthenticator,
    HttpCertificateRenderer,
    HttpFieldExtractor,
    HttpReferenceTableProvider,
)
from battery_certs.adapters.local_files import DirectoryArtifactSink, load_uploads
from battery_certs.config import AppSettings
from battery_certs.domain.ports import Confirmation
from battery_certs.reporting import describe_record, generation_message, ingestion_message
from battery_certs.workspace import CertificateWorkspace

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_SESSION_EXPIRED = 3


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for structured logging.

    Colored, human-readable console output on stderr, so stdout carries
    only the operator-facing messages.
    """
    logging.basicConfig(level=getattr(logging, log_level.upper(), logging.INFO), stream=sys.stderr)
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


_Adapters: TypeAlias = tuple[
    HttpAuthenticator,
    HttpReferenceTableProvider,
    HttpFieldExtractor,
    HttpCertificateRenderer,
    DirectoryArtifactSink,
]


def _create_adapters(settings: AppSettings) -> _Adapters:
    """
    Instantiate all concrete adapters from application settings.

    This is the ONLY place where concrete classes are created.
    """
    api = settings.api
    authenticator = HttpAuthenticator(
        login_url=api.url(api.login_path),
        timeout=api.timeout_seconds,
    )
    reference_provider = HttpReferenceTableProvider(
        reference_url=api.url(api.reference_table_path),
        timeout=api.timeout_seconds,
    )
    extractor = HttpFieldExtractor(
        extract_url=api.url(api.extract_path),
        timeout=api.timeout_seconds,
    )
    renderer = HttpCertificateRenderer(
        render_url=api.url(api.render_path),
        timeout=api.timeout_seconds,
    )
    sink = DirectoryArtifactSink(settings.output_dir)
    return authenticator, reference_provider, extractor, renderer, sink


def build_workspace(settings: AppSettings, confirm: Confirmation | None = None) -> CertificateWorkspace:
    authenticator, reference_provider, extractor, renderer, sink = _create_adapters(settings)
    return CertificateWorkspace(
        authenticator=authenticator,
        reference_provider=reference_provider,
        extractor=extractor,
        renderer=renderer,
        sink=sink,
        settings=settings.batch,
        confirm=confirm,
        on_expired=lambda reason: print(reason, file=sys.stderr),  # noqa: T201
    )


def ask_operator(prompt: str) -> bool:
    """Interactive Confirmation: only an explicit yes approves."""
    answer = input(f"{prompt} [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="battery-certs",
        description="Extract battery health certificates from PDFs and generate them in batch.",
    )
    parser.add_argument("pdfs", nargs="*", type=Path, help="Certificate PDFs to ingest")
    parser.add_argument("--generate", action="store_true", help="Generate every valid certificate")
    parser.add_argument("--yes", action="store_true", help="Do not ask before generating")
    parser.add_argument("--out", type=Path, default=None, help="Output directory for generated PDFs")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def _report_failure(error: FailureDescription) -> int:
    print(error.message, file=sys.stderr)  # noqa: T201
    return EXIT_SESSION_EXPIRED if error.is_authentication_failure else EXIT_FAILURE


def _print_certificates(workspace: CertificateWorkspace) -> None:
    store = workspace.store
    if not len(store):
        print("No certificates yet.")  # noqa: T201
        return
    print(f"Certificates ({store.valid_count} of {len(store)} valid):")  # noqa: T201
    for position, record in enumerate(store, start=1):
        print(describe_record(position, record, current=position - 1 == store.current_index))  # noqa: T201


def main(argv: list[str] | None = None) -> int:
    """Wire dependencies and run one batch session."""
    args = _parse_args(argv)

    try:
        settings = AppSettings()
    except Exception as e:
        print(f"FATAL: Configuration error — {e}", file=sys.stderr)  # noqa: T201
        return EXIT_FAILURE
    if args.out is not None:
        settings = settings.model_copy(update={"output_dir": args.out})

    configure_structlog(settings.log_level)
    log = structlog.get_logger()
    log.info("app.starting", version=__version__, base_url=settings.api.base_url, files=len(args.pdfs))

    try:
        uploads = load_uploads(args.pdfs)
    except OSError as e:
        print(f"Cannot read {e.filename}: {e.strerror}", file=sys.stderr)  # noqa: T201
        return EXIT_FAILURE

    workspace = build_workspace(settings)
    password = (
        settings.password.get_secret_value()
        if settings.password is not None
        else getpass.getpass("Password: ")
    )
    login = workspace.login(password)
    if login.is_failure():
        return _report_failure(login.error())
    print(f"Logged in. {len(workspace.reference_table)} known makes.")  # noqa: T201

    if uploads:
        ingested = workspace.upload(uploads)
        if ingested.is_failure():
            _print_certificates(workspace)
            return _report_failure(ingested.error())
        print(ingestion_message(ingested.value()))  # noqa: T201

    _print_certificates(workspace)

    if args.generate:
        generated = workspace.generate_all(confirm=None if args.yes else ask_operator)
        if generated.is_failure():
            return _report_failure(generated.error())
        summary = generated.value()
        print(generation_message(summary))  # noqa: T201
        for path in summary.artifacts:
            print(f"  {path}")  # noqa: T201
        if summary.failed:
            for failure in summary.failures:
                print(f"• {failure}", file=sys.stderr)  # noqa: T201
            return EXIT_FAILURE

    log.info("app.finished")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
