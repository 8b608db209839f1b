"""
Ingestion pipeline — turn a batch of uploaded PDFs into certificate records.

Per file, in input order:

  progress "Processing {name}..."
    → precheck: .pdf suffix (case-insensitive), size limit      no network
      → extract(token, file)                                    one at a time, paced
        → map fields onto a record, normalize the make
          → pending

Failures are collected per file and never stop the batch, with one
exception: an AUTHENTICATION_ERROR aborts the remaining files, commits what
already succeeded, and expires the session.

Pending records reach the store in a single `extend` at the end of the
batch, so a half-finished batch is never visible in the store.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping, Sequence
from datetime import date

import structlog
from railway import ErrorCode
from railway.result import Result

from battery_certs.batch import ProgressTracker, run_sequentially
from battery_certs.config import BatchSettings
from battery_certs.domain.models import (
    DEFAULT_STATE_OF_HEALTH,
    CertificateRecord,
    ExtractedFields,
    IngestionSummary,
    ItemFailure,
    UploadedFile,
)
from battery_certs.domain.ports import FieldExtractor
from battery_certs.domain.reference import normalize_make
from battery_certs.session import SESSION_EXPIRED_MESSAGE, Session
from battery_certs.store import CertificateStore

log = structlog.get_logger()

NOT_A_PDF = "Not a PDF file"


def too_large_message(max_bytes: int) -> str:
    return f"File too large (>{max_bytes // (1024 * 1024)}MB)"


def check_upload(upload: UploadedFile, max_bytes: int) -> Result[UploadedFile]:
    """Local checks run before any network call."""
    return (
        Result.success(upload)
        .ensure(
            lambda f: f.name.lower().endswith(".pdf"),
            ErrorCode.VALIDATION_ERROR,
            NOT_A_PDF,
        )
        .ensure(
            lambda f: f.size <= max_bytes,
            ErrorCode.VALIDATION_ERROR,
            too_large_message(max_bytes),
        )
    )


def record_from_extraction(
    fields: ExtractedFields,
    reference_table: Mapping[str, Sequence[str]],
    source_name: str,
    today: Callable[[], date] = date.today,
) -> CertificateRecord:
    """
    Build a new record from extracted fields.

    Absent fields take the defaults of a manually created record. The make is
    normalized against the reference table; the model is kept as extracted.
    """
    return CertificateRecord(
        test_date=fields.test_date or today(),
        tested_by=fields.tested_by or "",
        make=normalize_make(fields.make or "", reference_table),
        model=fields.model or "",
        registration=fields.registration or "",
        first_registered=fields.first_registered,
        vin=fields.vin or "",
        mileage=fields.mileage or "",
        battery_capacity_kwh=fields.battery_capacity_kwh or "",
        state_of_health_percent=(
            DEFAULT_STATE_OF_HEALTH
            if fields.state_of_health_percent is None
            else fields.state_of_health_percent
        ),
        source_pdf_name=source_name,
    )


def run_ingestion(
    files: Sequence[UploadedFile],
    *,
    reference_table: Mapping[str, Sequence[str]],
    extractor: FieldExtractor,
    session: Session,
    store: CertificateStore,
    settings: BatchSettings,
    progress: ProgressTracker | None = None,
    sleep: Callable[[float], None] = time.sleep,
    today: Callable[[], date] = date.today,
) -> Result[IngestionSummary]:
    """
    Extract every file and append the successes to the store.

    Returns the batch summary, or the AUTHENTICATION_ERROR failure that
    aborted the batch. In the latter case the successes that came before
    the failure are still committed.
    """
    if not files:
        return Result.success(IngestionSummary())

    tracker = progress or ProgressTracker()
    try:
        return session.require_token().flat_map(
            lambda token: _ingest(
                files, token, reference_table, extractor, session, store, settings, tracker, sleep, today
            )
        )
    finally:
        tracker.reset()


def _ingest(
    files: Sequence[UploadedFile],
    token: str,
    reference_table: Mapping[str, Sequence[str]],
    extractor: FieldExtractor,
    session: Session,
    store: CertificateStore,
    settings: BatchSettings,
    progress: ProgressTracker,
    sleep: Callable[[float], None],
    today: Callable[[], date],
) -> Result[IngestionSummary]:
    log.info("ingestion.started", files=len(files))

    def submit(upload: UploadedFile) -> Result[CertificateRecord]:
        return (
            extractor.extract(token, upload)
            .map(lambda fields: record_from_extraction(fields, reference_table, upload.name, today))
            .peek(lambda record: log.info("ingestion.file_extracted", file=upload.name, make=record.make))
        )

    run = run_sequentially(
        files,
        submit,
        describe=lambda index, total, upload: f"Processing {upload.name}...",
        precheck=lambda upload: check_upload(upload, settings.max_upload_bytes),
        pause_seconds=settings.upload_pause_seconds,
        progress=progress,
        sleep=sleep,
    )

    pending = [record for _, record in run.successes]
    failures = tuple(
        ItemFailure(name=upload.name, reason=error.message, code=error.code)
        for upload, error in run.failures
        if not error.is_authentication_failure
    )
    for failure in failures:
        log.warning("ingestion.file_failed", file=failure.name, code=failure.code.value, reason=failure.reason)

    first_index = store.extend(pending)

    if run.aborted is not None:
        log.error(
            "ingestion.aborted",
            committed=len(pending),
            unprocessed=len(files) - len(run.outcomes),
        )
        session.expire(SESSION_EXPIRED_MESSAGE)
        return Result.failure(ErrorCode.AUTHENTICATION_ERROR, SESSION_EXPIRED_MESSAGE)

    if pending:
        store.select(first_index)

    summary = IngestionSummary(
        records=store.records[first_index : first_index + len(pending)],
        failures=failures,
        first_new_index=first_index if pending else None,
    )
    log.info(
        "ingestion.completed",
        succeeded=summary.succeeded,
        failed=summary.failed,
        submissions=run.submissions,
    )
    return Result.success(summary)
