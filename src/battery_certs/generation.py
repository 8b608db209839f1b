"""
Generation pipeline — render certificates to PDF and save the artifacts.

Two entry points:

  generate_current  the record under the cursor, one submission
  generate_all      every record that passes validation right now, in store
                    order, one submission at a time with a pause in between

Validity is re-checked at invocation time; invalid records are counted and
never submitted. Per-record failures (render error, transport error, failed
save) are counted and the batch continues. An AUTHENTICATION_ERROR aborts
the rest of the batch and expires the session. Artifacts already saved stay
saved.

The pipeline reads the store and never mutates it. Nothing is retried.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from pathlib import Path

import structlog
from railway import ErrorCode, ResultFailures
from railway.result import Result

from battery_certs.batch import ProgressTracker, run_sequentially
from battery_certs.config import BatchSettings
from battery_certs.domain.models import CertificateRecord, GenerationSummary, ItemFailure
from battery_certs.domain.ports import ArtifactSink, CertificateRenderer, Confirmation
from battery_certs.domain.validation import validate
from battery_certs.session import SESSION_EXPIRED_MESSAGE, Session
from battery_certs.store import CertificateStore

log = structlog.get_logger()

NO_CERTIFICATES = "No certificates to generate"
NO_VALID_CERTIFICATES = "No valid certificates to generate. Please fix validation errors."
GENERATION_CANCELLED = "Generation cancelled"


def confirmation_prompt(valid: int, skipped: int) -> str:
    prompt = f"Generate {valid} certificate(s)?"
    if skipped:
        prompt += f"\n\n{skipped} certificate(s) will be skipped due to validation errors."
    return prompt


def generate_current(
    store: CertificateStore,
    *,
    renderer: CertificateRenderer,
    sink: ArtifactSink,
    session: Session,
    progress: ProgressTracker | None = None,
) -> Result[GenerationSummary]:
    """Render the record under the cursor, if it is valid."""
    record = store.current
    if record is None:
        return ResultFailures.validation_error(NO_CERTIFICATES)

    outcome = validate(record)
    if not outcome.is_valid:
        return ResultFailures.validation_error(
            "Please fix validation errors before generating:\n\n• " + "\n• ".join(outcome.errors)
        )

    return _render_batch(
        [record],
        describe=lambda index, total, _: "Generating certificate...",
        renderer=renderer,
        sink=sink,
        session=session,
        pause_seconds=0.0,
        progress=progress,
        sleep=time.sleep,
        skipped=0,
    )


def generate_all(
    store: CertificateStore,
    *,
    renderer: CertificateRenderer,
    sink: ArtifactSink,
    session: Session,
    settings: BatchSettings,
    progress: ProgressTracker | None = None,
    sleep: Callable[[float], None] = time.sleep,
    confirm: Confirmation | None = None,
) -> Result[GenerationSummary]:
    """
    Render every currently valid record.

    Refused without contacting the renderer when no record is valid, or when
    the operator declines the confirmation.
    """
    valid = store.valid_records()
    skipped = len(store) - len(valid)
    if not valid:
        log.info("generation.nothing_valid", invalid=skipped)
        return ResultFailures.validation_error(NO_VALID_CERTIFICATES)

    if confirm is not None and not confirm(confirmation_prompt(len(valid), skipped)):
        return ResultFailures.business_rule_error(GENERATION_CANCELLED)

    return _render_batch(
        valid,
        describe=lambda index, total, _: f"Generating certificate {index} of {total}...",
        renderer=renderer,
        sink=sink,
        session=session,
        pause_seconds=settings.generation_pause_seconds,
        progress=progress,
        sleep=sleep,
        skipped=skipped,
    )


def _render_batch(
    records: Sequence[CertificateRecord],
    *,
    describe: Callable[[int, int, CertificateRecord], str],
    renderer: CertificateRenderer,
    sink: ArtifactSink,
    session: Session,
    pause_seconds: float,
    progress: ProgressTracker | None,
    sleep: Callable[[float], None],
    skipped: int,
) -> Result[GenerationSummary]:
    tracker = progress or ProgressTracker()
    try:
        return session.require_token().flat_map(
            lambda token: _run(records, token, describe, renderer, sink, session, pause_seconds, tracker, sleep, skipped)
        )
    finally:
        tracker.reset()


def _run(
    records: Sequence[CertificateRecord],
    token: str,
    describe: Callable[[int, int, CertificateRecord], str],
    renderer: CertificateRenderer,
    sink: ArtifactSink,
    session: Session,
    pause_seconds: float,
    progress: ProgressTracker,
    sleep: Callable[[float], None],
    skipped: int,
) -> Result[GenerationSummary]:
    log.info("generation.started", certificates=len(records), skipped_invalid=skipped)

    def submit(record: CertificateRecord) -> Result[Path]:
        return (
            renderer.render(token, record)
            .flat_map(lambda content: sink.save(record.artifact_name, content))
            .peek(lambda path: log.info("generation.saved", registration=record.registration, path=str(path)))
        )

    run = run_sequentially(
        records,
        submit,
        describe=describe,
        pause_seconds=pause_seconds,
        progress=progress,
        sleep=sleep,
    )

    if run.aborted is not None:
        log.error(
            "generation.aborted",
            saved=len(run.successes),
            unprocessed=len(records) - len(run.outcomes),
        )
        session.expire(SESSION_EXPIRED_MESSAGE)
        return Result.failure(ErrorCode.AUTHENTICATION_ERROR, SESSION_EXPIRED_MESSAGE)

    failures = tuple(
        ItemFailure(name=record.registration or str(record.id), reason=error.message, code=error.code)
        for record, error in run.failures
    )
    for failure in failures:
        log.warning("generation.failed", registration=failure.name, code=failure.code.value, reason=failure.reason)

    summary = GenerationSummary(
        artifacts=tuple(path for _, path in run.successes),
        failures=failures,
        skipped_invalid=skipped,
    )
    log.info(
        "generation.completed",
        succeeded=summary.succeeded,
        failed=summary.failed,
        skipped_invalid=summary.skipped_invalid,
    )
    return Result.success(summary)
