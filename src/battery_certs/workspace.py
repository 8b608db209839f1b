"""
Workspace — one operator's session, certificate store and batch pipelines.

Application service layer: wires the ports into the pipelines and keeps the
state they share (token, store, reference table, progress). At most one
batch runs at a time; each run executes inside a railway
LoggingExecutionContext, so an unexpected exception comes back as a
TECHNICAL_ERROR failure instead of escaping to the caller.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from typing import TypeVar

import structlog
from railway import LoggingExecutionContext, ResultFailures
from railway.result import Result

from battery_certs.batch import ProgressTracker
from battery_certs.config import BatchSettings
from battery_certs.domain.models import GenerationSummary, IngestionSummary, UploadedFile
from battery_certs.domain.ports import (
    ArtifactSink,
    Authenticator,
    CertificateRenderer,
    Confirmation,
    FieldExtractor,
    ReferenceTableProvider,
)
from battery_certs.domain.reference import EMPTY_REFERENCE_TABLE, ReferenceTable
from battery_certs.generation import generate_all, generate_current
from battery_certs.ingestion import run_ingestion
from battery_certs.session import Session
from battery_certs.store import CertificateStore

T = TypeVar("T")

log = structlog.get_logger()

BATCH_IN_PROGRESS = "Another batch is already running"


class CertificateWorkspace:
    """
    Everything one operator session works with.

    A forced session expiry keeps the committed certificates so the operator
    can log in again and carry on; only `logout` clears them.
    """

    def __init__(
        self,
        *,
        authenticator: Authenticator,
        reference_provider: ReferenceTableProvider,
        extractor: FieldExtractor,
        renderer: CertificateRenderer,
        sink: ArtifactSink,
        settings: BatchSettings,
        confirm: Confirmation | None = None,
        on_expired: Callable[[str], None] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._reference_provider = reference_provider
        self._extractor = extractor
        self._renderer = renderer
        self._sink = sink
        self._settings = settings
        self._sleep = sleep

        self.session = Session(authenticator, on_expired=on_expired)
        self.store = CertificateStore(confirm=confirm)
        self.upload_progress = ProgressTracker()
        self.generation_progress = ProgressTracker()
        self._reference_table: ReferenceTable = EMPTY_REFERENCE_TABLE
        self._busy = False

    @property
    def reference_table(self) -> ReferenceTable:
        return self._reference_table

    @property
    def is_busy(self) -> bool:
        return self._busy

    # ──────────────────────── Session ────────────────────────

    def login(self, password: str) -> Result[str]:
        """
        Log in, then load the reference table.

        A table that can't be loaded for any reason other than an auth
        failure leaves the table empty; the operator can still work.
        """
        return self.session.login(password).flat_map(self._load_reference_table)

    def logout(self) -> None:
        self.session.logout()
        self.store.reset()
        self._reference_table = EMPTY_REFERENCE_TABLE
        log.info("workspace.logged_out")

    # ──────────────────────── Batches ────────────────────────

    def upload(self, files: Sequence[UploadedFile]) -> Result[IngestionSummary]:
        return self._exclusive(
            "PdfIngestion",
            lambda: run_ingestion(
                files,
                reference_table=self._reference_table,
                extractor=self._extractor,
                session=self.session,
                store=self.store,
                settings=self._settings,
                progress=self.upload_progress,
                sleep=self._sleep,
            ),
        )

    def generate_current(self) -> Result[GenerationSummary]:
        return self._exclusive(
            "PdfGeneration",
            lambda: generate_current(
                self.store,
                renderer=self._renderer,
                sink=self._sink,
                session=self.session,
                progress=self.generation_progress,
            ),
        )

    def generate_all(self, confirm: Confirmation | None = None) -> Result[GenerationSummary]:
        return self._exclusive(
            "PdfGeneration",
            lambda: generate_all(
                self.store,
                renderer=self._renderer,
                sink=self._sink,
                session=self.session,
                settings=self._settings,
                progress=self.generation_progress,
                sleep=self._sleep,
                confirm=confirm,
            ),
        )

    # ──────────────────────── Internals ────────────────────────

    def _exclusive(self, operation: str, computation: Callable[[], Result[T]]) -> Result[T]:
        if self._busy:
            log.warning("workspace.batch_refused", operation=operation)
            return ResultFailures.business_rule_error(BATCH_IN_PROGRESS)
        self._busy = True
        try:
            return LoggingExecutionContext(operation=operation).execute(computation)
        finally:
            self._busy = False

    def _load_reference_table(self, token: str) -> Result[str]:
        fetched = self.session.guard(self._reference_provider.fetch(token))
        if fetched.is_success():
            self._reference_table = fetched.value()
            return Result.success(token)

        error = fetched.error()
        if error.is_authentication_failure:
            return Result.failure_from(error)
        log.warning("workspace.reference_table_unavailable", code=error.code.value, error=error.message)
        self._reference_table = EMPTY_REFERENCE_TABLE
        return Result.success(token)
