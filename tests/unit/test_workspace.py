"""
Unit tests for the CertificateWorkspace — session, reference table and batch guard.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from railway import ErrorCode, Result, ResultAssertions

from battery_certs.config import BatchSettings
from battery_certs.domain.models import ExtractedFields
from battery_certs.domain.reference import ReferenceTable
from battery_certs.session import SESSION_EXPIRED_MESSAGE
from battery_certs.workspace import BATCH_IN_PROGRESS, CertificateWorkspace
from support import REFERENCE_DATA, TOKEN, RecordingSleep, auth_failure, pdf, service_failure, valid_record


@pytest.fixture()
def reference_provider() -> MagicMock:
    mock = MagicMock()
    mock.fetch.return_value = Result.success(ReferenceTable(REFERENCE_DATA))
    return mock


@pytest.fixture()
def workspace(
    authenticator: MagicMock,
    reference_provider: MagicMock,
    extractor: MagicMock,
    renderer: MagicMock,
    sink: MagicMock,
    expired_reasons: list[str],
) -> CertificateWorkspace:
    return CertificateWorkspace(
        authenticator=authenticator,
        reference_provider=reference_provider,
        extractor=extractor,
        renderer=renderer,
        sink=sink,
        settings=BatchSettings(),
        on_expired=expired_reasons.append,
        sleep=RecordingSleep(),
    )


class TestLogin:
    """
    GIVEN valid credentials
    WHEN the operator logs in
    THEN the reference table is loaded with the new token.
    """

    def test_login_loads_reference_table(self, workspace: CertificateWorkspace, reference_provider: MagicMock) -> None:
        ResultAssertions.assert_success_value(workspace.login("secret"), TOKEN)
        reference_provider.fetch.assert_called_once_with(TOKEN)
        assert workspace.reference_table.makes() == ["Nissan", "Tesla", "Volkswagen"]

    def test_table_failure_leaves_empty_table(
        self, workspace: CertificateWorkspace, reference_provider: MagicMock
    ) -> None:
        reference_provider.fetch.return_value = service_failure("Could not load vehicle data")
        ResultAssertions.assert_success(workspace.login("secret"))
        assert workspace.session.is_authenticated
        assert len(workspace.reference_table) == 0

    def test_table_auth_failure_expires_session(
        self, workspace: CertificateWorkspace, reference_provider: MagicMock, expired_reasons: list[str]
    ) -> None:
        reference_provider.fetch.return_value = auth_failure()
        ResultAssertions.assert_failure(workspace.login("secret"), ErrorCode.AUTHENTICATION_ERROR)
        assert not workspace.session.is_authenticated
        assert expired_reasons == [SESSION_EXPIRED_MESSAGE]

    def test_failed_login_skips_table(
        self, workspace: CertificateWorkspace, authenticator: MagicMock, reference_provider: MagicMock
    ) -> None:
        authenticator.login.return_value = auth_failure("Invalid password")
        ResultAssertions.assert_failure(workspace.login("wrong"), ErrorCode.AUTHENTICATION_ERROR)
        reference_provider.fetch.assert_not_called()


class TestLogout:
    def test_logout_clears_everything(self, workspace: CertificateWorkspace, expired_reasons: list[str]) -> None:
        workspace.login("secret")
        workspace.store.create()

        workspace.logout()

        assert not workspace.session.is_authenticated
        assert len(workspace.store) == 0
        assert len(workspace.reference_table) == 0
        assert expired_reasons == []


class TestBatches:
    def test_upload_normalizes_with_loaded_table(self, workspace: CertificateWorkspace) -> None:
        workspace.login("secret")
        summary = ResultAssertions.assert_success(workspace.upload([pdf("a.pdf")]))
        assert summary.succeeded == 1
        assert workspace.store.records[0].make == "Tesla"

    def test_upload_without_login(self, workspace: CertificateWorkspace, extractor: MagicMock) -> None:
        ResultAssertions.assert_failure(workspace.upload([pdf("a.pdf")]), ErrorCode.AUTHENTICATION_ERROR)
        extractor.extract.assert_not_called()

    def test_generate_all_and_current(self, workspace: CertificateWorkspace, renderer: MagicMock) -> None:
        workspace.login("secret")
        workspace.store.extend([valid_record(registration="a1"), valid_record(registration="b2")])

        ResultAssertions.assert_success(workspace.generate_all())
        ResultAssertions.assert_success(workspace.generate_current())

        assert renderer.render.call_count == 3

    def test_forced_expiry_keeps_certificates(
        self, workspace: CertificateWorkspace, extractor: MagicMock
    ) -> None:
        workspace.login("secret")
        extractor.extract.side_effect = [
            Result.success(ExtractedFields(registration="one1")),
            auth_failure(),
        ]

        ResultAssertions.assert_failure(
            workspace.upload([pdf("a.pdf"), pdf("b.pdf")]), ErrorCode.AUTHENTICATION_ERROR
        )

        assert not workspace.session.is_authenticated
        assert [r.registration for r in workspace.store] == ["ONE1"]

    def test_no_overlapping_batches(self, workspace: CertificateWorkspace, extractor: MagicMock) -> None:
        """
        GIVEN an ingestion batch in flight
        WHEN another batch is requested from inside it
        THEN the second batch is refused and the first completes.
        """
        workspace.login("secret")
        nested: list[Result] = []

        def extract(token: str, upload: object) -> Result[ExtractedFields]:
            nested.append(workspace.generate_all())
            return Result.success(ExtractedFields(registration="one1"))

        extractor.extract.side_effect = extract

        ResultAssertions.assert_success(workspace.upload([pdf("a.pdf")]))

        error = ResultAssertions.assert_failure(nested[0], ErrorCode.BUSINESS_RULE_ERROR)
        assert error.message == BATCH_IN_PROGRESS
        assert not workspace.is_busy

    def test_extractor_exception_fails_that_file_only(
        self, workspace: CertificateWorkspace, extractor: MagicMock
    ) -> None:
        workspace.login("secret")
        extractor.extract.side_effect = [
            RuntimeError("adapter bug"),
            Result.success(ExtractedFields(registration="two2")),
        ]

        summary = ResultAssertions.assert_success(workspace.upload([pdf("a.pdf"), pdf("b.pdf")]))

        assert [str(f) for f in summary.failures] == ["a.pdf: Unexpected error: adapter bug"]
        assert summary.failures[0].code == ErrorCode.TECHNICAL_ERROR
        assert [r.registration for r in workspace.store] == ["TWO2"]
        assert not workspace.is_busy

    def test_unexpected_exception_becomes_technical_error(
        self, workspace: CertificateWorkspace, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        workspace.login("secret")

        def broken_extend(records: object) -> int:
            raise RuntimeError("store bug")

        monkeypatch.setattr(workspace.store, "extend", broken_extend)

        error = ResultAssertions.assert_failure(workspace.upload([pdf("a.pdf")]), ErrorCode.TECHNICAL_ERROR)

        assert "store bug" in error.message
        assert not workspace.is_busy
        assert workspace.upload_progress.current.total == 0
