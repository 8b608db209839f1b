"""
Shared test fixtures for the battery-certs test suite.

Mock ports are plain MagicMocks returning railway Results, so each test
states exactly what the remote service answers. `sleep` is always a
recording fake: no test ever waits.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from railway import Result

from battery_certs.config import BatchSettings
from battery_certs.domain.models import ExtractedFields
from battery_certs.domain.reference import ReferenceTable
from battery_certs.session import Session
from battery_certs.store import CertificateStore
from support import REFERENCE_DATA, TOKEN, RecordingSleep

# ─────────────────────── Fixtures ───────────────────────


@pytest.fixture()
def reference_table() -> ReferenceTable:
    return ReferenceTable(REFERENCE_DATA)


@pytest.fixture()
def batch_settings() -> BatchSettings:
    return BatchSettings()


@pytest.fixture()
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def authenticator() -> MagicMock:
    mock = MagicMock()
    mock.login.return_value = Result.success(TOKEN)
    return mock


@pytest.fixture()
def expired_reasons() -> list[str]:
    return []


@pytest.fixture()
def session(authenticator: MagicMock, expired_reasons: list[str]) -> Session:
    """A session that is already logged in and records every expiry."""
    session = Session(authenticator, on_expired=expired_reasons.append)
    session.login("secret")
    return session


@pytest.fixture()
def store() -> CertificateStore:
    return CertificateStore()


@pytest.fixture()
def extractor() -> MagicMock:
    mock = MagicMock()
    mock.extract.return_value = Result.success(
        ExtractedFields(make="tesla", model="Model 3", registration="ab12cde")
    )
    return mock


@pytest.fixture()
def renderer() -> MagicMock:
    mock = MagicMock()
    mock.render.return_value = Result.success(b"%PDF-1.7 certificate")
    return mock


@pytest.fixture()
def sink(tmp_path: Path) -> MagicMock:
    """ArtifactSink fake that answers with the path it would have written."""
    mock = MagicMock()
    mock.save.side_effect = lambda filename, content: Result.success(tmp_path / filename)
    return mock
