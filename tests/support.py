"""
Test helpers shared across the suite: sample records, uploads and fakes.

Importable from any test module (the tests directory is on pytest's
pythonpath).
"""

from __future__ import annotations

from datetime import date

from railway import ErrorCode, Result

from battery_certs.domain.models import CertificateRecord, UploadedFile

TOKEN = "test-token"
TODAY = date(2026, 3, 14)

REFERENCE_DATA = {
    "Tesla": ["Model 3", "Model Y"],
    "Nissan": ["Leaf", "Ariya"],
    "Volkswagen": ["ID.3", "ID.4"],
}


def valid_record(**overrides: object) -> CertificateRecord:
    """A record with every required field filled in."""
    fields: dict[str, object] = {
        "tested_by": "J. Smith",
        "make": "Tesla",
        "model": "Model 3",
        "registration": "ab12cde",
        "battery_capacity_kwh": "75",
    }
    fields.update(overrides)
    return CertificateRecord(**fields)  # type: ignore[arg-type]


def pdf(name: str, size: int = 1024) -> UploadedFile:
    return UploadedFile(name=name, size=size, content=b"%PDF-1.7 fake")


def auth_failure(message: str = "Invalid or expired token") -> Result:
    return Result.failure(ErrorCode.AUTHENTICATION_ERROR, message)


def service_failure(message: str) -> Result:
    return Result.failure(ErrorCode.EXTERNAL_SERVICE_ERROR, message)


class RecordingSleep:
    """Fake `sleep` that remembers every requested pause."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
