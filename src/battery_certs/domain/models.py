"""
Domain models — data structures for certificates, uploads and batch outcomes.

CertificateRecord is the unit of work. It is a frozen dataclass: an edit
produces a new instance via dataclasses.replace, and the CertificateStore
writes it back at the same position. Canonicalization (upper-case
registration and VIN, clamped state of health) happens in __post_init__, so
every instance the application can observe is already canonical.

The remaining models describe batch input (UploadedFile, ExtractedFields)
and batch output (ItemFailure, Progress, IngestionSummary, GenerationSummary).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from pathlib import Path
from uuid import UUID, uuid4

from railway import ErrorCode

DEFAULT_STATE_OF_HEALTH = 90
MAX_ITEMIZED_FAILURES = 5


def clamp_state_of_health(value: object) -> int:
    """Coerce a state-of-health reading to an int in [0, 100]."""
    try:
        percent = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return DEFAULT_STATE_OF_HEALTH
    return max(0, min(100, percent))


@dataclass(frozen=True, slots=True)
class CertificateRecord:
    """
    One battery health certificate: the full field set plus derived validity.

    `is_valid` and `validation_errors` are derived. Only the store writes
    them, always together, from the Validator's output.
    """

    id: UUID = field(default_factory=uuid4)
    test_date: date = field(default_factory=date.today)
    tested_by: str = ""
    make: str = ""
    model: str = ""
    registration: str = ""
    first_registered: date | None = None
    vin: str = ""
    mileage: str = ""
    battery_capacity_kwh: str = ""
    state_of_health_percent: int = DEFAULT_STATE_OF_HEALTH
    recipient_email: str = ""
    source_pdf_name: str | None = None
    is_valid: bool = False
    validation_errors: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "registration", (self.registration or "").upper())
        object.__setattr__(self, "vin", (self.vin or "").upper())
        object.__setattr__(
            self,
            "state_of_health_percent",
            clamp_state_of_health(self.state_of_health_percent),
        )

    def duplicate(self) -> CertificateRecord:
        """
        Clone for the next vehicle of the same make and model.

        Identity-sensitive fields are reset and validity is forced to
        False until the store re-validates the clone.
        """
        return replace(
            self,
            id=uuid4(),
            registration="",
            vin="",
            mileage="",
            recipient_email="",
            is_valid=False,
            validation_errors=(),
        )

    @property
    def has_recipient(self) -> bool:
        """False means download only, no delivery."""
        return bool(self.recipient_email.strip())

    @property
    def artifact_name(self) -> str:
        return f"{self.registration}.pdf"


class BatteryStatus(Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    BAD = "Bad"


def battery_status(state_of_health_percent: int) -> BatteryStatus:
    if state_of_health_percent >= 85:
        return BatteryStatus.EXCELLENT
    if state_of_health_percent >= 65:
        return BatteryStatus.GOOD
    return BatteryStatus.BAD


@dataclass(frozen=True, slots=True)
class UploadedFile:
    """A file handed to the ingestion pipeline: name, byte size and content."""

    name: str
    size: int
    content: bytes = field(repr=False)

    @staticmethod
    def from_bytes(name: str, content: bytes) -> UploadedFile:
        return UploadedFile(name=name, size=len(content), content=content)


@dataclass(frozen=True, slots=True)
class ExtractedFields:
    """
    Fields the extraction service found in one PDF.

    Every field is optional; absent fields fall back to record defaults.
    """

    test_date: date | None = None
    tested_by: str | None = None
    make: str | None = None
    model: str | None = None
    registration: str | None = None
    first_registered: date | None = None
    vin: str | None = None
    mileage: str | None = None
    battery_capacity_kwh: str | None = None
    state_of_health_percent: int | None = None


@dataclass(frozen=True, slots=True)
class ItemFailure:
    """One failed batch item: which item, why, and how it was classified."""

    name: str
    reason: str
    code: ErrorCode = ErrorCode.EXTERNAL_SERVICE_ERROR

    def __str__(self) -> str:
        return f"{self.name}: {self.reason}"


@dataclass(frozen=True, slots=True)
class Progress:
    """Batch progress snapshot: 1-based index of the current item, total, label."""

    current: int
    total: int
    message: str

    @property
    def fraction(self) -> float:
        return self.current / self.total if self.total else 0.0


IDLE = Progress(current=0, total=0, message="")


@dataclass(frozen=True, slots=True)
class IngestionSummary:
    """
    Aggregate outcome of one PDF ingestion batch.

    `records` are the certificates appended to the store, in file order.
    `first_new_index` is the store position of the first of them, or None
    when nothing succeeded.
    """

    records: tuple[CertificateRecord, ...] = ()
    failures: tuple[ItemFailure, ...] = ()
    first_new_index: int | None = None

    @property
    def succeeded(self) -> int:
        return len(self.records)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    @property
    def itemized_failures(self) -> tuple[ItemFailure, ...]:
        return self.failures[:MAX_ITEMIZED_FAILURES]

    @property
    def remaining_failures(self) -> int:
        return max(0, self.failed - MAX_ITEMIZED_FAILURES)


@dataclass(frozen=True, slots=True)
class GenerationSummary:
    """Aggregate outcome of one PDF generation batch."""

    artifacts: tuple[Path, ...] = ()
    failures: tuple[ItemFailure, ...] = ()
    skipped_invalid: int = 0

    @property
    def succeeded(self) -> int:
        return len(self.artifacts)

    @property
    def failed(self) -> int:
        return len(self.failures)
