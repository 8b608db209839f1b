"""
Wire schemas — pydantic models for certificate service response bodies.

The extraction service reads free-form PDFs, so its field values are
parsed leniently: numbers become text where text is expected, blank strings
become None, and a date or percentage that doesn't parse is dropped rather
than failing the whole file.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from battery_certs.domain.models import CertificateRecord, ExtractedFields


class ErrorBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    error: str | None = None


class LoginResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: bool = False
    token: str | None = None


class ReferenceTableResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: dict[str, list[str]] = Field(default_factory=dict)


class ExtractedPayload(BaseModel):
    """The `data` object of an extraction response (snake_case service fields)."""

    model_config = ConfigDict(extra="ignore")

    test_date: date | None = None
    tested_by: str | None = None
    make: str | None = None
    model: str | None = None
    registration: str | None = None
    first_registered: date | None = None
    vin: str | None = None
    mileage: str | None = None
    battery_capacity: str | None = None
    state_of_health: int | None = None

    @field_validator(
        "tested_by", "make", "model", "registration", "vin", "mileage", "battery_capacity",
        mode="before",
    )
    @classmethod
    def as_text(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("test_date", "first_registered", mode="before")
    @classmethod
    def as_date(cls, value: Any) -> date | None:
        if value is None or isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value).strip())
        except ValueError:
            return None

    @field_validator("state_of_health", mode="before")
    @classmethod
    def as_percent(cls, value: Any) -> int | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            return round(float(str(value).strip().rstrip("%")))
        except (ValueError, OverflowError):
            return None

    def to_fields(self) -> ExtractedFields:
        return ExtractedFields(
            test_date=self.test_date,
            tested_by=self.tested_by,
            make=self.make,
            model=self.model,
            registration=self.registration,
            first_registered=self.first_registered,
            vin=self.vin,
            mileage=self.mileage,
            battery_capacity_kwh=self.battery_capacity,
            state_of_health_percent=self.state_of_health,
        )


class ExtractionResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: bool = False
    data: ExtractedPayload | None = None


def record_payload(record: CertificateRecord) -> dict[str, Any]:
    """JSON body the rendering service expects for one certificate."""
    return {
        "id": str(record.id),
        "test_date": record.test_date.isoformat(),
        "tested_by": record.tested_by,
        "make": record.make,
        "model": record.model,
        "registration": record.registration,
        "first_registered": record.first_registered.isoformat() if record.first_registered else "",
        "vin": record.vin,
        "mileage": record.mileage,
        "battery_capacity": record.battery_capacity_kwh,
        "state_of_health": record.state_of_health_percent,
        "recipient_email": record.recipient_email,
        "source_pdf": record.source_pdf_name or "",
        "is_valid": record.is_valid,
        "validation_errors": list(record.validation_errors),
    }
