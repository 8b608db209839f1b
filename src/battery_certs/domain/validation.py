"""
Validator — required-field checks that gate certificate generation.

Pure functions, no I/O. `validate` only reports; `apply_validation` writes
the outcome back onto a record, always setting both derived fields together.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from battery_certs.domain.models import CertificateRecord

# Check order is the order reasons are reported in.
_REQUIRED_FIELDS: tuple[tuple[str, str], ...] = (
    ("tested_by", "Tested By is required"),
    ("make", "Make is required"),
    ("model", "Model is required"),
    ("registration", "Registration is required"),
    ("battery_capacity_kwh", "Battery Capacity is required"),
)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    errors: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate(record: CertificateRecord) -> ValidationResult:
    """Check every required field is non-blank, in fixed order."""
    errors = tuple(
        reason
        for field_name, reason in _REQUIRED_FIELDS
        if not (getattr(record, field_name) or "").strip()
    )
    return ValidationResult(errors=errors)


def apply_validation(record: CertificateRecord) -> CertificateRecord:
    """Return `record` with `is_valid` and `validation_errors` recomputed."""
    outcome = validate(record)
    if record.is_valid == outcome.is_valid and record.validation_errors == outcome.errors:
        return record
    return replace(record, is_valid=outcome.is_valid, validation_errors=outcome.errors)
