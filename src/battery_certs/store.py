"""
Certificate store — the ordered, in-memory collection of certificate records.

The store is the only mutator of the collection. Manual edits and both batch
pipelines go through it, which keeps the cursor and the derived validity
fields consistent:

  - every mutating operation ends with an explicit, synchronous re-validation
    (the edited record for `update`, every record when the size changes)
  - `is_valid` and `validation_errors` are written together, never by callers
  - unknown ids and out-of-range indexes are reported as Result failures and
    leave the store untouched

Nothing here is persisted; the store lives exactly as long as the session.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import fields, replace
from datetime import date, datetime
from enum import Enum
from uuid import UUID, uuid4

import structlog
from railway import ErrorCode, ResultFailures
from railway.result import Result

from battery_certs.domain.models import CertificateRecord
from battery_certs.domain.ports import Confirmation
from battery_certs.domain.validation import apply_validation, validate

log = structlog.get_logger()

DELETE_PROMPT = "Delete this certificate?"
CLEAR_ALL_PROMPT = "Clear all certificates? This cannot be undone."

_PROTECTED_FIELDS = frozenset({"id", "is_valid", "validation_errors", "source_pdf_name"})
_EDITABLE_FIELDS = frozenset(f.name for f in fields(CertificateRecord)) - _PROTECTED_FIELDS
_DATE_FIELDS = frozenset({"test_date", "first_registered"})


def _coerce_field(name: str, value: object) -> object:
    """
    Bring an edited value to the type the record holds.

    Dates accept a `date` or an ISO string; `first_registered` may also be
    cleared with None or "". The state of health takes an int. Every other
    editable field is text. Raises ValueError with an operator-facing message.
    """
    if name in _DATE_FIELDS:
        if name == "first_registered" and value in (None, ""):
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                return date.fromisoformat(value.strip())
            except ValueError:
                raise ValueError(f"Invalid date for {name}: {value!r}") from None
        raise ValueError(f"Invalid date for {name}: {value!r}")
    if name == "state_of_health_percent":
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"State of health must be a whole number, got {value!r}")
        return value
    if not isinstance(value, str):
        raise ValueError(f"{name} must be text, got {type(value).__name__}")
    return value


class View(Enum):
    """Which surface the operator is looking at."""

    FORM = "form"
    LIST = "list"


def _always_confirm(prompt: str) -> bool:
    return True


class CertificateStore:
    """
    Ordered certificate records plus the `current_index` cursor.

    Destructive operations ask the injected Confirmation first; a declined
    prompt is a BUSINESS_RULE_ERROR failure and changes nothing.
    """

    def __init__(self, confirm: Confirmation | None = None) -> None:
        self._records: list[CertificateRecord] = []
        self._current_index = 0
        self._view = View.FORM
        self._confirm = confirm or _always_confirm

    # ──────────────────────── Read access ────────────────────────

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CertificateRecord]:
        return iter(tuple(self._records))

    @property
    def records(self) -> tuple[CertificateRecord, ...]:
        return tuple(self._records)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def current(self) -> CertificateRecord | None:
        if 0 <= self._current_index < len(self._records):
            return self._records[self._current_index]
        return None

    @property
    def view(self) -> View:
        return self._view

    @property
    def valid_count(self) -> int:
        return sum(1 for record in self._records if record.is_valid)

    def get(self, cert_id: UUID) -> Result[CertificateRecord]:
        return self._locate(cert_id).map(lambda index: self._records[index])

    def show(self, view: View) -> None:
        self._view = view

    # ──────────────────────── Mutations ────────────────────────

    def create(self) -> CertificateRecord:
        """Append a blank certificate and point the form at it."""
        self._records.append(CertificateRecord())
        self._revalidate_all()
        self._focus(len(self._records) - 1)
        record = self._records[-1]
        log.info("store.created", id=str(record.id), size=len(self._records))
        return record

    def duplicate(self, cert_id: UUID) -> Result[CertificateRecord]:
        """Append a clone of `cert_id` with identity fields cleared."""
        return self._locate(cert_id).map(self._append_duplicate_of)

    def update(self, cert_id: UUID, **changes: object) -> Result[CertificateRecord]:
        """
        Merge `changes` into the record and re-validate that record.

        Derived and identity fields cannot be set this way. Values are
        coerced to the record's field types; anything that doesn't fit is
        a VALIDATION_ERROR and the record is left as it was.
        """
        rejected = sorted(set(changes) - _EDITABLE_FIELDS)
        if rejected:
            return ResultFailures.validation_error(
                f"Cannot update field(s): {', '.join(rejected)}"
            )
        try:
            coerced = {name: _coerce_field(name, value) for name, value in changes.items()}
        except ValueError as e:
            return ResultFailures.validation_error(str(e))
        return self._locate(cert_id).flat_map(
            lambda index: Result.from_computation(
                lambda: replace(self._records[index], **coerced),
                ErrorCode.VALIDATION_ERROR,
                "Invalid certificate field value",
            ).map(lambda record: self._write(index, record))
        )

    def change_make(self, cert_id: UUID, make: str) -> Result[CertificateRecord]:
        """
        Set the make from the form's make picker.

        A different make clears the model. Re-selecting the same make keeps it.
        """
        return self.get(cert_id).flat_map(
            lambda record: self.update(cert_id, make=make)
            if record.make == make
            else self.update(cert_id, make=make, model="")
        )

    def delete(self, cert_id: UUID) -> Result[CertificateRecord]:
        """Remove a record after confirmation, clamping the cursor to the new end."""
        return (
            self._locate(cert_id)
            .flat_map(lambda index: self._confirmed(DELETE_PROMPT, index))
            .map(self._remove_at)
        )

    def clear_all(self) -> Result[int]:
        """Remove every record after confirmation. Returns how many were removed."""
        if not self._records:
            return Result.success(0)
        return self._confirmed(CLEAR_ALL_PROMPT, len(self._records)).map(self._clear)

    def select(self, index: int) -> Result[CertificateRecord]:
        """Move the cursor. Out-of-range requests are rejected, never raised."""
        if not 0 <= index < len(self._records):
            return ResultFailures.validation_error(f"No certificate at position {index}")
        self._focus(index)
        return Result.success(self._records[index])

    def extend(self, records: Iterable[CertificateRecord]) -> int:
        """
        Append a batch in one step, preserving order.

        Returns the position of the first appended record. The cursor is
        left where it was; callers decide whether to move it. A record whose
        id is already taken, in the store or earlier in the batch, is
        appended under a fresh id.
        """
        first_index = len(self._records)
        taken = {record.id for record in self._records}
        incoming: list[CertificateRecord] = []
        for record in records:
            if record.id in taken:
                record = replace(record, id=uuid4())
                log.info("store.reassigned_id", id=str(record.id))
            taken.add(record.id)
            incoming.append(record)
        if incoming:
            self._records.extend(incoming)
            self._revalidate_all()
            log.info("store.extended", added=len(incoming), size=len(self._records))
        return first_index

    def valid_records(self) -> list[CertificateRecord]:
        """
        Records that pass the Validator right now, in store order.

        Checks each record afresh rather than trusting its stored flag.
        """
        return [record for record in self._records if validate(record).is_valid]

    def reset(self) -> None:
        """Drop everything without asking. Used when the operator logs out."""
        self._records.clear()
        self._current_index = 0
        self._view = View.FORM

    # ──────────────────────── Internals ────────────────────────

    def _locate(self, cert_id: UUID) -> Result[int]:
        for index, record in enumerate(self._records):
            if record.id == cert_id:
                return Result.success(index)
        return ResultFailures.not_found("Certificate", str(cert_id))

    def _confirmed(self, prompt: str, value: int) -> Result[int]:
        if self._confirm(prompt):
            return Result.success(value)
        log.info("store.confirmation_declined", prompt=prompt)
        return ResultFailures.business_rule_error("Cancelled by operator")

    def _focus(self, index: int) -> None:
        self._current_index = index
        self._view = View.FORM

    def _write(self, index: int, record: CertificateRecord) -> CertificateRecord:
        validated = apply_validation(record)
        self._records[index] = validated
        return validated

    def _append_duplicate_of(self, index: int) -> CertificateRecord:
        self._records.append(self._records[index].duplicate())
        self._revalidate_all()
        self._focus(len(self._records) - 1)
        clone = self._records[-1]
        log.info("store.duplicated", source=str(self._records[index].id), id=str(clone.id))
        return clone

    def _remove_at(self, index: int) -> CertificateRecord:
        removed = self._records.pop(index)
        self._revalidate_all()
        if self._current_index >= len(self._records):
            self._current_index = max(0, len(self._records) - 1)
        log.info("store.deleted", id=str(removed.id), size=len(self._records))
        return removed

    def _clear(self, count: int) -> int:
        self._records.clear()
        self._current_index = 0
        log.info("store.cleared", removed=count)
        return count

    def _revalidate_all(self) -> None:
        self._records = [apply_validation(record) for record in self._records]
