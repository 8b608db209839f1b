"""Consolidated operator messages for batch outcomes."""

from __future__ import annotations

from battery_certs.domain.models import (
    MAX_ITEMIZED_FAILURES,
    CertificateRecord,
    GenerationSummary,
    IngestionSummary,
    battery_status,
)


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count != 1 else ''}"


def ingestion_message(summary: IngestionSummary) -> str:
    """
    One message for the whole ingestion batch.

    At most MAX_ITEMIZED_FAILURES failures are itemized; the rest are
    folded into a remainder count.
    """
    paragraphs: list[str] = []

    if summary.succeeded:
        paragraphs.append(
            f"Successfully processed {_plural(summary.succeeded, 'PDF')}!\n\n"
            f"{_plural(summary.succeeded, 'certificate')} added to your list.\n"
            "Please review the extracted data and complete any missing fields."
        )

    if summary.failed:
        paragraphs.append(f"Failed: {_plural(summary.failed, 'PDF')}")
        header = "Reasons:" if not summary.remaining_failures else f"Showing first {MAX_ITEMIZED_FAILURES} errors:"
        lines = [header] + [f"• {failure}" for failure in summary.itemized_failures]
        if summary.remaining_failures:
            lines.append(f"... and {summary.remaining_failures} more")
        paragraphs.append("\n".join(lines))

    return "\n\n".join(paragraphs)


def generation_message(summary: GenerationSummary) -> str:
    message = f"Successfully generated {summary.succeeded} certificate(s)!"
    if summary.failed:
        message += f"\n\nFailed: {summary.failed} certificate(s)"
    if summary.skipped_invalid:
        message += f"\n\nSkipped: {summary.skipped_invalid} certificate(s) with validation errors"
    return message


def describe_record(position: int, record: CertificateRecord, *, current: bool = False) -> str:
    """One line of the certificate list: position, vehicle, health and validity."""
    marker = ">" if current else " "
    vehicle = " ".join(part for part in (record.make, record.model) if part) or "(no vehicle)"
    registration = record.registration or "(no registration)"
    status = battery_status(record.state_of_health_percent).value
    validity = "valid" if record.is_valid else f"{len(record.validation_errors)} error(s)"
    line = (
        f"{marker} #{position} {registration:<12} {vehicle:<24} "
        f"{record.state_of_health_percent:>3}% {status:<9} {validity}"
    )
    if record.source_pdf_name:
        line += f"  [{record.source_pdf_name}]"
    return line
