"""
Local filesystem adapter — read PDFs to upload, save rendered certificates.

Implements the ArtifactSink port. Write errors are captured as
TECHNICAL_ERROR failures, so one unwritable artifact fails that certificate
only and the generation batch carries on.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import structlog
from railway import ErrorCode
from railway.result import Result

from battery_certs.domain.models import UploadedFile

log = structlog.get_logger()


def safe_filename(filename: str) -> str:
    """Keep the artifact inside the output directory whatever the registration says."""
    cleaned = filename.replace("/", "_").replace("\\", "_").strip()
    return cleaned or "certificate.pdf"


class DirectoryArtifactSink:
    """Saves each certificate as `<output_dir>/<registration>.pdf`, overwriting."""

    def __init__(self, output_dir: Path) -> None:
        self._output_dir = output_dir

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def save(self, filename: str, content: bytes) -> Result[Path]:
        target = self._output_dir / safe_filename(filename)
        return Result.from_computation(
            lambda: self._write(target, content),
            ErrorCode.TECHNICAL_ERROR,
            f"Could not save {target.name}",
        )

    def _write(self, target: Path, content: bytes) -> Path:
        self._output_dir.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        log.info("artifact.saved", path=str(target), size_bytes=len(content))
        return target


def load_uploads(paths: Iterable[Path]) -> list[UploadedFile]:
    """
    Read files from disk as uploads, named by their basename.

    Raises OSError for unreadable paths; the CLI reports those before any
    batch starts.
    """
    return [UploadedFile.from_bytes(path.name, path.read_bytes()) for path in paths]
