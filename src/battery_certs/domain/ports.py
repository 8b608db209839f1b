"""
Ports — Protocol-based interfaces for the collaborators of the core.

These define WHAT the batch manager needs (contracts) without specifying
HOW it's done (implementation). Following hexagonal architecture:

  Domain ← Ports (protocols) ← Adapters (implementations)

Each port is a Protocol (structural typing) so adapters satisfy
the contract simply by implementing the methods.

Remote capabilities (all authenticated with one bearer token):
  1. Authenticator          → exchange a password for the token
  2. ReferenceTableProvider → known makes and models
  3. FieldExtractor         → structured fields from one PDF
  4. CertificateRenderer    → PDF bytes for one certificate

Any of them may fail with AUTHENTICATION_ERROR, which callers treat as an
expired session.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from railway.result import Result

from battery_certs.domain.models import CertificateRecord, ExtractedFields, UploadedFile
from battery_certs.domain.reference import ReferenceTable


@runtime_checkable
class Authenticator(Protocol):
    """
    Port: obtain a bearer token for the certificate service.

    Returns Result[str] where str is the token.
    """

    def login(self, password: str) -> Result[str]: ...


@runtime_checkable
class ReferenceTableProvider(Protocol):
    """Port: fetch the make → models reference table."""

    def fetch(self, token: str) -> Result[ReferenceTable]: ...


@runtime_checkable
class FieldExtractor(Protocol):
    """
    Port: extract certificate fields from one uploaded PDF.

    A response without usable data is a failure, not an empty success.
    """

    def extract(self, token: str, upload: UploadedFile) -> Result[ExtractedFields]: ...


@runtime_checkable
class CertificateRenderer(Protocol):
    """
    Port: render one certificate to PDF bytes.

    The service also delivers the PDF when the record names a recipient.
    """

    def render(self, token: str, record: CertificateRecord) -> Result[bytes]: ...


@runtime_checkable
class ArtifactSink(Protocol):
    """Port: save a rendered certificate where the operator can pick it up."""

    def save(self, filename: str, content: bytes) -> Result[Path]: ...


@runtime_checkable
class Confirmation(Protocol):
    """Port: ask the operator a yes/no question before a destructive step."""

    def __call__(self, prompt: str) -> bool: ...
