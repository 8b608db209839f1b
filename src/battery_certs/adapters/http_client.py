"""
HTTP adapter — certificate service clients via httpx.

Adapter layer — implements Authenticator, ReferenceTableProvider,
FieldExtractor and CertificateRenderer using httpx for sync HTTP calls.

Service contract:
  1. POST /api/login                  {"password"}        → {"success", "token"}
  2. GET  /api/car-data               bearer              → {"data": {make: [models]}}
  3. POST /api/extract-pdf            bearer, multipart   → {"success", "data": {...}}
  4. POST /api/generate-certificate   bearer, JSON record → PDF bytes

Status classification (railway HttpStatusMapper): 401 → AUTHENTICATION_ERROR,
which callers treat as an expired session; other non-2xx → the service's
`error` text on EXTERNAL_SERVICE_ERROR. Timeouts → TIMEOUT_ERROR, other
transport errors → EXTERNAL_SERVICE_ERROR.

Login and the reference table fetch are idempotent and retry transient
network errors via tenacity. Extraction and rendering are never retried.
All errors are captured into Result failures; no exceptions leak to the
business logic layer.
"""

from __future__ import annotations

from collections.abc import Callable

import httpx
import structlog
from railway import ErrorCode, HttpStatusMapper, failure_for_status
from railway.result import Result
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from battery_certs.adapters.schemas import (
    ErrorBody,
    ExtractionResponse,
    LoginResponse,
    ReferenceTableResponse,
    record_payload,
)
from battery_certs.domain.models import CertificateRecord, ExtractedFields, UploadedFile
from battery_certs.domain.reference import ReferenceTable

log = structlog.get_logger()

_transient_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=0.1, max=30),
    retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
    reraise=True,
)


def _error_text(response: httpx.Response, fallback: str) -> str:
    """The service's `error` field, or `fallback` when the body has none."""
    try:
        body = ErrorBody.model_validate(response.json())
    except ValueError:
        return fallback
    return body.error or fallback


def _exchange(send: Callable[[], httpx.Response], fallback: str) -> Result[httpx.Response]:
    """
    Run one HTTP exchange and classify its outcome.

    Returns the response on 2xx. Transport exceptions and non-2xx statuses
    become failures whose message is fit to show the operator.
    """
    try:
        response = send()
    except httpx.TimeoutException as e:
        return Result.failure(ErrorCode.TIMEOUT_ERROR, "Request timed out", e)
    except httpx.HTTPError as e:
        return Result.failure(ErrorCode.EXTERNAL_SERVICE_ERROR, str(e) or fallback, e)

    if not HttpStatusMapper.is_success(response.status_code):
        log.warning("http.request_rejected", url=str(response.request.url), status=response.status_code)
        return failure_for_status(response.status_code, _error_text(response, fallback))
    return Result.success(response)


def _parse(response: httpx.Response, schema: type, message: str) -> Result:
    return Result.from_computation(
        lambda: schema.model_validate(response.json()),
        ErrorCode.EXTERNAL_SERVICE_ERROR,
        message,
    )


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class HttpAuthenticator:
    """
    Exchange the operator password for a bearer token.

    Implements the Authenticator port.
    """

    def __init__(self, login_url: str, timeout: float | None = 60.0) -> None:
        self._login_url = login_url
        self._timeout = timeout

    def login(self, password: str) -> Result[str]:
        return (
            _exchange(lambda: self._do_login(password), "Login failed")
            .flat_map(lambda response: _parse(response, LoginResponse, "Invalid response from server"))
            .flat_map(self._token_from)
        )

    @_transient_retry
    def _do_login(self, password: str) -> httpx.Response:
        """HTTP call with retry. Exceptions are classified by _exchange."""
        with httpx.Client(timeout=self._timeout) as client:
            return client.post(self._login_url, json={"password": password})

    @staticmethod
    def _token_from(body: LoginResponse) -> Result[str]:
        if body.success and body.token:
            log.info("login.token_acquired")
            return Result.success(body.token)
        return Result.failure(ErrorCode.EXTERNAL_SERVICE_ERROR, "Invalid response from server")


class HttpReferenceTableProvider:
    """
    Fetch the make → models reference table.

    Implements the ReferenceTableProvider port.
    """

    def __init__(self, reference_url: str, timeout: float | None = 60.0) -> None:
        self._reference_url = reference_url
        self._timeout = timeout

    def fetch(self, token: str) -> Result[ReferenceTable]:
        return (
            _exchange(lambda: self._do_fetch(token), "Could not load vehicle data")
            .flat_map(lambda response: _parse(response, ReferenceTableResponse, "Malformed vehicle data"))
            .map(lambda body: ReferenceTable(body.data))
            .peek(lambda table: log.info("reference_table.loaded", makes=len(table)))
        )

    @_transient_retry
    def _do_fetch(self, token: str) -> httpx.Response:
        with httpx.Client(timeout=self._timeout) as client:
            return client.get(self._reference_url, headers=_bearer(token))


class HttpFieldExtractor:
    """
    Upload one PDF and return the fields the service extracted.

    Implements the FieldExtractor port. A response without `success` and
    `data` is a failure.
    """

    def __init__(self, extract_url: str, timeout: float | None = 60.0) -> None:
        self._extract_url = extract_url
        self._timeout = timeout

    def extract(self, token: str, upload: UploadedFile) -> Result[ExtractedFields]:
        return (
            _exchange(lambda: self._do_upload(token, upload), "Upload failed")
            .flat_map(lambda response: _parse(response, ExtractionResponse, "Malformed extraction response"))
            .flat_map(self._fields_from)
        )

    def _do_upload(self, token: str, upload: UploadedFile) -> httpx.Response:
        with httpx.Client(timeout=self._timeout) as client:
            return client.post(
                self._extract_url,
                headers=_bearer(token),
                files={"file": (upload.name, upload.content, "application/pdf")},
            )

    @staticmethod
    def _fields_from(body: ExtractionResponse) -> Result[ExtractedFields]:
        if body.success and body.data is not None:
            return Result.success(body.data.to_fields())
        return Result.failure(ErrorCode.EXTERNAL_SERVICE_ERROR, "No data extracted from PDF")


class HttpCertificateRenderer:
    """
    Render one certificate to PDF bytes.

    Implements the CertificateRenderer port. The whole record is sent; the
    service emails the PDF when `recipient_email` is set.
    """

    def __init__(self, render_url: str, timeout: float | None = 60.0) -> None:
        self._render_url = render_url
        self._timeout = timeout

    def render(self, token: str, record: CertificateRecord) -> Result[bytes]:
        return (
            _exchange(lambda: self._do_render(token, record), "Failed to generate certificate")
            .map(lambda response: response.content)
            .ensure(lambda content: len(content) > 0, ErrorCode.EXTERNAL_SERVICE_ERROR, "Empty certificate returned")
        )

    def _do_render(self, token: str, record: CertificateRecord) -> httpx.Response:
        with httpx.Client(timeout=self._timeout) as client:
            response = client.post(self._render_url, headers=_bearer(token), json=record_payload(record))
            log.info(
                "render.response",
                registration=record.registration,
                status=response.status_code,
                size_bytes=len(response.content),
            )
            return response
