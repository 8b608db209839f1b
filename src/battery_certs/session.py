"""
Session — the single active bearer token and what happens when it dies.

The session is an explicit object handed to every component that talks to
the certificate service. An AUTHENTICATION_ERROR from any call site goes
through `guard`, which expires the session and notifies every registered
callback, so the behaviour is the same whichever pipeline saw the failure.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

import structlog
from railway import ResultFailures
from railway.result import Result

from battery_certs.domain.ports import Authenticator

T = TypeVar("T")

SESSION_EXPIRED_MESSAGE = "Session expired. Please login again."

log = structlog.get_logger()


class Session:
    """Holds at most one token; expiry clears it and fires the callbacks."""

    def __init__(
        self,
        authenticator: Authenticator,
        on_expired: Callable[[str], None] | None = None,
    ) -> None:
        self._authenticator = authenticator
        self._token: str | None = None
        self._listeners: list[Callable[[str], None]] = []
        if on_expired is not None:
            self._listeners.append(on_expired)

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def add_expiry_listener(self, listener: Callable[[str], None]) -> None:
        self._listeners.append(listener)

    def login(self, password: str) -> Result[str]:
        """Exchange the operator's password for a token."""
        if not password.strip():
            return ResultFailures.validation_error("Please enter password")
        return self._authenticator.login(password).peek(self._start).peek_failure(
            lambda err: log.warning("session.login_failed", code=err.code.value, error=err.message)
        )

    def require_token(self) -> Result[str]:
        if self._token is None:
            return ResultFailures.authentication_error("Not logged in")
        return Result.success(self._token)

    def guard(self, result: Result[T]) -> Result[T]:
        """Expire the session if `result` is an authentication failure."""
        if result.is_failure() and result.error().is_authentication_failure:
            self.expire(SESSION_EXPIRED_MESSAGE)
        return result

    def expire(self, reason: str) -> None:
        """Forced logout: clear the token and tell every listener."""
        was_authenticated = self._token is not None
        self._token = None
        log.warning("session.expired", reason=reason, was_authenticated=was_authenticated)
        for listener in self._listeners:
            listener(reason)

    def logout(self) -> None:
        """Operator-initiated logout; listeners are not notified."""
        self._token = None
        log.info("session.logged_out")

    def _start(self, token: str) -> None:
        self._token = token
        log.info("session.logged_in")
