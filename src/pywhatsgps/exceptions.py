"""Custom exception hierarchy for pywhatsgps."""

from __future__ import annotations

from typing import Any


class WhatsGpsError(Exception):
    """Base exception for all pywhatsgps errors."""


class ConfigError(WhatsGpsError):
    """Invalid or missing configuration."""


class TransportError(WhatsGpsError):
    """HTTP-level failure (network, timeout, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
        body: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        self.body = body
        super().__init__(message)


class ApiError(WhatsGpsError):
    """Backend returned a non-success reply (``ret != 1``).

    ``payload`` carries the raw reply for diagnostics.
    """

    def __init__(
        self,
        message: str,
        *,
        payload: Any = None,
        endpoint: str = "",
    ) -> None:
        self.payload = payload
        self.endpoint = endpoint
        super().__init__(message)


class AuthError(ApiError):
    """Every login variant was rejected or returned an unexpected shape."""


class SessionExpiredError(AuthError):
    """Session token rejected by the server.

    Raised when a position fetch fails with a reply that looks like an
    authentication problem (see :func:`pywhatsgps._api.positions.is_auth_failure`).
    The orchestrator catches this to drop the cached credential so the next
    cycle logs in again.
    """


class GeocodeError(WhatsGpsError):
    """Reverse geocoding lookup failed."""


class ConfigPersistenceError(WhatsGpsError):
    """Loading or saving tracker accounts failed."""
