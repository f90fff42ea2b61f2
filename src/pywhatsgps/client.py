"""High-level async client for the WhatsGPS web API."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from pywhatsgps._api.login import authenticate
from pywhatsgps._api.positions import fetch_positions
from pywhatsgps._transport import HttpTransport, Transport
from pywhatsgps.config import TrackerConfig
from pywhatsgps.exceptions import WhatsGpsError
from pywhatsgps.ingestion.normalize import normalize_reports
from pywhatsgps.models.entity import TrackedEntity
from pywhatsgps.session import SessionCredential

_logger = logging.getLogger(__name__)


class WhatsGpsClient:
    """Async client for the WhatsGPS web API.

    The client is stateless with respect to accounts: session credentials
    are passed in and returned explicitly so one client can serve many
    accounts concurrently.

    Usage::

        async with WhatsGpsClient(config) as client:
            credential = await client.authenticate("login", "secret")
            entities = await client.get_entities(credential, source_label="A")
    """

    def __init__(
        self,
        config: TrackerConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> WhatsGpsClient:
        if self._external_transport:
            return self
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(
            self._config.base_url,
            self._http_session,
            timeout=self._config.request_timeout,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise WhatsGpsError("Client not initialized. Use 'async with WhatsGpsClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def authenticate(self, username: str, password: str) -> SessionCredential:
        """Log in, probing payload variants until one is accepted."""
        return await authenticate(self._require_transport(), username, password)

    async def get_positions(self, credential: SessionCredential) -> list[dict[str, Any]]:
        """Raw position reports visible to the credential's user."""
        return await fetch_positions(self._require_transport(), credential.token, credential.user_id)

    async def get_entities(self, credential: SessionCredential, *, source_label: str) -> list[TrackedEntity]:
        """Position reports normalized into tracked entities."""
        reports = await self.get_positions(credential)
        entities = normalize_reports(reports, source_label)
        _logger.debug("Fetched %d entities for %s", len(entities), source_label)
        return entities
