"""HTTP transport for the WhatsGPS web API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol
from urllib.parse import urlencode

import aiohttp

from pywhatsgps._constants import DEFAULT_REQUEST_TIMEOUT, FORM_CONTENT_TYPE, JSON_CONTENT_TYPE, USER_AGENT
from pywhatsgps._redact import redact_headers
from pywhatsgps.exceptions import TransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Tests pass fake backends implementing these two coroutines; production
    code uses :class:`HttpTransport`.
    """

    async def post(self, endpoint: str, payload: Mapping[str, Any], *, as_json: bool = False) -> Any: ...

    async def get(
        self,
        endpoint: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any: ...


class HttpTransport:
    """aiohttp-backed transport returning decoded JSON bodies.

    Non-200 replies raise :class:`TransportError` carrying the reply text in
    ``body`` so callers can inspect backend error messages. Every request is
    bounded by *timeout* seconds.
    """

    def __init__(
        self,
        base_url: str,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def post(self, endpoint: str, payload: Mapping[str, Any], *, as_json: bool = False) -> Any:
        """POST *payload* form-encoded, or as JSON when *as_json* is set."""
        headers = {
            "content-type": JSON_CONTENT_TYPE if as_json else FORM_CONTENT_TYPE,
            "user-agent": USER_AGENT,
        }
        if as_json:
            body = json.dumps(dict(payload), ensure_ascii=False)
        else:
            body = urlencode({k: "" if v is None else str(v) for k, v in payload.items()})
        return await self._request("POST", endpoint, data=body.encode("utf-8"), headers=headers)

    async def get(
        self,
        endpoint: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        merged_headers = {"user-agent": USER_AGENT, **(headers or {})}
        query = {k: str(v) for k, v in (params or {}).items()}
        return await self._request("GET", endpoint, params=query, headers=merged_headers)

    async def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        url = f"{self._base_url}{endpoint}"
        _logger.debug("%s %s headers=%s", method, url, redact_headers(kwargs.get("headers")))

        try:
            async with self._http.request(method, url, timeout=self._timeout, **kwargs) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise TransportError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                        body=text,
                    )
        except TransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise TransportError(
                f"Request to {endpoint} failed: {exc!r}",
                endpoint=endpoint,
            ) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise TransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=200,
                endpoint=endpoint,
                body=text,
            ) from exc
