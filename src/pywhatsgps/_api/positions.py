"""Vehicle position endpoint.

Endpoint:
  - /carStatus/getByUserId.do
"""

from __future__ import annotations

import json
import logging
from typing import Any, NoReturn

from pywhatsgps._constants import AUTH_FAILURE_PATTERN, POSITIONS_ENDPOINT, POSITIONS_MAP_TYPE, RET_OK
from pywhatsgps._transport import Transport
from pywhatsgps.exceptions import ApiError, SessionExpiredError, TransportError

_logger = logging.getLogger(__name__)


def is_auth_failure(text: str) -> bool:
    """Whether backend error text indicates an invalid or expired session.

    The backend has no documented error codes for this, so this is a
    substring heuristic over the diagnostic text.
    """
    return bool(AUTH_FAILURE_PATTERN.search(text))


def describe_payload(payload: Any) -> str:
    """Serialize a reply for error messages, keeping non-ASCII text readable."""
    if isinstance(payload, str):
        return payload
    try:
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        return repr(payload)


def _raise_for_reply(payload: Any, text: str) -> NoReturn:
    message = f"Position fetch failed: {text}"
    if is_auth_failure(text):
        raise SessionExpiredError(message, payload=payload, endpoint=POSITIONS_ENDPOINT)
    raise ApiError(message, payload=payload, endpoint=POSITIONS_ENDPOINT)


async def fetch_positions(transport: Transport, token: str, user_id: str) -> list[dict[str, Any]]:
    """Fetch the current raw position reports for one account.

    Raises
    ------
    SessionExpiredError
        If the credential is empty or the reply looks like an auth failure.
    ApiError
        For any other non-success reply.
    """
    if not token or not user_id:
        raise SessionExpiredError("Position fetch requires token and user id", endpoint=POSITIONS_ENDPOINT)

    try:
        response = await transport.get(
            POSITIONS_ENDPOINT,
            params={"targetUserId": user_id, "mapType": POSITIONS_MAP_TYPE},
            headers={"token": token},
        )
    except TransportError as exc:
        if not exc.body:
            raise
        _logger.debug("Position fetch HTTP %s: %s", exc.status_code, exc.body[:200])
        _raise_for_reply(exc.body, exc.body)

    if not isinstance(response, dict) or response.get("ret") != RET_OK:
        text = describe_payload(response)
        _logger.debug("Position fetch not successful: %s", text[:200])
        _raise_for_reply(response, text)

    data = response.get("data")
    if not isinstance(data, list):
        return []
    return list(data)
