"""Login endpoint.

Endpoint:
  - /user/login.do

The backend's accepted field names and body encoding vary between
deployments and are undocumented, so login walks an ordered table of
candidate payload shapes and stops at the first one the server accepts.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from pywhatsgps._constants import (
    LOGIN_BASE_FIELDS,
    LOGIN_ENDPOINT,
    LOGIN_PASSWORD_FIELDS,
    LOGIN_USER_FIELDS,
    RET_OK,
)
from pywhatsgps._redact import redact_for_log
from pywhatsgps._transport import Transport
from pywhatsgps.exceptions import AuthError, TransportError
from pywhatsgps.models.token import LoginData
from pywhatsgps.session import SessionCredential

_logger = logging.getLogger(__name__)


class BodyEncoding(enum.Enum):
    FORM = "form"
    JSON = "json"


@dataclass(frozen=True, slots=True)
class LoginVariant:
    """One candidate login payload shape."""

    encoding: BodyEncoding
    user_field: str
    password_field: str

    def build_payload(self, username: str, password: str) -> dict[str, str]:
        return {
            **LOGIN_BASE_FIELDS,
            self.user_field: username,
            self.password_field: password,
        }

    def __str__(self) -> str:
        return f"{self.encoding.value}:{self.user_field}/{self.password_field}"


def build_login_variants(
    encodings: tuple[BodyEncoding, ...] = (BodyEncoding.FORM, BodyEncoding.JSON),
    user_fields: tuple[str, ...] = LOGIN_USER_FIELDS,
    password_fields: tuple[str, ...] = LOGIN_PASSWORD_FIELDS,
) -> tuple[LoginVariant, ...]:
    """Cross product of encodings, user fields and password fields, in try order."""
    return tuple(
        LoginVariant(encoding, user_field, password_field)
        for encoding in encodings
        for user_field in user_fields
        for password_field in password_fields
    )


LOGIN_VARIANTS: tuple[LoginVariant, ...] = build_login_variants()


def parse_login_response(response: Any) -> LoginData:
    """Extract login data from a ``/user/login.do`` reply.

    Raises
    ------
    AuthError
        If the reply is not a success or lacks ``token``/``userId``.
    """
    if not isinstance(response, dict) or response.get("ret") != RET_OK:
        raise AuthError(
            f"Login rejected: {response!r:.200}",
            payload=response,
            endpoint=LOGIN_ENDPOINT,
        )

    data = response.get("data")
    if not isinstance(data, dict):
        raise AuthError(
            "Login response missing data",
            payload=response,
            endpoint=LOGIN_ENDPOINT,
        )

    try:
        return LoginData.model_validate({**data, "raw": data})
    except ValidationError as exc:
        raise AuthError(
            "Login response missing token fields",
            payload=response,
            endpoint=LOGIN_ENDPOINT,
        ) from exc


async def login(
    transport: Transport,
    username: str,
    password: str,
    *,
    variants: tuple[LoginVariant, ...] = LOGIN_VARIANTS,
) -> LoginData:
    """Try each login variant once, returning the first accepted login.

    Raises
    ------
    AuthError
        If credentials are empty or every variant fails.
    """
    if not username or not password:
        raise AuthError("Login requires both username and password", endpoint=LOGIN_ENDPOINT)

    last_reply: Any = None
    for variant in variants:
        payload = variant.build_payload(username, password)
        _logger.debug("Login attempt %s payload=%s", variant, redact_for_log(payload))
        try:
            response = await transport.post(
                LOGIN_ENDPOINT,
                payload,
                as_json=variant.encoding is BodyEncoding.JSON,
            )
        except TransportError as exc:
            _logger.debug("Login attempt %s request error: %s", variant, exc.body or exc)
            last_reply = exc.body or str(exc)
            continue

        try:
            data = parse_login_response(response)
        except AuthError:
            _logger.debug("Login attempt %s not accepted: %s", variant, redact_for_log(response))
            last_reply = response
            continue

        _logger.debug("Login accepted with variant %s (user_id=%s)", variant, data.user_id)
        return data

    raise AuthError(
        f"Login failed after {len(variants)} attempts; check credentials and API requirements",
        payload=last_reply,
        endpoint=LOGIN_ENDPOINT,
    )


async def authenticate(
    transport: Transport,
    username: str,
    password: str,
    *,
    variants: tuple[LoginVariant, ...] = LOGIN_VARIANTS,
) -> SessionCredential:
    """Exchange an account secret for a session credential."""
    data = await login(transport, username, password, variants=variants)
    return SessionCredential(token=data.token, user_id=data.user_id)
