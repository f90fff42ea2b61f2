from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from pywhatsgps._constants import LOGIN_ENDPOINT, POSITIONS_ENDPOINT
from pywhatsgps.exceptions import TransportError


@dataclass
class FakeWhatsGpsBackend:
    """In-memory stand-in for the WhatsGPS web API.

    ``accounts`` maps login name to password. Login succeeds only for the
    ``accepted_variant`` shape: ``(as_json, user_field, password_field)``.
    """

    accounts: dict[str, str] = field(default_factory=dict)
    reports: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    accepted_variant: tuple[bool, str, str] = (False, "name", "password")
    expire_once_tokens: set[str] = field(default_factory=set)
    position_error_text: dict[str, str] = field(default_factory=dict)
    calls: dict[str, int] = field(default_factory=dict)
    login_attempts: list[tuple[bool, dict[str, Any]]] = field(default_factory=list)
    on_get: Callable[[str], Any] | None = None
    on_post: Callable[[dict[str, Any]], Any] | None = None
    login_latency: float = 0.0
    _expired_already: set[str] = field(default_factory=set)

    def _record_call(self, endpoint: str) -> None:
        self.calls[endpoint] = self.calls.get(endpoint, 0) + 1

    def _user_for_token(self, token: str) -> str | None:
        prefix = "token-"
        return token[len(prefix) :] if token.startswith(prefix) else None

    async def post(self, endpoint: str, payload: Mapping[str, Any], *, as_json: bool = False) -> Any:
        self._record_call(endpoint)
        if endpoint != LOGIN_ENDPOINT:
            raise AssertionError(f"Unexpected POST endpoint in fake backend: {endpoint}")
        body = dict(payload)
        self.login_attempts.append((as_json, body))
        if self.login_latency:
            await asyncio.sleep(self.login_latency)
        if self.on_post is not None:
            await self.on_post(body)

        want_json, user_field, password_field = self.accepted_variant
        if as_json is not want_json or user_field not in body or password_field not in body:
            return {"ret": 0, "msg": "参数不能为空"}
        user = body[user_field]
        password = body[password_field]

        if self.accounts.get(user) != password:
            return {"ret": 0, "msg": "用户名或密码错误"}
        return {"ret": 1, "data": {"token": f"token-{user}", "userId": f"uid-{user}", "userName": user}}

    async def get(
        self,
        endpoint: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        self._record_call(endpoint)
        if endpoint != POSITIONS_ENDPOINT:
            raise AssertionError(f"Unexpected GET endpoint in fake backend: {endpoint}")
        token = (headers or {}).get("token", "")
        user = self._user_for_token(token)
        if self.on_get is not None and user is not None:
            await self.on_get(user)

        if token in self.expire_once_tokens and token not in self._expired_already:
            self._expired_already.add(token)
            return {"ret": 0, "msg": "Please login first"}
        if user is None:
            raise TransportError("HTTP 401", status_code=401, endpoint=endpoint, body="token invalid, 请重新登录")
        if user in self.position_error_text:
            return {"ret": 0, "msg": self.position_error_text[user]}
        assert (params or {}).get("targetUserId") == f"uid-{user}"
        return {"ret": 1, "data": self.reports.get(user, [])}


@pytest.fixture
def backend() -> FakeWhatsGpsBackend:
    return FakeWhatsGpsBackend()


@dataclass
class FakeResponse:
    status: int = 200
    payload: Any = None
    body: str | None = None

    async def json(self, content_type: str | None = None) -> Any:
        return self.payload

    async def text(self) -> str:
        return self.body if self.body is not None else json.dumps(self.payload)

    async def __aenter__(self) -> FakeResponse:
        return self

    async def __aexit__(self, *_exc: Any) -> None:
        return None


@dataclass
class FakeHttpSession:
    """Records requests and replays queued responses (aiohttp-like surface)."""

    responses: list[FakeResponse] = field(default_factory=list)
    requests: list[dict[str, Any]] = field(default_factory=list)

    def _next(self, **request: Any) -> FakeResponse:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"No queued response for {request}")
        return self.responses.pop(0)

    def get(self, url: str, *, params: Any = None, headers: Any = None) -> FakeResponse:
        return self._next(method="GET", url=url, params=params, headers=headers)

    def post(self, url: str, *, params: Any = None, json: Any = None, headers: Any = None) -> FakeResponse:
        return self._next(method="POST", url=url, params=params, json=json, headers=headers)

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        return self._next(method=method, url=url, **kwargs)
