from __future__ import annotations

import pytest
from conftest import FakeWhatsGpsBackend

from pywhatsgps._api.positions import fetch_positions, is_auth_failure
from pywhatsgps._constants import POSITIONS_ENDPOINT
from pywhatsgps.exceptions import ApiError, SessionExpiredError, TransportError


@pytest.mark.parametrize(
    "text",
    ["Please LOGIN again", "请先登录", "参数不能为空", "error c05"],
)
def test_is_auth_failure_matches_session_errors(text: str) -> None:
    assert is_auth_failure(text)


def test_is_auth_failure_ignores_other_errors() -> None:
    assert not is_auth_failure("device offline")


@pytest.mark.asyncio
async def test_fetch_positions_returns_raw_reports(backend: FakeWhatsGpsBackend) -> None:
    backend.reports["868"] = [{"carId": 7, "lat": 1, "lon": 2}]

    reports = await fetch_positions(backend, "token-868", "uid-868")

    assert reports == [{"carId": 7, "lat": 1, "lon": 2}]


@pytest.mark.asyncio
async def test_fetch_positions_non_list_data_is_empty() -> None:
    class Transport:
        async def post(self, *_args: object, **_kwargs: object) -> object:
            raise AssertionError("unexpected POST")

        async def get(self, endpoint: str, **_kwargs: object) -> object:
            return {"ret": 1, "data": None}

    assert await fetch_positions(Transport(), "t", "u") == []


@pytest.mark.asyncio
async def test_fetch_positions_auth_reply_raises_session_expired(backend: FakeWhatsGpsBackend) -> None:
    backend.expire_once_tokens.add("token-868")

    with pytest.raises(SessionExpiredError) as exc_info:
        await fetch_positions(backend, "token-868", "uid-868")

    assert exc_info.value.endpoint == POSITIONS_ENDPOINT
    assert exc_info.value.payload == {"ret": 0, "msg": "Please login first"}


@pytest.mark.asyncio
async def test_fetch_positions_http_error_body_is_classified(backend: FakeWhatsGpsBackend) -> None:
    with pytest.raises(SessionExpiredError, match="请重新登录"):
        await fetch_positions(backend, "garbage", "uid-868")


@pytest.mark.asyncio
async def test_fetch_positions_other_errors_raise_api_error(backend: FakeWhatsGpsBackend) -> None:
    backend.position_error_text["868"] = "device offline"

    with pytest.raises(ApiError) as exc_info:
        await fetch_positions(backend, "token-868", "uid-868")

    assert not isinstance(exc_info.value, SessionExpiredError)
    assert "device offline" in str(exc_info.value)


@pytest.mark.asyncio
async def test_fetch_positions_network_error_propagates() -> None:
    class Transport:
        async def post(self, *_args: object, **_kwargs: object) -> object:
            raise AssertionError("unexpected POST")

        async def get(self, endpoint: str, **_kwargs: object) -> object:
            raise TransportError("connection reset", endpoint=endpoint)

    with pytest.raises(TransportError):
        await fetch_positions(Transport(), "t", "u")


@pytest.mark.asyncio
async def test_fetch_positions_without_credential_raises() -> None:
    with pytest.raises(SessionExpiredError):
        await fetch_positions(FakeWhatsGpsBackend(), "", "uid")
