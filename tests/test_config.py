from __future__ import annotations

import pytest

from pywhatsgps.config import TrackerConfig
from pywhatsgps.exceptions import ConfigError

_ENV_KEYS = (
    "WHATSGPS_LOGIN_A",
    "WHATSGPS_PASS_A",
    "WHATSGPS_LOGIN_B",
    "WHATSGPS_PASS_B",
    "WHATSGPS_BASE_URL",
    "WHATSGPS_POLL_INTERVAL",
    "WHATSGPS_ANIMATION_DURATION",
    "WHATSGPS_ACCOUNT_TIMEOUT",
    "WHATSGPS_REQUEST_TIMEOUT",
    "WHATSGPS_ACCOUNTS_FILE",
    "WHATSGPS_STORE_URL",
    "WHATSGPS_STORE_KEY",
    "WHATSGPS_GEOCODE_URL",
    "WHATSGPS_GEOCODE_LANGUAGE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_from_env_defaults() -> None:
    config = TrackerConfig.from_env()

    assert config.base_url == "https://www.whatsgps.com"
    assert config.poll_interval == 15.0
    assert config.animation_duration == 0.6
    assert config.account_timeout == 10.0
    assert config.request_timeout == 10.0
    assert config.accounts_file is None


def test_from_env_reads_variables_and_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WHATSGPS_LOGIN_A", "login-a")
    monkeypatch.setenv("WHATSGPS_PASS_A", "pass-a")
    monkeypatch.setenv("WHATSGPS_POLL_INTERVAL", "5")
    monkeypatch.setenv("WHATSGPS_GEOCODE_LANGUAGE", "en")

    config = TrackerConfig.from_env(poll_interval=2.5, login_b="login-b")

    assert config.login_a == "login-a"
    assert config.password_a == "pass-a"
    assert config.login_b == "login-b"
    assert config.poll_interval == 2.5
    assert config.geocode_language == "en"


@pytest.mark.parametrize("value", ["soon", "0", "-3"])
def test_from_env_rejects_invalid_intervals(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("WHATSGPS_POLL_INTERVAL", value)

    with pytest.raises(ConfigError, match="WHATSGPS_POLL_INTERVAL"):
        TrackerConfig.from_env()


def test_static_accounts_are_labelled_a_and_b() -> None:
    config = TrackerConfig(login_a="la", password_a="pa")

    account_a, account_b = config.static_accounts()

    assert (account_a.label, account_a.imei, account_a.has_credentials) == ("A", "la", True)
    assert (account_b.label, account_b.has_credentials) == ("B", False)
