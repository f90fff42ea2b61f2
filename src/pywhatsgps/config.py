"""Tracker configuration for pywhatsgps."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pywhatsgps._constants import (
    BASE_URL,
    DEFAULT_ACCOUNT_TIMEOUT,
    DEFAULT_ANIMATION_DURATION,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
    GEOCODE_LANGUAGE,
    GEOCODE_URL,
    STATIC_ACCOUNT_LABELS,
)
from pywhatsgps.exceptions import ConfigError
from pywhatsgps.models.account import AccountConfig


def _env_float(env_key: str, value: str | None, default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value)
    except ValueError as exc:
        raise ConfigError(f"{env_key} must be a number, got {value!r}") from exc
    if parsed <= 0:
        raise ConfigError(f"{env_key} must be positive, got {value!r}")
    return parsed


@dataclasses.dataclass(frozen=True)
class TrackerConfig:
    """Tracker configuration.

    Parameters
    ----------
    login_a, password_a : str
        Credentials of the first static account (label ``"A"``).
    login_b, password_b : str
        Credentials of the second static account (label ``"B"``).
    base_url : str
        WhatsGPS API base URL.
    poll_interval : float
        Seconds between polling cycles.
    animation_duration : float
        Seconds a marker takes to glide to a newly reported position.
    account_timeout : float
        Upper bound in seconds a cycle waits for one account. A login still
        running when the bound expires carries on in the background and is
        picked up by the next cycle.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    accounts_file : str or None
        Path of the JSON file holding user-added accounts.
    store_url, store_key : str or None
        PostgREST endpoint and API key for remote account persistence.
        Takes precedence over ``accounts_file`` when both are set.
    geocode_url : str
        Nominatim-compatible reverse geocoding base URL.
    geocode_language : str
        ``Accept-Language`` sent with geocoding requests.
    """

    login_a: str = ""
    password_a: str = ""
    login_b: str = ""
    password_b: str = ""
    base_url: str = BASE_URL
    poll_interval: float = DEFAULT_POLL_INTERVAL
    animation_duration: float = DEFAULT_ANIMATION_DURATION
    account_timeout: float = DEFAULT_ACCOUNT_TIMEOUT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    accounts_file: str | None = None
    store_url: str | None = None
    store_key: str | None = None
    geocode_url: str = GEOCODE_URL
    geocode_language: str = GEOCODE_LANGUAGE

    def static_accounts(self) -> list[AccountConfig]:
        """The two environment-provided accounts, labelled ``A`` and ``B``.

        Accounts without credentials are still returned; the orchestrator
        skips them with an empty success.
        """
        label_a, label_b = STATIC_ACCOUNT_LABELS
        return [
            AccountConfig(imei=self.login_a, password=self.password_a, label=label_a),
            AccountConfig(imei=self.login_b, password=self.password_b, label=label_b),
        ]

    @classmethod
    def from_env(cls, **overrides: Any) -> TrackerConfig:
        """Create configuration from ``WHATSGPS_*`` environment variables.

        Explicit keyword arguments override environment values.

        Raises
        ------
        ConfigError
            If a numeric variable cannot be parsed or is not positive.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "WHATSGPS_LOGIN_A": "login_a",
            "WHATSGPS_PASS_A": "password_a",
            "WHATSGPS_LOGIN_B": "login_b",
            "WHATSGPS_PASS_B": "password_b",
            "WHATSGPS_BASE_URL": "base_url",
            "WHATSGPS_ACCOUNTS_FILE": "accounts_file",
            "WHATSGPS_STORE_URL": "store_url",
            "WHATSGPS_STORE_KEY": "store_key",
            "WHATSGPS_GEOCODE_URL": "geocode_url",
            "WHATSGPS_GEOCODE_LANGUAGE": "geocode_language",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_FLOAT_MAP = {
            "WHATSGPS_POLL_INTERVAL": ("poll_interval", DEFAULT_POLL_INTERVAL),
            "WHATSGPS_ANIMATION_DURATION": ("animation_duration", DEFAULT_ANIMATION_DURATION),
            "WHATSGPS_ACCOUNT_TIMEOUT": ("account_timeout", DEFAULT_ACCOUNT_TIMEOUT),
            "WHATSGPS_REQUEST_TIMEOUT": ("request_timeout", DEFAULT_REQUEST_TIMEOUT),
        }
        for env_key, (field_name, default) in _ENV_FLOAT_MAP.items():
            if field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, env.get(env_key), default)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
