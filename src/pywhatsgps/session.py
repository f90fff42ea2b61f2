"""Per-account session credential cache."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SessionCredential(BaseModel):
    """Token pair obtained by a successful login.

    Parameters
    ----------
    token : str
        Session token for the ``token`` request header.
    user_id : str
        Backend user id the token belongs to.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    token: str
    user_id: str


class SessionCache:
    """Session credentials keyed by account label.

    A missing key means "not authenticated"; the orchestrator logs in again
    on the next cycle. Credentials are never persisted.
    """

    def __init__(self) -> None:
        self._credentials: dict[str, SessionCredential] = {}

    def get(self, key: str) -> SessionCredential | None:
        return self._credentials.get(key)

    def set(self, key: str, credential: SessionCredential) -> None:
        self._credentials[key] = credential

    def invalidate(self, key: str) -> None:
        """Drop the credential so the next cycle re-authenticates."""
        self._credentials.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._credentials

    def __len__(self) -> int:
        return len(self._credentials)
