"""Login reply model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class LoginData(BaseModel):
    """``data`` object returned by a successful login.

    Parameters
    ----------
    token : str
        Session token sent in the ``token`` header of later requests.
    user_id : str
        Backend user id, used as ``targetUserId`` for position fetches.
    user_name : str or None
        Account name as known by the backend.
    raw : dict
        Full ``data`` dict for access to additional fields.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    token: str = Field(validation_alias=AliasChoices("token", "sessionToken"))
    user_id: str = Field(validation_alias=AliasChoices("userId", "user_id", "id"))
    user_name: str | None = Field(default=None, validation_alias=AliasChoices("userName", "name"))
    raw: dict[str, Any] = Field(default_factory=dict)

    @field_validator("token", "user_id", mode="before")
    @classmethod
    def _non_empty_str(cls, value: Any) -> str:
        text = "" if value is None else str(value).strip()
        if not text:
            raise ValueError("must be non-empty")
        return text

    @field_validator("user_name", mode="before")
    @classmethod
    def _optional_str(cls, value: Any) -> str | None:
        return None if value is None else str(value)
