"""Tracker account model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class AccountConfig(BaseModel):
    """Credentials and display settings for one WhatsGPS account.

    Accounts are identified by ``label``; adding an account whose label is
    already known replaces the earlier one.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    imei: str = Field(default="", validation_alias=AliasChoices("imei", "login", "username"))
    """Login identifier (device IMEI or account name)."""
    password: str = Field(default="", validation_alias=AliasChoices("password", "pass", "pwd"))
    """Account secret."""
    label: str = Field(validation_alias=AliasChoices("label", "name"))
    """Display label, also used as the entity source label."""
    color: str | None = None
    """Optional marker color override (CSS color)."""

    @field_validator("imei", "password", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    @field_validator("label")
    @classmethod
    def _label_non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("label must be non-empty")
        return value

    @property
    def has_credentials(self) -> bool:
        return bool(self.imei) and bool(self.password)

    def to_record(self) -> dict[str, Any]:
        """Persistable representation (no server-generated or transient fields)."""
        return self.model_dump(exclude_none=True)
