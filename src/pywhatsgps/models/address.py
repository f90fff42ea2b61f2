"""Reverse geocoding models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AddressRecord(BaseModel):
    """Reverse geocoding reply (Nominatim ``jsonv2`` shape)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    display_name: str | None = None
    address: dict[str, str] = Field(default_factory=dict)
    raw: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> AddressRecord:
        address = payload.get("address")
        return cls(
            display_name=payload.get("display_name"),
            address={str(k): str(v) for k, v in address.items()} if isinstance(address, dict) else {},
            raw=payload,
        )


class AddressRow(BaseModel):
    """One labelled line of a formatted address."""

    model_config = ConfigDict(frozen=True)

    label: str
    value: str


class AddressState(BaseModel):
    """Per-entity lookup state kept by :class:`pywhatsgps.geocode.AddressCache`."""

    model_config = ConfigDict(frozen=True)

    loading: bool = False
    data: AddressRecord | None = None
    error: str | None = None
    fetched_at: float | None = None
