"""Focus-request resolution.

User-facing labels, backend device ids and display names are only loosely
correlated, so a focus request is matched through tiers from exact to fuzzy;
the first tier with a hit wins.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from pywhatsgps.models.account import AccountConfig
from pywhatsgps.models.entity import TrackedEntity


class FocusQuery(BaseModel):
    """A request to focus one entity by label and/or device identifier."""

    model_config = ConfigDict(frozen=True)

    label: str | None = None
    imei: str | None = None

    @field_validator("label", "imei", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value)
        return text if text else None

    @classmethod
    def from_payload(cls, payload: Any) -> FocusQuery:
        """Build a query from a ``{label, imei}`` mapping or a bare value.

        A bare value is used as both label and imei.
        """
        if isinstance(payload, FocusQuery):
            return payload
        if isinstance(payload, Mapping):
            return cls(label=payload.get("label"), imei=payload.get("imei"))
        return cls(label=payload, imei=payload)


def _eq(value: Any, target: str) -> bool:
    return value is not None and str(value) == target


def _contains(value: Any, target: str) -> bool:
    return value is not None and value != "" and target in str(value)


def _find_by_device(entities: Sequence[TrackedEntity], imei: str) -> TrackedEntity | None:
    return next((e for e in entities if _eq(e.raw_id, imei) or _eq(e.imei, imei)), None)


def resolve_entity(
    entities: Sequence[TrackedEntity],
    query: FocusQuery,
    accounts: Iterable[AccountConfig] = (),
) -> TrackedEntity | None:
    """Find the entity best matching *query*.

    Tiers, first hit wins:

    a. ``id`` equals the label or the imei
    b. ``raw_id`` or ``imei`` equals the imei
    c. ``name`` equals or contains the label
    d. the label names a known account: tier (b) with that account's imei
    e. ``name`` or ``raw_id`` contains the imei
    """
    label, imei = query.label, query.imei

    for entity in entities:
        if (label is not None and _eq(entity.id, label)) or (imei is not None and _eq(entity.id, imei)):
            return entity

    if imei is not None:
        found = _find_by_device(entities, imei)
        if found is not None:
            return found

    if label is not None:
        for entity in entities:
            if _eq(entity.name, label) or _contains(entity.name, label):
                return entity

        account = next((a for a in accounts if a.label == label), None)
        if account is not None and account.imei:
            found = _find_by_device(entities, account.imei)
            if found is not None:
                return found

    if imei is not None:
        for entity in entities:
            if _contains(entity.name, imei) or _contains(entity.raw_id, imei):
                return entity

    return None


def focus_target(
    entities: Sequence[TrackedEntity],
    payload: Any,
    accounts: Iterable[AccountConfig] = (),
) -> TrackedEntity | None:
    """Resolve a focus payload to an entity the map can actually fly to."""
    found = resolve_entity(entities, FocusQuery.from_payload(payload), accounts)
    if found is None or not found.is_renderable:
        return None
    return found
