"""Per-account and per-cycle fetch results."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from pywhatsgps.models.entity import TrackedEntity

ERROR_SEPARATOR = " | "


class AccountFetchResult(BaseModel):
    """Outcome of one account's login + fetch within a cycle."""

    model_config = ConfigDict(frozen=True)

    label: str
    success: bool
    entities: list[TrackedEntity] = Field(default_factory=list)
    error_message: str | None = None

    @classmethod
    def ok(cls, label: str, entities: list[TrackedEntity] | None = None) -> AccountFetchResult:
        return cls(label=label, success=True, entities=entities or [])

    @classmethod
    def failed(cls, label: str, message: str) -> AccountFetchResult:
        return cls(label=label, success=False, error_message=message)


class CycleResult(BaseModel):
    """Merged outcome of one polling cycle."""

    model_config = ConfigDict(frozen=True)

    entities: list[TrackedEntity] = Field(default_factory=list)
    error: str | None = None
    results: list[AccountFetchResult] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None

    @classmethod
    def merge(cls, results: list[AccountFetchResult], *, started_at: datetime) -> CycleResult:
        """Concatenate successful entities and pipe-join failure messages.

        Entity ids are unique in the merged list; a repeated id keeps the
        first occurrence.
        """
        entities: list[TrackedEntity] = []
        seen: set[str] = set()
        for result in results:
            if not result.success:
                continue
            for entity in result.entities:
                if entity.id in seen:
                    continue
                seen.add(entity.id)
                entities.append(entity)
        errors = [r.error_message for r in results if not r.success and r.error_message]
        return cls(
            entities=entities,
            error=ERROR_SEPARATOR.join(errors) if errors else None,
            results=results,
            started_at=started_at,
            finished_at=datetime.now(UTC),
        )
