"""Tracked entity model."""

from __future__ import annotations

import math
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict


@dataclass(frozen=True, slots=True)
class LatLng:
    """A WGS84 coordinate pair."""

    lat: float
    lng: float

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.lat) and math.isfinite(self.lng)


class TrackedEntity(BaseModel):
    """Canonical, source-normalized state of one tracked vehicle.

    Parameters
    ----------
    id : str
        ``"<source>::<raw_id>"``; stable across polling cycles for the same
        device under the same account.
    raw_id : str, int or None
        Device id as reported by the backend (``carId``).
    source : str
        Label of the account the report came from.
    name : str
        Display name.
    lat, lng : float
        Coordinates; ``NaN`` when the report carried none.
    desc : str
        Short human-readable description (currently the speed).
    imei : str, int or None
        Device IMEI when reported.
    heading : float, str or None
        Heading as reported.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    raw_id: str | int | None = None
    source: str
    name: str
    lat: float
    lng: float
    desc: str = ""
    imei: str | int | None = None
    heading: float | str | None = None

    @property
    def position(self) -> LatLng:
        return LatLng(self.lat, self.lng)

    @property
    def is_renderable(self) -> bool:
        """Whether the entity has an id and finite coordinates."""
        return bool(self.id) and math.isfinite(self.lat) and math.isfinite(self.lng)
