"""Reverse geocoding for entity popups.

Lookups happen on demand (one entity at a time) and are cached per entity
id for a short TTL. Failures are recorded against the entity and never reach
the polling cycle.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from typing import Any, Protocol

import aiohttp

from pywhatsgps._constants import DEFAULT_ADDRESS_TTL, GEOCODE_LANGUAGE, GEOCODE_URL, USER_AGENT
from pywhatsgps.exceptions import GeocodeError
from pywhatsgps.models.address import AddressRecord, AddressRow, AddressState

_logger = logging.getLogger(__name__)

_ADDRESS_ROWS: tuple[tuple[str, str], ...] = (
    ("road", "Street"),
    ("house_number", "Number"),
    ("city", "City"),
    ("postcode", "Postcode"),
    ("country", "Country"),
)


class Geocoder(Protocol):
    async def reverse(self, lat: float, lng: float) -> AddressRecord: ...


class NominatimGeocoder:
    """Reverse geocoder for the Nominatim ``/reverse`` API."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        base_url: str = GEOCODE_URL,
        language: str = GEOCODE_LANGUAGE,
        referer: str | None = None,
    ) -> None:
        self._http = http_session
        self._base_url = base_url.rstrip("/")
        self._language = language
        self._referer = referer

    async def reverse(self, lat: float, lng: float) -> AddressRecord:
        params = {
            "format": "jsonv2",
            "lat": str(lat),
            "lon": str(lng),
            "addressdetails": "1",
            "extratags": "1",
            "namedetails": "1",
        }
        headers = {"Accept-Language": self._language, "user-agent": USER_AGENT}
        if self._referer:
            headers["Referer"] = self._referer

        url = f"{self._base_url}/reverse"
        _logger.debug("GET %s lat=%s lon=%s", url, lat, lng)
        try:
            async with self._http.get(url, params=params, headers=headers) as resp:
                if resp.status != 200:
                    raise GeocodeError(f"Geocode failed: {resp.status}")
                payload: Any = await resp.json(content_type=None)
        except GeocodeError:
            raise
        except (aiohttp.ClientError, TimeoutError, ValueError) as exc:
            raise GeocodeError(f"Geocode request failed: {exc!r}") from exc

        if not isinstance(payload, dict):
            raise GeocodeError("Geocode response is not an object")
        return AddressRecord.from_payload(payload)


def format_address(record: AddressRecord | None) -> list[AddressRow]:
    """Labelled address lines in display order, skipping absent parts."""
    if record is None:
        return []
    rows = [
        AddressRow(label=label, value=record.address[key]) for key, label in _ADDRESS_ROWS if record.address.get(key)
    ]
    if record.display_name:
        rows.append(AddressRow(label="Full address", value=record.display_name))
    return rows


class AddressCache:
    """Per-entity address lookups with a freshness window.

    A fresh cached address is returned without a request; a lookup already
    in flight for the same entity is shared instead of duplicated.
    """

    def __init__(
        self,
        geocoder: Geocoder,
        *,
        ttl: float = DEFAULT_ADDRESS_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._geocoder = geocoder
        self._ttl = ttl
        self._clock = clock
        self._states: dict[str, AddressState] = {}
        self._pending: dict[str, asyncio.Task[AddressState]] = {}

    def state(self, entity_id: str) -> AddressState:
        return self._states.get(entity_id, AddressState())

    def _is_fresh(self, state: AddressState) -> bool:
        if state.data is None or state.fetched_at is None:
            return False
        return self._clock() - state.fetched_at < self._ttl

    async def _fetch(self, entity_id: str, lat: float, lng: float) -> AddressState:
        try:
            record = await self._geocoder.reverse(lat, lng)
        except GeocodeError as exc:
            _logger.info("Address lookup for %s failed: %s", entity_id, exc)
            state = AddressState(error=str(exc), fetched_at=self._clock())
        else:
            state = AddressState(data=record, fetched_at=self._clock())
        finally:
            self._pending.pop(entity_id, None)
        self._states[entity_id] = state
        return state

    async def lookup(self, entity_id: str, lat: float, lng: float) -> AddressState:
        """Address state for *entity_id*, fetching it if missing or stale."""
        pending = self._pending.get(entity_id)
        if pending is not None:
            return await asyncio.shield(pending)

        current = self._states.get(entity_id)
        if current is not None and self._is_fresh(current):
            return current

        self._states[entity_id] = AddressState(loading=True)
        task = asyncio.get_running_loop().create_task(self._fetch(entity_id, lat, lng))
        self._pending[entity_id] = task
        return await asyncio.shield(task)

    def retain(self, entity_ids: Iterable[str]) -> None:
        """Drop cached addresses of entities not in *entity_ids*."""
        keep = set(entity_ids)
        for entity_id in [e for e in self._states if e not in keep and e not in self._pending]:
            del self._states[entity_id]
