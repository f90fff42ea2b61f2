"""Normalization helpers.

Centralizes defensive parsing of backend position reports and their
conversion into :class:`~pywhatsgps.models.entity.TrackedEntity` objects.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from pywhatsgps.models.entity import TrackedEntity

RawPositionReport = Mapping[str, Any]

LAT_KEYS: tuple[str, ...] = ("lat", "latc", "latitude")
LNG_KEYS: tuple[str, ...] = ("lon", "lonc", "longitude")
NAME_KEYS: tuple[str, ...] = ("machineName", "carNO")
IMEI_KEYS: tuple[str, ...] = ("imei", "IMIE", "deviceId")
HEADING_KEYS: tuple[str, ...] = ("direction", "course", "heading")
RAW_ID_KEY = "carId"
SPEED_KEY = "speed"


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "--":
        return None
    if isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def to_coordinate(value: Any) -> float:
    """Coerce a coordinate, returning ``NaN`` when it is missing or unparseable.

    Records are never dropped here; non-finite coordinates are filtered by
    consumers through :attr:`TrackedEntity.is_renderable`.
    """
    parsed = safe_float(value)
    return math.nan if parsed is None else parsed


def first_present(report: RawPositionReport, keys: tuple[str, ...]) -> Any:
    """Value of the first key in *keys* that is present and not ``None``."""
    for key in keys:
        value = report.get(key)
        if value is not None:
            return value
    return None


def first_truthy(*values: Any) -> Any:
    for value in values:
        if value:
            return value
    return None


def format_speed(value: Any) -> str:
    if not value:
        return "0"
    parsed = safe_float(value)
    if parsed is None:
        return str(value)
    if parsed.is_integer():
        return str(int(parsed))
    return str(parsed)


def entity_id(source_label: str, raw_id: Any) -> str:
    return f"{source_label}::{raw_id}"


def _scalar_id(value: Any) -> str | int | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (str, int)):
        return value
    return str(value)


def normalize_report(report: RawPositionReport, source_label: str) -> TrackedEntity:
    raw_id = report.get(RAW_ID_KEY)
    name = first_truthy(*(report.get(key) for key in NAME_KEYS), source_label, f"Car {raw_id}")
    heading = first_present(report, HEADING_KEYS)
    imei = first_present(report, IMEI_KEYS)
    return TrackedEntity(
        id=entity_id(source_label, raw_id),
        raw_id=_scalar_id(raw_id),
        source=source_label,
        name=str(name),
        lat=to_coordinate(first_present(report, LAT_KEYS)),
        lng=to_coordinate(first_present(report, LNG_KEYS)),
        desc=f"speed: {format_speed(report.get(SPEED_KEY))} km/h",
        imei=_scalar_id(imei),
        heading=heading if isinstance(heading, (int, float, str)) else None,
    )


def normalize_reports(raw_reports: Any, source_label: str) -> list[TrackedEntity]:
    """Map raw position reports to tracked entities, one per report.

    Input order is preserved and nothing is dropped. Non-list input yields
    an empty list.
    """
    if not isinstance(raw_reports, list):
        return []
    return [normalize_report(report if isinstance(report, Mapping) else {}, source_label) for report in raw_reports]
