from __future__ import annotations

import math

from pywhatsgps.ingestion.normalize import format_speed, normalize_report, normalize_reports, to_coordinate


def test_normalize_prefers_primary_keys_and_builds_id() -> None:
    entity = normalize_report(
        {"carId": 7, "lat": "52.1", "lon": 19.2, "latc": 1.0, "lonc": 2.0, "speed": 30, "machineName": "Truck"},
        "A",
    )

    assert entity.id == "A::7"
    assert entity.raw_id == 7
    assert entity.source == "A"
    assert entity.lat == 52.1
    assert entity.lng == 19.2
    assert entity.name == "Truck"
    assert entity.desc == "speed: 30 km/h"


def test_normalize_falls_back_to_alternate_coordinate_keys() -> None:
    entity = normalize_report({"carId": "x1", "latc": 10.5, "longitude": "20.25"}, "B")

    assert entity.lat == 10.5
    assert entity.lng == 20.25


def test_normalize_name_fallback_chain() -> None:
    assert normalize_report({"carId": 1, "carNO": "KR 123"}, "A").name == "KR 123"
    assert normalize_report({"carId": 1, "machineName": "", "carNO": ""}, "A").name == "A"
    assert normalize_report({"carId": 1}, "").name == "Car 1"


def test_normalize_keeps_records_without_coordinates() -> None:
    entities = normalize_reports([{"carId": 1}, {"carId": 2, "lat": "bogus", "lon": 3}, "not-a-dict"], "A")

    assert [e.id for e in entities] == ["A::1", "A::2", "A::None"]
    assert all(math.isnan(e.lat) for e in entities)
    assert not any(e.is_renderable for e in entities)


def test_normalize_non_list_input_is_empty() -> None:
    assert normalize_reports(None, "A") == []
    assert normalize_reports({"carId": 1}, "A") == []


def test_normalize_is_idempotent_for_same_input() -> None:
    raw = [{"carId": 9, "lat": 1, "lon": 2, "speed": 12.5, "imei": "868"}]

    assert normalize_reports(raw, "A") == normalize_reports(raw, "A")
    assert normalize_reports(raw, "A")[0].imei == "868"


def test_format_speed() -> None:
    assert format_speed(None) == "0"
    assert format_speed("") == "0"
    assert format_speed(0) == "0"
    assert format_speed(30.0) == "30"
    assert format_speed("12.5") == "12.5"
    assert format_speed("fast") == "fast"


def test_to_coordinate_rejects_bool_and_placeholders() -> None:
    assert math.isnan(to_coordinate(True))
    assert math.isnan(to_coordinate("--"))
    assert to_coordinate("0") == 0.0
