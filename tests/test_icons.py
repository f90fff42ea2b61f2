from __future__ import annotations

from urllib.parse import unquote

from pywhatsgps.icons import (
    DEFAULT_COLOR,
    IconResolver,
    IconSpec,
    create_icon,
    custom_icons_from_accounts,
    make_svg_data_url,
    short_label,
)
from pywhatsgps.models.account import AccountConfig
from pywhatsgps.models.entity import TrackedEntity


def _entity(source: str, raw_id: int, name: str) -> TrackedEntity:
    return TrackedEntity(id=f"{source}::{raw_id}", raw_id=raw_id, source=source, name=name, lat=1.0, lng=2.0)


def test_short_label() -> None:
    assert short_label("truck") == "TR"
    assert short_label(None) == ""


def test_svg_icon_escapes_label_and_uses_color() -> None:
    url = make_svg_data_url(IconSpec(color="#123456", label="<&"))

    assert url.startswith("data:image/svg+xml;charset=utf-8,")
    svg = unquote(url.split(",", 1)[1])
    assert "#123456" in svg
    assert "&lt;&amp;" in svg


def test_image_icon_uses_image_url() -> None:
    icon = create_icon(IconSpec(image_url="https://example.com/car.png", size=40))

    assert icon.url == "https://example.com/car.png"
    assert icon.class_name == "custom-image-marker"
    assert icon.size == (40, 40)
    assert icon.anchor == (20, 37)


def test_resolver_prefers_custom_icons_then_source_colors() -> None:
    custom = custom_icons_from_accounts([AccountConfig(label="Truck", imei="7", password="pw", color="#00ff00")])
    resolver = IconResolver(custom)

    assert resolver.spec_for(_entity("X", 7, "whatever")).color == "#00ff00"
    assert resolver.spec_for(_entity("Truck", 1, "x")).size == 48
    assert resolver.spec_for(_entity("A", 2, "car")).color == "#1e90ff"
    assert resolver.spec_for(_entity("B", 2, "car")).color == "#e11d48"
    assert resolver.spec_for(_entity("Z", 2, "car")).color == DEFAULT_COLOR


def test_resolver_caches_icons_by_spec() -> None:
    resolver = IconResolver()

    first = resolver.icon_for(_entity("A", 1, "car"))
    second = resolver.icon_for(_entity("A", 2, "cart"))
    other = resolver.icon_for(_entity("B", 1, "car"))

    assert first is second
    assert first is not other
    assert len(resolver) == 2
