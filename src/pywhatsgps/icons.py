"""Marker icon resolution.

Icons are pure functions of an :class:`IconSpec`; the resolver caches them
by a stable serialization of the icon spec so every cycle hands the renderer the
same icon instance for an unchanged spec.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from html import escape
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict

from pywhatsgps.models.account import AccountConfig
from pywhatsgps.models.entity import TrackedEntity

DEFAULT_COLOR = "#0b78d1"
DEFAULT_SIZE = 44
ACCOUNT_ICON_SIZE = 48
SOURCE_COLORS: dict[str, str] = {"A": "#1e90ff", "B": "#e11d48"}


class IconSpec(BaseModel):
    """Visual description of a marker."""

    model_config = ConfigDict(frozen=True)

    color: str = DEFAULT_COLOR
    size: int = DEFAULT_SIZE
    label: str = ""
    rotate: float = 0
    image_url: str | None = None

    def cache_key(self) -> str:
        return json.dumps(self.model_dump(), sort_keys=True, separators=(",", ":"))


class MarkerIcon(BaseModel):
    """A renderable marker asset."""

    model_config = ConfigDict(frozen=True)

    url: str
    size: tuple[int, int]
    anchor: tuple[int, int]
    popup_anchor: tuple[int, int]
    class_name: str


def short_label(text: str | None) -> str:
    return (text or "")[:2].upper()


def _fmt(value: float) -> str:
    return f"{value:g}"


def make_svg_data_url(spec: IconSpec) -> str:
    """Render a pin-shaped SVG marker as a ``data:`` URL."""
    s = spec.size
    color = spec.color
    r = round(s * 0.18)
    circle_r = round(s * 0.33)
    stroke_w = max(1, round(s * 0.03))
    half = s / 2
    text = ""
    if spec.label:
        text = (
            f'<text x="{_fmt(half)}" y="{_fmt(s * 0.43)}" font-size="{_fmt(max(8, s * 0.12))}" '
            f'text-anchor="middle" fill="#fff" font-family="Arial" font-weight="700">{escape(spec.label)}</text>'
        )
    svg = (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{s}" height="{s}" viewBox="0 0 {s} {s}">'
        f'<g transform="translate({_fmt(half)},{_fmt(half)}) rotate({_fmt(spec.rotate)}) '
        f'translate({_fmt(-half)},{_fmt(-half)})">'
        f'<path d="M {_fmt(half)} {_fmt(s * 0.08)} A {circle_r} {circle_r} 0 1 1 {_fmt(half - 0.001)} '
        f'{_fmt(s * 0.08)} Z" fill="{color}" stroke="#ffffff" stroke-width="{stroke_w}" />'
        f'<circle cx="{_fmt(half)}" cy="{_fmt(s * 0.36)}" r="{r}" fill="#ffffff"/>'
        f'<circle cx="{_fmt(half)}" cy="{_fmt(s * 0.36)}" r="{_fmt(max(1, r * 0.6))}" fill="{color}"/>'
        f'<polygon points="{_fmt(half - 6)},{_fmt(s * 0.80)} {_fmt(half + 6)},{_fmt(s * 0.80)} '
        f'{_fmt(half)},{_fmt(s * 0.96)}" fill="{color}" />'
        f"{text}</g></svg>"
    )
    return "data:image/svg+xml;charset=utf-8," + quote(svg, safe="")


def create_icon(spec: IconSpec) -> MarkerIcon:
    s = spec.size
    anchor = (s // 2, round(s * 0.92))
    popup_anchor = (0, -round(s * 0.9))
    if spec.image_url:
        return MarkerIcon(
            url=spec.image_url,
            size=(s, s),
            anchor=anchor,
            popup_anchor=popup_anchor,
            class_name="custom-image-marker",
        )
    return MarkerIcon(
        url=make_svg_data_url(spec),
        size=(s, s),
        anchor=anchor,
        popup_anchor=popup_anchor,
        class_name="custom-svg-marker",
    )


def custom_icons_from_accounts(accounts: Iterable[AccountConfig]) -> dict[str, IconSpec]:
    """Icon specs for user-added accounts, keyed by both imei and label."""
    icons: dict[str, IconSpec] = {}
    for account in accounts:
        spec = IconSpec(
            color=account.color or DEFAULT_COLOR,
            size=ACCOUNT_ICON_SIZE,
            label=short_label(account.label),
        )
        if account.imei:
            icons[account.imei] = spec
        icons[account.label] = spec
    return icons


class IconResolver:
    """Select and cache marker icons per entity."""

    def __init__(
        self,
        custom_icons: Mapping[str, IconSpec] | None = None,
        *,
        default_color: str = DEFAULT_COLOR,
    ) -> None:
        self._custom_icons: dict[str, IconSpec] = dict(custom_icons or {})
        self._default_color = default_color
        self._cache: dict[str, MarkerIcon] = {}

    def set_custom_icons(self, custom_icons: Mapping[str, IconSpec]) -> None:
        self._custom_icons = dict(custom_icons)

    def spec_for(self, entity: TrackedEntity) -> IconSpec:
        keys = (entity.raw_id, entity.id, entity.name, entity.source)
        for key in keys:
            text = "" if key is None else str(key)
            if text and text in self._custom_icons:
                return self._custom_icons[text]
        color = SOURCE_COLORS.get(entity.source, self._default_color)
        return IconSpec(color=color, size=DEFAULT_SIZE, label=short_label(entity.name))

    def icon_for_spec(self, spec: IconSpec) -> MarkerIcon:
        key = spec.cache_key()
        icon = self._cache.get(key)
        if icon is None:
            icon = create_icon(spec)
            self._cache[key] = icon
        return icon

    def icon_for(self, entity: TrackedEntity) -> MarkerIcon:
        return self.icon_for_spec(self.spec_for(entity))

    def __len__(self) -> int:
        return len(self._cache)
