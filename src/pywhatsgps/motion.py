"""Marker motion interpolation.

Positions arrive once per polling interval; markers are redrawn at display
rate. For every entity the interpolator keeps the currently displayed
coordinate and glides it linearly to each newly reported coordinate over a
fixed duration. A newer report cancels the running glide and starts the next
one from wherever the marker currently is.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Protocol

from pywhatsgps._constants import DEFAULT_ANIMATION_DURATION
from pywhatsgps.models.entity import LatLng, TrackedEntity

_logger = logging.getLogger(__name__)

#: Default step period (~60 fps).
DEFAULT_FRAME_INTERVAL = 1 / 60


class MarkerSurface(Protocol):
    """Render-side marker registry the interpolator drives."""

    def get_position(self, entity_id: str) -> LatLng | None: ...

    def set_position(self, entity_id: str, position: LatLng) -> None: ...

    def remove(self, entity_id: str) -> None: ...


@dataclass(frozen=True, slots=True)
class Interpolation:
    """Linear glide from ``start`` to ``end`` over ``duration`` seconds."""

    start: LatLng
    end: LatLng
    duration: float

    def position_at(self, elapsed: float) -> LatLng:
        if self.duration <= 0 or elapsed >= self.duration:
            return self.end
        t = max(0.0, elapsed / self.duration)
        return LatLng(
            self.start.lat + (self.end.lat - self.start.lat) * t,
            self.start.lng + (self.end.lng - self.start.lng) * t,
        )


class MotionInterpolator:
    """Per-entity displayed position state plus one cancelable glide task each.

    Must be used from within a running event loop.
    """

    def __init__(
        self,
        surface: MarkerSurface | None = None,
        *,
        duration: float = DEFAULT_ANIMATION_DURATION,
        frame_interval: float = DEFAULT_FRAME_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._surface = surface
        self._duration = duration
        self._frame_interval = frame_interval
        self._clock = clock
        self._displayed: dict[str, LatLng] = {}
        self._targets: dict[str, LatLng] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}

    def displayed(self, entity_id: str) -> LatLng | None:
        """Currently rendered (possibly mid-glide) position."""
        return self._displayed.get(entity_id)

    @property
    def displayed_positions(self) -> dict[str, LatLng]:
        return dict(self._displayed)

    def is_animating(self, entity_id: str) -> bool:
        task = self._tasks.get(entity_id)
        return task is not None and not task.done()

    def _apply(self, entity_id: str, position: LatLng) -> None:
        self._displayed[entity_id] = position
        if self._surface is not None:
            self._surface.set_position(entity_id, position)

    def _cancel(self, entity_id: str) -> None:
        task = self._tasks.pop(entity_id, None)
        if task is not None and not task.done():
            task.cancel()

    def _discard(self, entity_id: str) -> None:
        self._cancel(entity_id)
        self._displayed.pop(entity_id, None)
        self._targets.pop(entity_id, None)
        if self._surface is not None:
            self._surface.remove(entity_id)

    def _previous_position(self, entity_id: str) -> LatLng | None:
        previous = self._displayed.get(entity_id)
        if previous is None and self._surface is not None:
            previous = self._surface.get_position(entity_id)
        return previous

    async def _animate(self, entity_id: str, interpolation: Interpolation) -> None:
        started = self._clock()
        try:
            while True:
                elapsed = self._clock() - started
                self._apply(entity_id, interpolation.position_at(elapsed))
                if elapsed >= interpolation.duration:
                    return
                await asyncio.sleep(self._frame_interval)
        finally:
            if self._tasks.get(entity_id) is asyncio.current_task():
                del self._tasks[entity_id]

    def move(self, entity_id: str, target: LatLng) -> None:
        """Glide *entity_id* to *target*; first appearance is placed directly."""
        previous = self._previous_position(entity_id)
        if previous is None or previous == target:
            self._cancel(entity_id)
            self._targets[entity_id] = target
            self._apply(entity_id, target)
            return

        if self.is_animating(entity_id) and self._targets.get(entity_id) == target:
            return

        self._cancel(entity_id)
        self._targets[entity_id] = target
        self._displayed[entity_id] = previous
        interpolation = Interpolation(previous, target, self._duration)
        self._tasks[entity_id] = asyncio.get_running_loop().create_task(
            self._animate(entity_id, interpolation),
            name=f"pywhatsgps-glide-{entity_id}",
        )

    def reconcile(self, entities: Iterable[TrackedEntity]) -> None:
        """Diff a freshly merged entity list against the displayed state.

        Renderable entities glide to their new coordinate; ids missing from
        the list (or without finite coordinates) lose their state and any
        running glide.
        """
        incoming: dict[str, LatLng] = {}
        for entity in entities:
            if entity.is_renderable:
                incoming[entity.id] = entity.position

        for entity_id, target in incoming.items():
            self.move(entity_id, target)

        stale = (set(self._displayed) | set(self._tasks)) - set(incoming)
        for entity_id in stale:
            _logger.debug("Dropping marker state for %s", entity_id)
            self._discard(entity_id)

    def cancel_all(self) -> None:
        for entity_id in list(self._tasks):
            self._cancel(entity_id)

    async def close(self) -> None:
        """Cancel every running glide and wait for them to finish."""
        tasks = list(self._tasks.values())
        self.cancel_all()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
