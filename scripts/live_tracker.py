#!/usr/bin/env python3
"""Live multi-account WhatsGPS tracker.

Polls the two static accounts (``WHATSGPS_LOGIN_A``/``WHATSGPS_PASS_A`` and
``WHATSGPS_LOGIN_B``/``WHATSGPS_PASS_B``) plus any accounts saved in the
configured store, and prints the merged entity list after every cycle.
Marker motion is logged through a console surface.

Examples::

    python scripts/live_tracker.py --cycles 3 -v
    python scripts/live_tracker.py --focus 868120000000001 --address
    python scripts/live_tracker.py --add Truck:868120000000002:secret
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import aiohttp

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pywhatsgps import (  # noqa: E402
    AccountConfig,
    CycleResult,
    LatLng,
    MotionInterpolator,
    PollingOrchestrator,
    TrackedEntity,
    TrackerConfig,
    WhatsGpsClient,
    WhatsGpsError,
    focus_target,
)
from pywhatsgps._constants import STATIC_ACCOUNT_LABELS  # noqa: E402
from pywhatsgps.geocode import AddressCache, NominatimGeocoder, format_address  # noqa: E402
from pywhatsgps.icons import IconResolver, MarkerIcon, custom_icons_from_accounts  # noqa: E402
from pywhatsgps.persistence import DebouncedSaver, account_store_from_config  # noqa: E402

_LOG = logging.getLogger("live_tracker")


class ConsoleSurface:
    """Marker surface that logs position changes instead of drawing them."""

    def __init__(self, icons: IconResolver) -> None:
        self._icons = icons
        self._positions: dict[str, LatLng] = {}
        self._marker_icons: dict[str, MarkerIcon] = {}

    def update_icons(self, entities: list[TrackedEntity]) -> None:
        for entity in entities:
            if entity.is_renderable:
                self._marker_icons[entity.id] = self._icons.icon_for(entity)

    def get_position(self, entity_id: str) -> LatLng | None:
        return self._positions.get(entity_id)

    def set_position(self, entity_id: str, position: LatLng) -> None:
        self._positions[entity_id] = position
        icon = self._marker_icons.get(entity_id)
        _LOG.debug(
            "marker %s -> %.6f, %.6f (%s)",
            entity_id,
            position.lat,
            position.lng,
            icon.class_name if icon is not None else "no icon",
        )

    def remove(self, entity_id: str) -> None:
        self._positions.pop(entity_id, None)
        self._marker_icons.pop(entity_id, None)
        _LOG.info("marker %s removed", entity_id)


def _parse_account(text: str) -> AccountConfig:
    label, sep, rest = text.partition(":")
    imei, sep2, password = rest.partition(":")
    if not sep or not sep2:
        raise argparse.ArgumentTypeError("expected LABEL:IMEI:PASSWORD")
    return AccountConfig(label=label, imei=imei, password=password)


def _print_cycle(cycle: CycleResult) -> None:
    stamp = cycle.finished_at.strftime("%H:%M:%S")
    print(f"\n[{stamp}] {len(cycle.entities)} entities")
    for entity in cycle.entities:
        print(f"  {entity.id:<24} {entity.name:<24} {entity.lat:>10.6f} {entity.lng:>11.6f}  {entity.desc}")
    if cycle.error:
        print(f"  error: {cycle.error}")


async def _print_focus(
    orchestrator: PollingOrchestrator,
    focus: str,
    addresses: AddressCache | None,
) -> None:
    target = focus_target(orchestrator.entities, focus, orchestrator.accounts)
    if target is None:
        print(f"  focus {focus!r}: no matching entity with a position")
        return
    print(f"  focus {focus!r}: {target.id} at {target.lat:.6f}, {target.lng:.6f}")
    if addresses is None:
        return
    state = await addresses.lookup(target.id, target.lat, target.lng)
    if state.error:
        print(f"    address: {state.error}")
    for row in format_address(state.data):
        print(f"    {row.label}: {row.value}")


async def run(args: argparse.Namespace) -> None:
    config = TrackerConfig.from_env()
    static_labels = set(STATIC_ACCOUNT_LABELS)

    async with aiohttp.ClientSession() as http, WhatsGpsClient(config, session=http) as client:
        store = account_store_from_config(config, http)
        saved: list[AccountConfig] = []
        if store is not None:
            try:
                saved = await store.load_accounts()
            except WhatsGpsError as exc:
                _LOG.warning("Could not load saved accounts: %s", exc)
        saver = DebouncedSaver(store) if store is not None else None

        def _persist(accounts: list[AccountConfig]) -> None:
            if saver is not None:
                saver.schedule([a for a in accounts if a.label not in static_labels])

        icons = IconResolver(custom_icons_from_accounts(saved))
        surface = ConsoleSurface(icons)
        motion = MotionInterpolator(surface, duration=config.animation_duration)
        addresses = None
        if args.address:
            geocoder = NominatimGeocoder(http, base_url=config.geocode_url, language=config.geocode_language)
            addresses = AddressCache(geocoder)

        cycles_done = asyncio.Event()
        seen = 0

        def _on_cycle(cycle: CycleResult) -> None:
            nonlocal seen
            icons.set_custom_icons(
                custom_icons_from_accounts(a for a in orchestrator.accounts if a.label not in static_labels)
            )
            surface.update_icons(cycle.entities)
            motion.reconcile(cycle.entities)
            if addresses is not None:
                addresses.retain(entity.id for entity in cycle.entities)
            _print_cycle(cycle)
            seen += 1
            if args.cycles and seen >= args.cycles:
                cycles_done.set()

        orchestrator = PollingOrchestrator(
            client,
            [*config.static_accounts(), *saved],
            interval=config.poll_interval,
            account_timeout=config.account_timeout,
            on_cycle=_on_cycle,
            on_accounts_changed=_persist,
        )
        for account in args.add:
            orchestrator.add_account(account)
        for label in args.remove:
            if not orchestrator.remove_account(label):
                _LOG.warning("No account labelled %s", label)

        orchestrator.start()
        try:
            if args.focus is None:
                await cycles_done.wait()
            else:
                while not cycles_done.is_set():
                    await asyncio.sleep(config.poll_interval)
                    await _print_focus(orchestrator, args.focus, addresses)
        finally:
            await orchestrator.stop()
            await motion.close()
            if saver is not None:
                await saver.flush()


def main() -> None:
    parser = argparse.ArgumentParser(description="Track WhatsGPS devices from several accounts live.")
    parser.add_argument("--cycles", type=int, default=0, help="Stop after N polling cycles (default: run forever)")
    parser.add_argument("--focus", help="Label, imei or device id to focus after each cycle")
    parser.add_argument("--address", action="store_true", help="Reverse geocode the focused entity")
    parser.add_argument(
        "--add",
        action="append",
        default=[],
        type=_parse_account,
        metavar="LABEL:IMEI:PASSWORD",
        help="Add (or replace) an account and save it to the configured store",
    )
    parser.add_argument("--remove", action="append", default=[], metavar="LABEL", help="Remove a saved account")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\nInterrupted.")


if __name__ == "__main__":
    main()
