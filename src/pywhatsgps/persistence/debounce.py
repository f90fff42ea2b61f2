"""Debounced account persistence.

Every account change schedules a save; changes arriving within the quiet
period replace the pending snapshot, so a burst of edits becomes one write.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Sequence

from pywhatsgps._constants import DEFAULT_SAVE_DELAY
from pywhatsgps.exceptions import ConfigPersistenceError
from pywhatsgps.models.account import AccountConfig
from pywhatsgps.persistence.store import AccountStore

_logger = logging.getLogger(__name__)


class DebouncedSaver:
    """Coalesce account snapshots and write the latest after a quiet period.

    Rescheduling only restarts the quiet period; a write already handed to
    the store runs to completion. Writes are serialized, and a snapshot stays
    pending until the store accepts it. Save failures are logged and never
    raised to the caller.
    """

    def __init__(self, store: AccountStore, *, delay: float = DEFAULT_SAVE_DELAY) -> None:
        self._store = store
        self._delay = delay
        self._pending: list[AccountConfig] | None = None
        self._timer: asyncio.Task[None] | None = None
        self._writes: set[asyncio.Task[None]] = set()
        self._lock = asyncio.Lock()
        self.saves = 0

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def schedule(self, accounts: Sequence[AccountConfig]) -> None:
        """Queue *accounts* for saving, restarting the quiet period."""
        self._pending = list(accounts)
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().create_task(self._wait_and_save())

    async def _wait_and_save(self) -> None:
        await asyncio.sleep(self._delay)
        write = asyncio.get_running_loop().create_task(self._write_pending())
        self._writes.add(write)
        write.add_done_callback(self._writes.discard)
        await asyncio.shield(write)

    async def _write_pending(self) -> None:
        async with self._lock:
            accounts = self._pending
            if accounts is None:
                return
            try:
                await self._store.save_accounts(accounts)
            except ConfigPersistenceError:
                _logger.warning("Saving %d accounts failed", len(accounts), exc_info=True)
                return
            if self._pending is accounts:
                self._pending = None
            self.saves += 1

    async def flush(self) -> None:
        """Wait for writes in flight, then write any pending snapshot now."""
        timer = self._timer
        self._timer = None
        if timer is not None and not timer.done():
            timer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await timer
        if self._writes:
            await asyncio.gather(*self._writes)
        await self._write_pending()
