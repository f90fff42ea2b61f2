"""Polling orchestrator.

Drives one login + fetch round across every configured account
concurrently, merges the results into a single entity list, and repeats on a
fixed interval.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from enum import StrEnum
from typing import Protocol

from pywhatsgps._api.positions import is_auth_failure
from pywhatsgps._constants import DEFAULT_ACCOUNT_TIMEOUT, DEFAULT_POLL_INTERVAL
from pywhatsgps.exceptions import SessionExpiredError, WhatsGpsError
from pywhatsgps.models.account import AccountConfig
from pywhatsgps.models.entity import TrackedEntity
from pywhatsgps.models.results import AccountFetchResult, CycleResult
from pywhatsgps.session import SessionCache, SessionCredential

_logger = logging.getLogger(__name__)


class PositionSource(Protocol):
    """What the orchestrator needs from :class:`pywhatsgps.client.WhatsGpsClient`."""

    async def authenticate(self, username: str, password: str) -> SessionCredential: ...

    async def get_entities(self, credential: SessionCredential, *, source_label: str) -> list[TrackedEntity]: ...


class OrchestratorState(StrEnum):
    IDLE = "idle"
    FETCHING = "fetching"
    MERGED = "merged"


class PollingOrchestrator:
    """Concurrent multi-account poller.

    Session credentials live in an explicit :class:`SessionCache` keyed by
    account label. An account with a cached credential is not logged in
    again; an authentication-class fetch failure drops the credential so the
    next cycle re-authenticates.

    Logins run as background tasks, one per label. When ``account_timeout``
    expires mid-login the task keeps walking the login variants and the next
    cycle awaits the same task instead of starting over.

    Account changes apply from the next cycle on: each cycle works on the
    account list as it was when the cycle started. A login that completes
    for an account which has since been replaced or removed is not cached.
    """

    def __init__(
        self,
        client: PositionSource,
        accounts: Iterable[AccountConfig] = (),
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        account_timeout: float | None = DEFAULT_ACCOUNT_TIMEOUT,
        sessions: SessionCache | None = None,
        on_cycle: Callable[[CycleResult], None] | None = None,
        on_accounts_changed: Callable[[list[AccountConfig]], None] | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._client = client
        self._accounts: dict[str, AccountConfig] = {}
        for account in accounts:
            self._accounts.pop(account.label, None)
            self._accounts[account.label] = account
        self._interval = interval
        self._account_timeout = account_timeout
        self._sessions = sessions if sessions is not None else SessionCache()
        self._on_cycle = on_cycle
        self._on_accounts_changed = on_accounts_changed

        self._state = OrchestratorState.IDLE
        self._entities: list[TrackedEntity] = []
        self._error: str | None = None
        self._last_result: CycleResult | None = None
        self._task: asyncio.Task[None] | None = None
        self._logins: dict[str, tuple[AccountConfig, asyncio.Task[SessionCredential]]] = {}
        self._alive = True

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def accounts(self) -> list[AccountConfig]:
        return list(self._accounts.values())

    @property
    def sessions(self) -> SessionCache:
        return self._sessions

    @property
    def entities(self) -> list[TrackedEntity]:
        """Merged entities of the last completed cycle."""
        return list(self._entities)

    @property
    def error(self) -> str | None:
        """Pipe-joined per-account failures of the last cycle, if any."""
        return self._error

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def last_result(self) -> CycleResult | None:
        return self._last_result

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Account registry
    # ------------------------------------------------------------------

    def add_account(self, account: AccountConfig) -> None:
        """Add an account, replacing any existing account with the same label."""
        replaced = self._accounts.pop(account.label, None)
        self._accounts[account.label] = account
        if replaced is not None and replaced != account:
            self._sessions.invalidate(account.label)
            self._logins.pop(account.label, None)
        _logger.info("Account %s %s", account.label, "updated" if replaced else "added")
        self._notify_accounts_changed()

    def remove_account(self, label: str) -> bool:
        """Remove the account with *label* and forget its session."""
        removed = self._accounts.pop(label, None)
        if removed is None:
            return False
        self._sessions.invalidate(label)
        self._logins.pop(label, None)
        _logger.info("Account %s removed", label)
        self._notify_accounts_changed()
        return True

    def _notify_accounts_changed(self) -> None:
        if self._on_accounts_changed is None:
            return
        try:
            self._on_accounts_changed(self.accounts)
        except Exception:
            _logger.warning("on_accounts_changed callback failed", exc_info=True)

    # ------------------------------------------------------------------
    # Polling cycle
    # ------------------------------------------------------------------

    async def _login(self, account: AccountConfig) -> SessionCredential:
        credential = await self._client.authenticate(account.imei, account.password)
        if self._accounts.get(account.label) is account:
            self._sessions.set(account.label, credential)
        else:
            _logger.debug("Not caching login for %s; the account changed meanwhile", account.label)
        return credential

    def _login_task(self, account: AccountConfig) -> asyncio.Task[SessionCredential]:
        """The running login for *account*, started if there is none."""
        pending = self._logins.get(account.label)
        if pending is not None and pending[0] is account and not pending[1].done():
            return pending[1]
        task = asyncio.get_running_loop().create_task(self._login(account), name=f"pywhatsgps-login-{account.label}")
        self._logins[account.label] = (account, task)
        task.add_done_callback(lambda done: self._login_finished(account.label, done))
        return task

    def _login_finished(self, label: str, task: asyncio.Task[SessionCredential]) -> None:
        pending = self._logins.get(label)
        if pending is not None and pending[1] is task:
            del self._logins[label]
        if not task.cancelled() and task.exception() is not None:
            _logger.debug("Login task for %s ended with %r", label, task.exception())

    async def _poll_account(self, account: AccountConfig) -> AccountFetchResult:
        label = account.label
        if not account.has_credentials:
            return AccountFetchResult.ok(label)

        credential = self._sessions.get(label)
        if credential is None:
            try:
                credential = await asyncio.shield(self._login_task(account))
            except WhatsGpsError as exc:
                _logger.warning("Login failed for %s: %s", label, exc)
                return AccountFetchResult.failed(label, f"Login failed for {label}: {exc}")

        try:
            entities = await self._client.get_entities(credential, source_label=label)
        except WhatsGpsError as exc:
            if isinstance(exc, SessionExpiredError) or is_auth_failure(str(exc)):
                _logger.info("Session for %s rejected; re-authenticating next cycle", label)
                self._sessions.invalidate(label)
            _logger.warning("Fetch failed for %s: %s", label, exc)
            return AccountFetchResult.failed(label, f"Fetch failed for {label}: {exc}")

        return AccountFetchResult.ok(label, entities)

    async def _poll_account_bounded(self, account: AccountConfig) -> AccountFetchResult:
        if self._account_timeout is None:
            return await self._poll_account(account)
        try:
            return await asyncio.wait_for(self._poll_account(account), self._account_timeout)
        except TimeoutError:
            _logger.warning("Polling %s timed out after %.1fs", account.label, self._account_timeout)
            return AccountFetchResult.failed(
                account.label,
                f"Fetch failed for {account.label}: timed out after {self._account_timeout:g}s",
            )

    async def run_cycle(self) -> CycleResult:
        """Poll every account once and publish the merged result.

        A result that completes after :meth:`stop` is returned but not
        published.
        """
        accounts = self.accounts
        started_at = datetime.now(UTC)
        self._state = OrchestratorState.FETCHING
        _logger.debug("Polling cycle started for %d accounts", len(accounts))

        outcomes = await asyncio.gather(
            *(self._poll_account_bounded(account) for account in accounts),
            return_exceptions=True,
        )

        results: list[AccountFetchResult] = []
        for account, outcome in zip(accounts, outcomes, strict=True):
            if isinstance(outcome, AccountFetchResult):
                results.append(outcome)
            elif isinstance(outcome, asyncio.CancelledError):
                raise outcome
            else:
                _logger.error("Unexpected error polling %s", account.label, exc_info=outcome)
                message = f"Fetch failed for {account.label}: {outcome!r}"
                results.append(AccountFetchResult.failed(account.label, message))

        cycle = CycleResult.merge(results, started_at=started_at)

        if not self._alive:
            _logger.debug("Discarding cycle result after stop")
            return cycle

        self._entities = list(cycle.entities)
        self._error = cycle.error
        self._last_result = cycle
        self._state = OrchestratorState.MERGED
        _logger.debug(
            "Polling cycle merged %d entities (%d failures)",
            len(cycle.entities),
            sum(1 for r in results if not r.success),
        )

        if self._on_cycle is not None:
            try:
                self._on_cycle(cycle)
            except Exception:
                _logger.warning("on_cycle callback failed", exc_info=True)
        return cycle

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while self._alive:
            started = loop.time()
            await self.run_cycle()
            delay = max(0.0, self._interval - (loop.time() - started))
            await asyncio.sleep(delay)

    def start(self) -> None:
        """Run a cycle now and then every ``interval`` seconds."""
        if self.is_running:
            return
        self._alive = True
        self._task = asyncio.get_running_loop().create_task(self._run(), name="pywhatsgps-poll")

    async def stop(self) -> None:
        """Stop scheduling; results of a cycle still in flight are discarded."""
        self._alive = False
        task = self._task
        self._task = None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._state = OrchestratorState.IDLE
