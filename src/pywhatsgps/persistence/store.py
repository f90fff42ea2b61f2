"""Account stores.

User-added tracker accounts outlive the process; session credentials never
do. Stores persist :meth:`AccountConfig.to_record` only.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol

import aiohttp
from pydantic import ValidationError

from pywhatsgps.config import TrackerConfig
from pywhatsgps.exceptions import ConfigPersistenceError
from pywhatsgps.models.account import AccountConfig

_logger = logging.getLogger(__name__)


class AccountStore(Protocol):
    async def load_accounts(self) -> list[AccountConfig]: ...

    async def save_accounts(self, accounts: Sequence[AccountConfig]) -> None: ...


def parse_accounts(rows: Any) -> list[AccountConfig]:
    """Validate stored rows, skipping ones that are not valid accounts."""
    if not isinstance(rows, list):
        raise ConfigPersistenceError(f"Expected a list of accounts, got {type(rows).__name__}")
    accounts: list[AccountConfig] = []
    for row in rows:
        try:
            accounts.append(AccountConfig.model_validate(row))
        except ValidationError:
            _logger.warning("Skipping invalid stored account: %r", row)
    return accounts


class JsonFileAccountStore:
    """Accounts stored as a JSON list in a local file."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> list[AccountConfig]:
        if not self._path.exists():
            return []
        try:
            rows = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigPersistenceError(f"Cannot read accounts from {self._path}: {exc}") from exc
        return parse_accounts(rows)

    def _write(self, records: list[dict[str, Any]]) -> None:
        text = json.dumps(records, ensure_ascii=False, indent=2)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(text)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise ConfigPersistenceError(f"Cannot write accounts to {self._path}: {exc}") from exc

    async def load_accounts(self) -> list[AccountConfig]:
        return await asyncio.get_running_loop().run_in_executor(None, self._read)

    async def save_accounts(self, accounts: Sequence[AccountConfig]) -> None:
        records = [account.to_record() for account in accounts]
        await asyncio.get_running_loop().run_in_executor(None, self._write, records)
        _logger.debug("Saved %d accounts to %s", len(records), self._path)


class RestAccountStore:
    """Accounts stored in a PostgREST table (e.g. a Supabase project).

    Rows are upserted on ``label``; server-side columns such as ``id`` or
    ``created_at`` are accepted on load and never sent on save.
    """

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        base_url: str,
        api_key: str,
        *,
        table: str = "trackers",
        conflict_key: str = "label",
        limit: int = 1000,
    ) -> None:
        self._http = http_session
        self._url = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self._api_key = api_key
        self._conflict_key = conflict_key
        self._limit = limit

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
        }

    async def load_accounts(self) -> list[AccountConfig]:
        params = {"select": "*", "order": "id.asc", "limit": str(self._limit)}
        try:
            async with self._http.get(self._url, params=params, headers=self._headers()) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise ConfigPersistenceError(f"Loading accounts failed: HTTP {resp.status}: {text[:200]}")
        except aiohttp.ClientError as exc:
            raise ConfigPersistenceError(f"Loading accounts failed: {exc!r}") from exc
        try:
            rows = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigPersistenceError(f"Loading accounts failed: invalid JSON {text[:200]}") from exc
        return parse_accounts(rows)

    async def save_accounts(self, accounts: Sequence[AccountConfig]) -> None:
        records = [account.to_record() for account in accounts]
        if not records:
            return
        headers = {
            **self._headers(),
            "Content-Type": "application/json",
            "Prefer": "resolution=merge-duplicates,return=minimal",
        }
        params = {"on_conflict": self._conflict_key}
        try:
            async with self._http.post(self._url, params=params, json=records, headers=headers) as resp:
                if resp.status not in (200, 201, 204):
                    text = await resp.text()
                    raise ConfigPersistenceError(f"Saving accounts failed: HTTP {resp.status}: {text[:200]}")
        except aiohttp.ClientError as exc:
            raise ConfigPersistenceError(f"Saving accounts failed: {exc!r}") from exc
        _logger.debug("Upserted %d accounts", len(records))


def account_store_from_config(
    config: TrackerConfig,
    http_session: aiohttp.ClientSession,
) -> AccountStore | None:
    """Pick the configured store: REST when URL and key are set, else the JSON file."""
    if config.store_url and config.store_key:
        return RestAccountStore(http_session, config.store_url, config.store_key)
    if config.accounts_file:
        return JsonFileAccountStore(config.accounts_file)
    return None
