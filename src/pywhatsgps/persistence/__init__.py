"""Persistence of user-added tracker accounts."""

from pywhatsgps.persistence.debounce import DebouncedSaver
from pywhatsgps.persistence.store import (
    AccountStore,
    JsonFileAccountStore,
    RestAccountStore,
    account_store_from_config,
)

__all__ = [
    "AccountStore",
    "DebouncedSaver",
    "JsonFileAccountStore",
    "RestAccountStore",
    "account_store_from_config",
]
