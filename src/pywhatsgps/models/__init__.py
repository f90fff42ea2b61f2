"""Data models for WhatsGPS accounts, positions and polling results."""

from pywhatsgps.models.account import AccountConfig
from pywhatsgps.models.address import AddressRecord, AddressRow, AddressState
from pywhatsgps.models.entity import LatLng, TrackedEntity
from pywhatsgps.models.results import ERROR_SEPARATOR, AccountFetchResult, CycleResult
from pywhatsgps.models.token import LoginData

__all__ = [
    "ERROR_SEPARATOR",
    "AccountConfig",
    "AccountFetchResult",
    "AddressRecord",
    "AddressRow",
    "AddressState",
    "CycleResult",
    "LatLng",
    "LoginData",
    "TrackedEntity",
]
