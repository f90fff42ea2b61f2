"""pywhatsgps - Async Python client and live tracker for the WhatsGPS platform."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pywhatsgps")
except PackageNotFoundError:
    __version__ = "0+local"
from pywhatsgps.client import WhatsGpsClient
from pywhatsgps.config import TrackerConfig
from pywhatsgps.exceptions import (
    ApiError,
    AuthError,
    ConfigError,
    ConfigPersistenceError,
    GeocodeError,
    SessionExpiredError,
    TransportError,
    WhatsGpsError,
)
from pywhatsgps.models import (
    AccountConfig,
    AccountFetchResult,
    CycleResult,
    LatLng,
    TrackedEntity,
)
from pywhatsgps.motion import MarkerSurface, MotionInterpolator
from pywhatsgps.orchestrator import OrchestratorState, PollingOrchestrator
from pywhatsgps.resolver import FocusQuery, focus_target, resolve_entity
from pywhatsgps.session import SessionCache, SessionCredential

__all__ = [
    "__version__",
    "AccountConfig",
    "AccountFetchResult",
    "ApiError",
    "AuthError",
    "ConfigError",
    "ConfigPersistenceError",
    "CycleResult",
    "FocusQuery",
    "GeocodeError",
    "LatLng",
    "MarkerSurface",
    "MotionInterpolator",
    "OrchestratorState",
    "PollingOrchestrator",
    "SessionCache",
    "SessionCredential",
    "SessionExpiredError",
    "TrackedEntity",
    "TrackerConfig",
    "TransportError",
    "WhatsGpsClient",
    "WhatsGpsError",
    "focus_target",
    "resolve_entity",
]
