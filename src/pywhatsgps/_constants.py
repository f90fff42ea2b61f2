"""Internal constants shared across the library."""

import re

BASE_URL = "https://www.whatsgps.com"
LOGIN_ENDPOINT = "/user/login.do"
POSITIONS_ENDPOINT = "/carStatus/getByUserId.do"

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded;charset=UTF-8"
JSON_CONTENT_TYPE = "application/json;charset=UTF-8"

#: ``ret`` value the backend uses for a successful reply.
RET_OK = 1

# ------------------------------------------------------------------
# Login field synonyms
# ------------------------------------------------------------------

LOGIN_USER_FIELDS: tuple[str, ...] = ("name", "username", "userName", "phone", "account", "user")
LOGIN_PASSWORD_FIELDS: tuple[str, ...] = ("password", "pwd", "pass")
LOGIN_BASE_FIELDS: dict[str, str] = {"timeZoneSecond": "0", "lang": "en"}

#: Map type requested from the positions endpoint (2 = Google/WGS84).
POSITIONS_MAP_TYPE = 2

# Best-effort: the backend reports an invalid session through free text
# (English and Chinese) or the ``C05`` error code.
AUTH_FAILURE_PATTERN = re.compile(r"login|登录|参数不能为空|C05", re.IGNORECASE)

# ------------------------------------------------------------------
# Defaults
# ------------------------------------------------------------------

DEFAULT_POLL_INTERVAL = 15.0
DEFAULT_ANIMATION_DURATION = 0.6
DEFAULT_ACCOUNT_TIMEOUT = 10.0
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_SAVE_DELAY = 0.6
DEFAULT_ADDRESS_TTL = 30.0

STATIC_ACCOUNT_LABELS: tuple[str, str] = ("A", "B")

GEOCODE_URL = "https://nominatim.openstreetmap.org"
GEOCODE_LANGUAGE = "ru"
USER_AGENT = "pywhatsgps/1.0"
