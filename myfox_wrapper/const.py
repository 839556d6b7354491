"""Constants for the Myfox wrapper API."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Final

# Portal base & paths
PORTAL_BASE: Final = "https://myfox.me"
LOGIN_PATH: Final = "/login"
HOME_PATH_FMT: Final = "/home/{siteId}"
REDIRECT_FORBIDDEN: Final = "/"

SCENARIO_PATH_FMT: Final = "/widget/{{siteId}}/scenario/{action}/{id}"
DOMOTIC_PATH_FMT: Final = "/widget/{{siteId}}/domotic/{action}/{id}"
HEATING_PATH_FMT: Final = "/widget/{{siteId}}/heating/{action}/{id}"
ALARM_PATH_FMT: Final = "/widget/{{siteId}}/protection/seclev/{level}"

# Placeholder substituted with the authenticated site id before each call
SITE_ID_PLACEHOLDER: Final = "{siteId}"

# UA / locale (matches a desktop browser loosely; the portal serves HTML)
USER_AGENT: Final = "Mozilla/5.0 (X11; Linux x86_64) MyfoxWrapperApi/1.0"
ACCEPT_LANGUAGE: Final = "fr-FR,fr;q=0.8,en-US;q=0.5,en;q=0.3"

DEFAULT_HEADERS: Final[Mapping[str, str]] = {
    "User-Agent": USER_AGENT,
    "Accept-Language": ACCEPT_LANGUAGE,
    "Accept": "text/html,application/json;q=0.9,*/*;q=0.8",
    "X-Requested-With": "XMLHttpRequest",
}

REQUEST_TIMEOUT: Final = 25  # seconds

# Strategies
STRATEGY_HTML_ONLY: Final = "htmlOnly"
STRATEGY_HTML_FIRST: Final = "htmlFirst"
STRATEGY_REST_FIRST: Final = "restFirst"
STRATEGY_REST_ONLY: Final = "restOnly"
STRATEGY_CUSTOM: Final = "custom"

API_STRATEGIES: Final = (
    STRATEGY_HTML_ONLY,
    STRATEGY_HTML_FIRST,
    STRATEGY_REST_FIRST,
    STRATEGY_REST_ONLY,
    STRATEGY_CUSTOM,
)

# Authentication defaults
DEFAULT_AUTO_AUTH_RETRY_CREDITS: Final = 3  # 4 attempts maximum
DEFAULT_AUTH_VALIDITY: Final = 120  # seconds
MIN_AUTH_RETRY_CREDITS: Final = 0
MAX_AUTH_RETRY_CREDITS: Final = 10
MIN_AUTH_VALIDITY: Final = 1
MAX_AUTH_VALIDITY: Final = 86400

# Error statuses
STATUS_BAD_REQUEST: Final = 400
STATUS_UNAUTHORIZED: Final = 401
STATUS_FORBIDDEN: Final = 403
STATUS_NOT_FOUND: Final = 404
STATUS_FORBIDDEN_SITE: Final = 449
STATUS_INTERNAL: Final = 500

# Action vocabularies
SCENARIO_ACTIONS: Final = ("on", "off", "play")
DOMOTIC_ACTIONS: Final = ("on", "off")
HEATING_ACTIONS: Final = ("on", "eco", "frost", "off")
ALARM_ACTIONS: Final = ("on", "half", "off")

ALARM_LEVELS: Final[Mapping[str, int]] = {
    "off": 1,
    "half": 2,
    "on": 4,
}

# Alarm changes that always require the account password
ALARM_PROTECTED_ACTIONS: Final = frozenset({"off", "half"})

# Macro states reported to callbacks and listeners
MACRO_DELAYED: Final = "delayed"
MACRO_PROGRESS: Final = "progress"
MACRO_FINISHED: Final = "finished"

MACRO_ID_BYTES: Final = 20

# Persistent state channels
STATE_STATUS: Final = "status"
STATE_ALARM: Final = "alarm"
STATE_SCENARIOS: Final = "scenarios"
STATE_DOMOTICS: Final = "domotics"
# Sensor readings have no page reader yet; the channel only takes external pushes.
STATE_SENSORS: Final = "sensors"
STATE_HEATINGS: Final = "heatings"

STATE_LABELS: Final = (
    STATE_STATUS,
    STATE_ALARM,
    STATE_SCENARIOS,
    STATE_DOMOTICS,
    STATE_SENSORS,
    STATE_HEATINGS,
)
