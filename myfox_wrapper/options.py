"""Immutable configuration values for the wrapper."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
import logging
from types import MappingProxyType
from typing import Any

import voluptuous as vol

from .const import (
    API_STRATEGIES,
    DEFAULT_AUTH_VALIDITY,
    DEFAULT_AUTO_AUTH_RETRY_CREDITS,
    DEFAULT_HEADERS,
    LOGIN_PATH,
    MAX_AUTH_RETRY_CREDITS,
    MAX_AUTH_VALIDITY,
    MIN_AUTH_RETRY_CREDITS,
    MIN_AUTH_VALIDITY,
    PORTAL_BASE,
    REDIRECT_FORBIDDEN,
    REQUEST_TIMEOUT,
    STRATEGY_CUSTOM,
)
from .errors import InvalidOptionsError
from .sanitize import mask_identifier

_LOGGER = logging.getLogger(__name__)

OPTIONS_SCHEMA = vol.Schema(
    {
        vol.Required("api_strategy"): vol.In(API_STRATEGIES),
        vol.Required("auto_authentication"): bool,
        vol.Required("auto_auth_retry_credits"): vol.All(
            int, vol.Range(min=MIN_AUTH_RETRY_CREDITS, max=MAX_AUTH_RETRY_CREDITS)
        ),
        vol.Required("auth_validity"): vol.All(
            int, vol.Range(min=MIN_AUTH_VALIDITY, max=MAX_AUTH_VALIDITY)
        ),
        vol.Required("myfox_site_ids"): vol.All(
            [vol.All(int, vol.Range(min=1))], vol.Length(min=1)
        ),
    }
)

CREDENTIALS_SCHEMA = vol.Schema(
    {
        vol.Required("username"): vol.All(str, vol.Email()),
        vol.Required("password"): vol.All(str, vol.Length(min=1)),
    }
)


@dataclass(frozen=True, slots=True)
class WrapperOptions:
    """Validated wrapper options, never mutated after construction."""

    api_strategy: str = STRATEGY_CUSTOM
    auto_authentication: bool = True
    auto_auth_retry_credits: int = DEFAULT_AUTO_AUTH_RETRY_CREDITS
    auth_validity: int = DEFAULT_AUTH_VALIDITY
    myfox_site_ids: tuple[int, ...] = ()

    def allows_site(self, site_id: Any) -> bool:
        """Return ``True`` when ``site_id`` belongs to the allowed site ids."""

        try:
            return int(str(site_id).strip()) in self.myfox_site_ids
        except (TypeError, ValueError):
            return False


@dataclass(frozen=True, slots=True)
class AccountCredentials:
    """Credentials of the single account a wrapper instance acts for."""

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class PortalSettings:
    """Location and request defaults of the HTML portal."""

    base_url: str = PORTAL_BASE
    login_path: str = LOGIN_PATH
    redirect_forbidden: str = REDIRECT_FORBIDDEN
    headers: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_HEADERS))
    )
    timeout: float = REQUEST_TIMEOUT


def default_options() -> dict[str, Any]:
    """Return the default option values as a fresh mapping."""

    defaults = asdict(WrapperOptions())
    defaults["myfox_site_ids"] = []
    return defaults


def build_options(
    overrides: Mapping[str, Any] | WrapperOptions | None = None,
    **forced_defaults: Any,
) -> WrapperOptions:
    """Merge defaults, ``forced_defaults`` and ``overrides`` then validate.

    ``forced_defaults`` sit between the library defaults and the caller
    overrides; the factory uses it to switch the default strategy.
    """

    if isinstance(overrides, WrapperOptions):
        return overrides

    merged = default_options()
    merged.update(forced_defaults)
    if overrides:
        merged.update(overrides)
    if isinstance(merged.get("myfox_site_ids"), tuple):
        merged["myfox_site_ids"] = list(merged["myfox_site_ids"])

    try:
        validated = OPTIONS_SCHEMA(merged)
    except vol.Invalid as err:
        raise InvalidOptionsError(f"Invalid wrapper options: {err}") from err

    options = WrapperOptions(
        api_strategy=validated["api_strategy"],
        auto_authentication=validated["auto_authentication"],
        auto_auth_retry_credits=validated["auto_auth_retry_credits"],
        auth_validity=validated["auth_validity"],
        myfox_site_ids=tuple(validated["myfox_site_ids"]),
    )
    _LOGGER.debug(
        "Wrapper options: strategy=%s auto_auth=%s credits=%s validity=%ss sites=%s",
        options.api_strategy,
        options.auto_authentication,
        options.auto_auth_retry_credits,
        options.auth_validity,
        [mask_identifier(site) for site in options.myfox_site_ids],
    )
    return options


def build_credentials(
    credentials: Mapping[str, Any] | AccountCredentials | None,
) -> AccountCredentials | None:
    """Validate ``credentials`` when present."""

    if credentials is None or isinstance(credentials, AccountCredentials):
        return credentials
    try:
        validated = CREDENTIALS_SCHEMA(dict(credentials))
    except vol.Invalid as err:
        # Never echo the submitted values.
        raise InvalidOptionsError(
            f"Invalid account credentials ({'/'.join(map(str, err.path))})"
        ) from err
    return AccountCredentials(
        username=validated["username"], password=validated["password"]
    )


__all__ = [
    "AccountCredentials",
    "CREDENTIALS_SCHEMA",
    "OPTIONS_SCHEMA",
    "PortalSettings",
    "WrapperOptions",
    "build_credentials",
    "build_options",
    "default_options",
]
