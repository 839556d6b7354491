"""Wrapper variant driving the Myfox HTML portal."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
import copy
from dataclasses import replace
import logging
import time
from typing import Any

import aiohttp

from .common import ActionDomain, CommonApi
from .const import (
    ALARM_LEVELS,
    ALARM_PATH_FMT,
    ALARM_PROTECTED_ACTIONS,
    DOMOTIC_PATH_FMT,
    HEATING_PATH_FMT,
    HOME_PATH_FMT,
    SCENARIO_PATH_FMT,
    SITE_ID_PLACEHOLDER,
    STATE_ALARM,
    STATE_DOMOTICS,
    STATE_HEATINGS,
    STATE_SCENARIOS,
    STATE_STATUS,
)
from .errors import AlarmPasswordError, AuthenticationError, ForbiddenSiteError
from .macro import (
    ALARM_ACTION_SCHEMA,
    DOMOTIC_ACTION_SCHEMA,
    HEATING_ACTION_SCHEMA,
    SCENARIO_ACTION_SCHEMA,
    Action,
    CompletionCallback,
    MacroListenerRegistry,
    validate_action,
)
from .options import AccountCredentials, PortalSettings, WrapperOptions
from .parsers import CodeActionParser, HomeParser, LoginParser, ResponseParser
from .persistent_state import StateStore
from .sanitize import mask_identifier
from .transport import HtmlTransport

_LOGGER = logging.getLogger(__name__)


def _cache_buster(action: Action) -> dict[str, int]:
    """Return the query string defeating the portal widget cache."""

    return {"_": int(time.time() * 1000)}


def _set_entry(current: dict[Any, Any], action: Action, key: str, value: Any) -> dict:
    """Set ``key`` on the entry of ``action.id`` inside ``current``."""

    entry = current.setdefault(action.id, {"id": action.id})
    entry[key] = value
    return current


def _scenario_effect(current: dict[Any, Any], action: Action) -> dict | None:
    if action.action == "play":
        return None
    return _set_entry(current, action, "active", action.action == "on")


def _domotic_effect(current: dict[Any, Any], action: Action) -> dict:
    return _set_entry(current, action, "supposed_state", action.action)


def _heating_effect(current: dict[Any, Any], action: Action) -> dict:
    return _set_entry(current, action, "state", action.action)


def _alarm_effect(current: dict[str, Any], action: Action) -> dict:
    current["level"] = action.action
    return current


SCENARIO_DOMAIN = ActionDomain(
    name="scenario",
    schema=SCENARIO_ACTION_SCHEMA,
    method="GET",
    step_name="_call_scenario_action",
    build_path=lambda action: SCENARIO_PATH_FMT.format(
        action=action.action, id=action.id
    ),
    build_query=_cache_buster,
    parser_factory=CodeActionParser,
    state_label=STATE_SCENARIOS,
    apply_effect=_scenario_effect,
)

DOMOTIC_DOMAIN = ActionDomain(
    name="domotic",
    schema=DOMOTIC_ACTION_SCHEMA,
    method="POST",
    step_name="_call_domotic_action",
    build_path=lambda action: DOMOTIC_PATH_FMT.format(
        action=action.action, id=action.id
    ),
    parser_factory=CodeActionParser,
    state_label=STATE_DOMOTICS,
    apply_effect=_domotic_effect,
)

HEATING_DOMAIN = ActionDomain(
    name="heating",
    schema=HEATING_ACTION_SCHEMA,
    method="POST",
    step_name="_call_heating_action",
    build_path=lambda action: HEATING_PATH_FMT.format(
        action=action.action, id=action.id
    ),
    parser_factory=CodeActionParser,
    state_label=STATE_HEATINGS,
    apply_effect=_heating_effect,
)

ALARM_DOMAIN = ActionDomain(
    name="alarm",
    schema=ALARM_ACTION_SCHEMA,
    method="GET",
    step_name="_call_alarm_level_action",
    build_path=lambda action: ALARM_PATH_FMT.format(level=ALARM_LEVELS[action.action]),
    parser_factory=CodeActionParser,
    state_label=STATE_ALARM,
    apply_effect=_alarm_effect,
)


class HtmlApi(CommonApi):
    """Myfox wrapper scraping the customer web portal."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        options: Mapping[str, Any] | WrapperOptions | None = None,
        credentials: Mapping[str, Any] | AccountCredentials | None = None,
        *,
        settings: PortalSettings | None = None,
        states: StateStore | None = None,
        macro_listeners: MacroListenerRegistry | None = None,
    ) -> None:
        """Create the wrapper around a shared aiohttp session."""

        super().__init__(
            options, credentials, states=states, macro_listeners=macro_listeners
        )
        self._transport = HtmlTransport(session, settings, cookie_hook=self)

    @property
    def transport(self) -> HtmlTransport:
        """Return the portal transport."""

        return self._transport

    async def authenticate(self, auth_data: Any) -> tuple[Any, str | None]:
        """Fill the login form and check the site the account lands on."""

        if self.credentials is None:
            raise AuthenticationError("No account credentials configured.")

        parser = await self._transport.request(
            "POST",
            self._transport.settings.login_path,
            LoginParser(),
            payload={
                "username": self.credentials.username,
                "password": self.credentials.password,
            },
        )
        if not self.options.allows_site(parser.site_id):
            _LOGGER.error(
                "Authenticated with a forbidden site id (%s); check myfox_site_ids",
                mask_identifier(parser.site_id),
            )
            raise ForbiddenSiteError(
                "Forbidden site id. The wrapper is restricted to a list of site ids "
                "and the account site does not match one of them."
            )
        return parser.result(), parser.site_id

    async def call_distant(
        self,
        path: str,
        method: str,
        parser: ResponseParser | None = None,
        query_params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> Any:
        """Address the authenticated site and send the request."""

        if SITE_ID_PLACEHOLDER in path:
            site_id = self.session.authenticated_site_id
            if site_id is None:
                site_id = self.options.myfox_site_ids[0]
            path = path.replace(SITE_ID_PLACEHOLDER, str(site_id))
        return await self._transport.request(
            method,
            path,
            parser,
            payload=payload,
            headers=headers,
            query_params=query_params,
        )

    # ----------------- Public API -----------------

    async def call_home(self) -> dict[str, Any]:
        """Read the home page and refresh the status and alarm channels."""

        _LOGGER.info("Routing - call_home: GET %s", HOME_PATH_FMT)
        parser = await self.call_api(HOME_PATH_FMT, "GET", HomeParser())
        home = parser.result()
        self.states.push(STATE_STATUS, dict(home))
        if parser.alarm_level is not None:
            alarm = copy.deepcopy(self.states.value(STATE_ALARM, {}))
            alarm["level"] = parser.alarm_level
            self.states.push(STATE_ALARM, alarm)
        return home

    def call_scenario_action(
        self,
        action: Mapping[str, Any] | Action,
        callback: CompletionCallback,
        macro_id: Any = None,
        *next_actions: Mapping[str, Any] | Action,
    ) -> asyncio.Task[Any]:
        """Play or (de)activate scenarios; see ``_start_macro``."""

        return self._start_macro(
            SCENARIO_DOMAIN, action, callback, macro_id, next_actions
        )

    async def _call_scenario_action(
        self,
        action: Mapping[str, Any] | Action,
        callback: CompletionCallback,
        macro_id: Any = None,
        *next_actions: Mapping[str, Any] | Action,
    ) -> None:
        await self._run_action_step(
            SCENARIO_DOMAIN, action, callback, macro_id, next_actions
        )

    def call_domotic_action(
        self,
        action: Mapping[str, Any] | Action,
        callback: CompletionCallback,
        macro_id: Any = None,
        *next_actions: Mapping[str, Any] | Action,
    ) -> asyncio.Task[Any]:
        """Switch domotic devices on or off."""

        return self._start_macro(
            DOMOTIC_DOMAIN, action, callback, macro_id, next_actions
        )

    async def _call_domotic_action(
        self,
        action: Mapping[str, Any] | Action,
        callback: CompletionCallback,
        macro_id: Any = None,
        *next_actions: Mapping[str, Any] | Action,
    ) -> None:
        await self._run_action_step(
            DOMOTIC_DOMAIN, action, callback, macro_id, next_actions
        )

    def call_heating_action(
        self,
        action: Mapping[str, Any] | Action,
        callback: CompletionCallback,
        macro_id: Any = None,
        *next_actions: Mapping[str, Any] | Action,
    ) -> asyncio.Task[Any]:
        """Change heating modes (on, eco, frost, off)."""

        return self._start_macro(
            HEATING_DOMAIN, action, callback, macro_id, next_actions
        )

    async def _call_heating_action(
        self,
        action: Mapping[str, Any] | Action,
        callback: CompletionCallback,
        macro_id: Any = None,
        *next_actions: Mapping[str, Any] | Action,
    ) -> None:
        await self._run_action_step(
            HEATING_DOMAIN, action, callback, macro_id, next_actions
        )

    def call_alarm_level_action(
        self,
        action: Mapping[str, Any] | Action,
        callback: CompletionCallback,
    ) -> asyncio.Task[Any]:
        """Change the alarm protection level.

        Lowering the level (``off``/``half``) or passing a password requires
        the password of the account credentials. Alarm changes are never part
        of a macro and are reported with ``id`` ``None``.
        """

        validated = validate_action(ALARM_ACTION_SCHEMA, action)
        return self._spawn(self._call_alarm_level_action(validated, callback))

    async def _call_alarm_level_action(
        self,
        action: Mapping[str, Any] | Action,
        callback: CompletionCallback,
        *_: Any,
    ) -> None:
        action = validate_action(ALARM_ACTION_SCHEMA, action)
        if action.action in ALARM_PROTECTED_ACTIONS or action.password is not None:
            expected = self.credentials.password if self.credentials else None
            if expected is None or action.password != expected:
                _LOGGER.warning(
                    "Alarm level change to %s refused: wrong password", action.action
                )
                self._deliver(
                    callback,
                    AlarmPasswordError(
                        "The given password does not match the account password."
                    ),
                    None,
                )
                return
        await self._run_action_step(
            ALARM_DOMAIN, replace(action, password=None), callback, None, ()
        )


__all__ = [
    "ALARM_DOMAIN",
    "DOMOTIC_DOMAIN",
    "HEATING_DOMAIN",
    "HtmlApi",
    "SCENARIO_DOMAIN",
]
