"""Strategy-based composition of the wrapper variants."""

from __future__ import annotations

from collections.abc import Callable, Mapping
import logging
from typing import Any

import aiohttp

from .capabilities import UNSUPPORTED, ActionInput, WrapperApiProto
from .const import (
    STRATEGY_HTML_FIRST,
    STRATEGY_HTML_ONLY,
    STRATEGY_REST_FIRST,
    STRATEGY_REST_ONLY,
)
from .errors import InvalidOptionsError, UnsupportedOperationError
from .html_api import HtmlApi
from .macro import CompletionCallback, MacroListener, MacroListenerRegistry
from .options import (
    AccountCredentials,
    PortalSettings,
    WrapperOptions,
    build_credentials,
    build_options,
)
from .persistent_state import StateListener, StateStore
from .rest_api import RestApi

_LOGGER = logging.getLogger(__name__)

_NOT_IMPLEMENTED = "Feature not implemented in this wrapper."


class MyfoxWrapper:
    """Try each operation on the primary variant, then on the secondary one."""

    def __init__(
        self,
        primary: WrapperApiProto,
        secondary: WrapperApiProto | None = None,
        *,
        options: WrapperOptions,
        states: StateStore,
        macro_listeners: MacroListenerRegistry,
    ) -> None:
        """Store the variants and the state they share."""

        self.primary = primary
        self.secondary = secondary
        self.options = options
        self.states = states
        self.macro_listeners = macro_listeners

    @property
    def variants(self) -> tuple[WrapperApiProto, ...]:
        """Return the variants in the order they are tried."""

        if self.secondary is None:
            return (self.primary,)
        return (self.primary, self.secondary)

    def _first_supported(self, call: Callable[[WrapperApiProto], Any]) -> Any:
        for variant in self.variants:
            result = call(variant)
            if result is not UNSUPPORTED:
                return result
            _LOGGER.debug("%s does not support the operation", type(variant).__name__)
        raise UnsupportedOperationError(_NOT_IMPLEMENTED)

    # ----------------- Listeners -----------------

    def add_state_listener(self, label: str, listener: StateListener) -> bool:
        """Register ``listener`` on the ``label`` persistent state channel."""

        return self.states.add_listener(label, listener)

    def add_macro_listener(self, listener: MacroListener) -> bool:
        """Register a macro progress listener."""

        return self.macro_listeners.add_macro_listener(listener)

    def remove_macro_listener(self, listener: MacroListener) -> bool:
        """Unregister a macro progress listener."""

        return self.macro_listeners.remove_macro_listener(listener)

    # ----------------- Operations -----------------

    async def call_home(self) -> Any:
        """Refresh the status and alarm channels from the home page."""

        for variant in self.variants:
            result = await variant.call_home()
            if result is not UNSUPPORTED:
                return result
        raise UnsupportedOperationError(_NOT_IMPLEMENTED)

    def call_scenario_action(
        self,
        action: ActionInput,
        callback: CompletionCallback,
        macro_id: Any = None,
        *next_actions: ActionInput,
    ) -> Any:
        """Start a scenario macro on the first variant supporting it."""

        return self._first_supported(
            lambda api: api.call_scenario_action(
                action, callback, macro_id, *next_actions
            )
        )

    def call_domotic_action(
        self,
        action: ActionInput,
        callback: CompletionCallback,
        macro_id: Any = None,
        *next_actions: ActionInput,
    ) -> Any:
        """Start a domotic macro on the first variant supporting it."""

        return self._first_supported(
            lambda api: api.call_domotic_action(
                action, callback, macro_id, *next_actions
            )
        )

    def call_heating_action(
        self,
        action: ActionInput,
        callback: CompletionCallback,
        macro_id: Any = None,
        *next_actions: ActionInput,
    ) -> Any:
        """Start a heating macro on the first variant supporting it."""

        return self._first_supported(
            lambda api: api.call_heating_action(
                action, callback, macro_id, *next_actions
            )
        )

    def call_alarm_level_action(
        self, action: ActionInput, callback: CompletionCallback
    ) -> Any:
        """Change the alarm level on the first variant supporting it."""

        return self._first_supported(
            lambda api: api.call_alarm_level_action(action, callback)
        )


def create_wrapper(
    session: aiohttp.ClientSession,
    options: Mapping[str, Any] | WrapperOptions | None = None,
    credentials: Mapping[str, Any] | AccountCredentials | None = None,
    *,
    settings: PortalSettings | None = None,
) -> MyfoxWrapper:
    """Create a wrapper composed according to ``options['api_strategy']``."""

    opts = build_options(options, api_strategy=STRATEGY_HTML_FIRST)
    creds = build_credentials(credentials)
    states = StateStore()
    macro_listeners = MacroListenerRegistry()

    def html() -> HtmlApi:
        return HtmlApi(
            session,
            opts,
            creds,
            settings=settings,
            states=states,
            macro_listeners=macro_listeners,
        )

    def rest() -> RestApi:
        return RestApi(opts, creds, states=states, macro_listeners=macro_listeners)

    strategy = opts.api_strategy
    if strategy == STRATEGY_HTML_ONLY:
        primary, secondary = html(), None
    elif strategy == STRATEGY_HTML_FIRST:
        primary, secondary = html(), rest()
    elif strategy == STRATEGY_REST_FIRST:
        primary, secondary = rest(), html()
    elif strategy == STRATEGY_REST_ONLY:
        primary, secondary = rest(), None
    else:
        raise InvalidOptionsError(
            f"Strategy {strategy!r} cannot be built by create_wrapper; "
            "compose the variants directly."
        )

    _LOGGER.debug(
        "Created Myfox wrapper: strategy=%s primary=%s secondary=%s",
        strategy,
        type(primary).__name__,
        type(secondary).__name__ if secondary is not None else None,
    )
    return MyfoxWrapper(
        primary,
        secondary,
        options=opts,
        states=states,
        macro_listeners=macro_listeners,
    )


__all__ = ["MyfoxWrapper", "create_wrapper"]
