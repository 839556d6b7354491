"""Action definitions and macro listener registry."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
import logging
import secrets
from typing import Any

import voluptuous as vol

from .const import (
    ALARM_ACTIONS,
    DOMOTIC_ACTIONS,
    HEATING_ACTIONS,
    MACRO_ID_BYTES,
    SCENARIO_ACTIONS,
)
from .errors import InvalidActionError

_LOGGER = logging.getLogger(__name__)

MacroListener = Callable[[Any, Any, str, int, datetime], bool]
CompletionCallback = Callable[[Exception | None, dict[str, Any] | None], Any]

_POSITIVE_ID = vol.All(int, vol.Range(min=1))
_DELAY = vol.All(int, vol.Range(min=0))


def _targeted_schema(actions: tuple[str, ...]) -> vol.Schema:
    """Return the schema of an action addressing a device or scenario."""

    return vol.Schema(
        {
            vol.Required("id"): _POSITIVE_ID,
            vol.Required("action"): vol.In(actions),
            vol.Optional("delay", default=0): _DELAY,
        }
    )


SCENARIO_ACTION_SCHEMA = _targeted_schema(SCENARIO_ACTIONS)
DOMOTIC_ACTION_SCHEMA = _targeted_schema(DOMOTIC_ACTIONS)
HEATING_ACTION_SCHEMA = _targeted_schema(HEATING_ACTIONS)
ALARM_ACTION_SCHEMA = vol.Schema(
    {
        vol.Required("action"): vol.In(ALARM_ACTIONS),
        vol.Optional("password"): str,
    }
)


@dataclass(frozen=True, slots=True)
class Action:
    """One validated step of a macro."""

    action: str
    id: int | None = None
    delay: int = 0
    password: str | None = None


def validate_action(schema: vol.Schema, raw: Mapping[str, Any] | Action) -> Action:
    """Return ``raw`` validated against ``schema``.

    Raises ``InvalidActionError`` with the voluptuous message, e.g.
    ``value must be one of [...]``.
    """

    if isinstance(raw, Action):
        raw = {
            key: value
            for key, value in (
                ("id", raw.id),
                ("action", raw.action),
                ("delay", raw.delay or None),
                ("password", raw.password),
            )
            if value is not None
        }
    if not isinstance(raw, Mapping):
        raise InvalidActionError(f"Action must be a mapping, got {type(raw).__name__}")
    try:
        data = schema(dict(raw))
    except vol.Invalid as err:
        raise InvalidActionError(str(err)) from err
    return Action(
        action=data["action"],
        id=data.get("id"),
        delay=data.get("delay", 0),
        password=data.get("password"),
    )


def new_macro_id() -> str:
    """Return a fresh opaque macro correlation token."""

    return secrets.token_hex(MACRO_ID_BYTES)


class MacroListenerRegistry:
    """Subscribers to macro progress, dropped when they return a falsy value."""

    def __init__(self) -> None:
        """Create an empty registry."""

        self.listeners: list[MacroListener] = []

    def add_macro_listener(self, listener: MacroListener) -> bool:
        """Register ``listener``; return ``False`` when already registered."""

        if any(existing is listener for existing in self.listeners):
            return False
        self.listeners.append(listener)
        return True

    def remove_macro_listener(self, listener: MacroListener) -> bool:
        """Unregister ``listener``; return ``False`` when it was unknown."""

        for index, existing in enumerate(self.listeners):
            if existing is listener:
                del self.listeners[index]
                return True
        return False

    def notify_macro_listeners(
        self, err: Exception | None, payload: Mapping[str, Any] | None
    ) -> None:
        """Broadcast a macro event; errors are only logged."""

        if err is not None:
            _LOGGER.error("Macro step failed: %s", err)
            return

        payload = payload or {}
        timestamp = datetime.now(UTC)
        dropped: list[MacroListener] = []
        for listener in list(self.listeners):
            try:
                keep = listener(
                    payload.get("id"),
                    payload.get("data"),
                    payload.get("state"),
                    payload.get("remaining", 0),
                    timestamp,
                )
            except Exception:
                _LOGGER.exception("Macro listener %r failed", listener)
                continue
            if not keep:
                dropped.append(listener)
        for listener in dropped:
            self.remove_macro_listener(listener)


__all__ = [
    "ALARM_ACTION_SCHEMA",
    "Action",
    "CompletionCallback",
    "DOMOTIC_ACTION_SCHEMA",
    "HEATING_ACTION_SCHEMA",
    "MacroListener",
    "MacroListenerRegistry",
    "SCENARIO_ACTION_SCHEMA",
    "new_macro_id",
    "validate_action",
]
