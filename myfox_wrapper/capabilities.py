"""Operations every wrapper variant exposes."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final, Protocol

from .macro import Action, CompletionCallback


class _Unsupported:
    """Marker returned by a variant that does not implement an operation."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "UNSUPPORTED"

    def __bool__(self) -> bool:
        return False


UNSUPPORTED: Final = _Unsupported()

ActionInput = Mapping[str, Any] | Action


class WrapperApiProto(Protocol):
    """Protocol for the wrapper variants composed by ``MyfoxWrapper``.

    Each operation returns ``UNSUPPORTED`` when the variant does not
    implement it.
    """

    async def call_home(self) -> Any:
        """Refresh the status and alarm channels from the home page."""

    def call_scenario_action(
        self,
        action: ActionInput,
        callback: CompletionCallback,
        macro_id: Any = None,
        *next_actions: ActionInput,
    ) -> Any:
        """Start a scenario macro."""

    def call_domotic_action(
        self,
        action: ActionInput,
        callback: CompletionCallback,
        macro_id: Any = None,
        *next_actions: ActionInput,
    ) -> Any:
        """Start a domotic macro."""

    def call_heating_action(
        self,
        action: ActionInput,
        callback: CompletionCallback,
        macro_id: Any = None,
        *next_actions: ActionInput,
    ) -> Any:
        """Start a heating macro."""

    def call_alarm_level_action(
        self, action: ActionInput, callback: CompletionCallback
    ) -> Any:
        """Change the alarm level."""


__all__ = ["ActionInput", "UNSUPPORTED", "WrapperApiProto"]
