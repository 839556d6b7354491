"""Wrapper variant for the Myfox REST API.

Only the shared core is available: every action answers ``UNSUPPORTED`` so a
composed wrapper falls back to its other variant.
"""

from __future__ import annotations

from typing import Any

from .capabilities import UNSUPPORTED, ActionInput
from .common import CommonApi
from .errors import UnsupportedOperationError
from .macro import CompletionCallback


class RestApi(CommonApi):
    """REST flavour of the wrapper, without any implemented operation yet."""

    async def authenticate(self, auth_data: Any) -> tuple[Any, str | None]:
        raise UnsupportedOperationError("REST authentication is not implemented.")

    async def call_distant(self, path: str, method: str, *args: Any) -> Any:
        raise UnsupportedOperationError("REST calls are not implemented.")

    async def call_home(self) -> Any:
        return UNSUPPORTED

    def call_scenario_action(
        self,
        action: ActionInput,
        callback: CompletionCallback,
        macro_id: Any = None,
        *next_actions: ActionInput,
    ) -> Any:
        return UNSUPPORTED

    def call_domotic_action(
        self,
        action: ActionInput,
        callback: CompletionCallback,
        macro_id: Any = None,
        *next_actions: ActionInput,
    ) -> Any:
        return UNSUPPORTED

    def call_heating_action(
        self,
        action: ActionInput,
        callback: CompletionCallback,
        macro_id: Any = None,
        *next_actions: ActionInput,
    ) -> Any:
        return UNSUPPORTED

    def call_alarm_level_action(
        self, action: ActionInput, callback: CompletionCallback
    ) -> Any:
        return UNSUPPORTED


__all__ = ["RestApi"]
