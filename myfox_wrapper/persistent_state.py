"""Change-detecting caches of the last observed portal state."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
import logging
from typing import Any

from .const import STATE_LABELS

_LOGGER = logging.getLogger(__name__)

StateListener = Callable[[str, Any, Any, datetime], Any]


class _Unset:
    """Marker for a channel that never received a value."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


class PersistentState:
    """Last known value of one channel and the listeners watching it."""

    def __init__(self, label: str) -> None:
        """Create an empty channel."""

        self.label = label
        self.value: Any = UNSET
        self.listeners: list[StateListener] = []

    def add_listener(self, listener: StateListener) -> bool:
        """Register ``listener``; return ``False`` when already registered."""

        if any(existing is listener for existing in self.listeners):
            return False
        self.listeners.append(listener)
        return True

    def push(self, value: Any, skip_first: bool = True) -> bool:
        """Store ``value`` and notify listeners when it differs from the last one.

        The first value pushed on an empty channel is not notified unless
        ``skip_first`` is false. Returns ``True`` when listeners were called.
        """

        old_value = self.value
        notified = False
        if old_value != value and (not skip_first or old_value is not UNSET):
            timestamp = datetime.now(UTC)
            for listener in list(self.listeners):
                listener(self.label, value, old_value, timestamp)
            notified = True
        self.value = value
        return notified


class StateStore:
    """Fixed set of persistent state channels shared by wrapper variants."""

    def __init__(self, labels: Iterable[str] = STATE_LABELS) -> None:
        """Create one channel per label."""

        self._states = {label: PersistentState(label) for label in labels}

    def __contains__(self, label: object) -> bool:
        return label in self._states

    def labels(self) -> tuple[str, ...]:
        """Return the known channel labels."""

        return tuple(self._states)

    def get(self, label: str) -> PersistentState:
        """Return the channel for ``label``."""

        try:
            return self._states[label]
        except KeyError:
            raise KeyError(f"Unknown state label: {label!r}") from None

    def value(self, label: str, default: Any = None) -> Any:
        """Return the current value of ``label`` or ``default`` when unset."""

        value = self.get(label).value
        return default if value is UNSET else value

    def add_listener(self, label: str, listener: StateListener) -> bool:
        """Register ``listener`` on the ``label`` channel."""

        return self.get(label).add_listener(listener)

    def push(self, label: str, value: Any, skip_first: bool = True) -> bool:
        """Push ``value`` to the ``label`` channel."""

        notified = self.get(label).push(value, skip_first)
        if notified:
            _LOGGER.debug("State %s changed", label)
        return notified


__all__ = ["PersistentState", "StateListener", "StateStore", "UNSET"]
