from __future__ import annotations

from datetime import datetime
import logging
from typing import Any

import pytest

from myfox_wrapper.errors import InvalidActionError, RemoteCallError
from myfox_wrapper.macro import (
    ALARM_ACTION_SCHEMA,
    HEATING_ACTION_SCHEMA,
    SCENARIO_ACTION_SCHEMA,
    Action,
    MacroListenerRegistry,
    new_macro_id,
    validate_action,
)


def test_validate_action_applies_defaults() -> None:
    action = validate_action(SCENARIO_ACTION_SCHEMA, {"id": 12, "action": "play"})

    assert action == Action(action="play", id=12, delay=0)


def test_validate_action_rejects_unknown_action() -> None:
    with pytest.raises(InvalidActionError, match="must be one of"):
        validate_action(HEATING_ACTION_SCHEMA, {"id": 1, "action": "boost"})


@pytest.mark.parametrize(
    "raw",
    [
        {"action": "on"},
        {"id": 0, "action": "on"},
        {"id": "12", "action": "on"},
        {"id": 1, "action": "on", "delay": -5},
        {"id": 1, "action": "on", "extra": True},
    ],
)
def test_validate_action_rejects_bad_shapes(raw: dict[str, Any]) -> None:
    with pytest.raises(InvalidActionError):
        validate_action(SCENARIO_ACTION_SCHEMA, raw)


def test_validate_action_rejects_non_mapping() -> None:
    with pytest.raises(InvalidActionError, match="mapping"):
        validate_action(SCENARIO_ACTION_SCHEMA, ["on"])  # type: ignore[arg-type]


def test_validate_action_accepts_validated_action() -> None:
    action = Action(action="half", password="pw")

    assert validate_action(ALARM_ACTION_SCHEMA, action) == action


def test_alarm_schema_has_no_target() -> None:
    with pytest.raises(InvalidActionError):
        validate_action(ALARM_ACTION_SCHEMA, {"action": "on", "id": 3})


def test_new_macro_id_is_unique_hex() -> None:
    first = new_macro_id()
    second = new_macro_id()

    assert first != second
    assert len(first) == 40
    int(first, 16)


def test_registry_deduplicates_and_removes() -> None:
    registry = MacroListenerRegistry()

    def _listener(*_: Any) -> bool:
        return True

    assert registry.add_macro_listener(_listener) is True
    assert registry.add_macro_listener(_listener) is False
    assert registry.remove_macro_listener(_listener) is True
    assert registry.remove_macro_listener(_listener) is False
    assert registry.listeners == []


def test_notify_passes_event_fields() -> None:
    registry = MacroListenerRegistry()
    seen: list[tuple[Any, ...]] = []

    def _listener(*args: Any) -> bool:
        seen.append(args)
        return True

    registry.add_macro_listener(_listener)
    registry.notify_macro_listeners(
        None, {"id": "m1", "data": {"status": "ok"}, "state": "progress", "remaining": 2}
    )

    assert len(seen) == 1
    macro_id, data, state, remaining, ts = seen[0]
    assert (macro_id, data, state, remaining) == ("m1", {"status": "ok"}, "progress", 2)
    assert isinstance(ts, datetime)


def test_falsy_listener_is_dropped_after_round() -> None:
    registry = MacroListenerRegistry()
    calls = {"keep": 0, "once": 0}

    def _keep(*_: Any) -> bool:
        calls["keep"] += 1
        return True

    def _once(*_: Any) -> None:
        calls["once"] += 1

    registry.add_macro_listener(_once)
    registry.add_macro_listener(_keep)

    registry.notify_macro_listeners(None, {"id": "m", "state": "progress"})
    registry.notify_macro_listeners(None, {"id": "m", "state": "finished"})

    assert calls == {"keep": 2, "once": 1}
    assert registry.listeners == [_keep]


def test_notify_with_error_only_logs(caplog: pytest.LogCaptureFixture) -> None:
    registry = MacroListenerRegistry()
    seen: list[Any] = []
    registry.add_macro_listener(lambda *args: seen.append(args) or True)

    with caplog.at_level(logging.ERROR):
        registry.notify_macro_listeners(RemoteCallError("boom", status=404), None)

    assert seen == []
    assert "boom" in caplog.text


def test_raising_listener_does_not_stop_the_round(
    caplog: pytest.LogCaptureFixture,
) -> None:
    registry = MacroListenerRegistry()
    seen: list[Any] = []

    def _broken(*_: Any) -> bool:
        raise RuntimeError("listener bug")

    def _once(*args: Any) -> bool:
        seen.append(args[2])
        return False

    registry.add_macro_listener(_broken)
    registry.add_macro_listener(_once)

    with caplog.at_level(logging.ERROR):
        registry.notify_macro_listeners(None, {"id": "m", "state": "progress"})
        registry.notify_macro_listeners(None, {"id": "m", "state": "finished"})

    assert seen == ["progress"]
    assert registry.listeners == [_broken]
    assert "listener bug" in caplog.text
