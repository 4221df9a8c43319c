"""
Tests for the event bus.
"""

import logging
import threading
from unittest.mock import MagicMock

import pytest

from pitboss.events import EngineEventType, EventBus, EventEmitter
from pitboss.state import GameAction, apply, create_initial_state


def test_payload_delivered_to_listener():
    emitter = EventEmitter()
    callback = MagicMock()
    emitter.on(EngineEventType.HAND_RESULT, callback)

    emitter.emit(EngineEventType.HAND_RESULT, {"outcome": "win"})

    callback.assert_called_once_with({"outcome": "win"})


def test_enum_and_name_are_interchangeable():
    emitter = EventEmitter()
    callback = MagicMock()

    emitter.on("SHUFFLE", callback)
    emitter.emit(EngineEventType.SHUFFLE, {})

    callback.assert_called_once()


def test_listener_only_sees_its_event_type():
    emitter = EventEmitter()
    callback = MagicMock()
    emitter.on(EngineEventType.SHUFFLE, callback)

    emitter.emit(EngineEventType.ROUND_STARTED, {})

    callback.assert_not_called()


def test_unsubscribe():
    emitter = EventEmitter()
    callback = MagicMock()
    unsubscribe = emitter.on(EngineEventType.PLAYER_BET, callback)

    emitter.emit(EngineEventType.PLAYER_BET, {"amount": 10})
    unsubscribe()
    unsubscribe()
    emitter.emit(EngineEventType.PLAYER_BET, {"amount": 20})

    assert callback.call_count == 1


def test_catch_all_receives_name_and_payload():
    emitter = EventEmitter()
    callback = MagicMock()
    unsubscribe = emitter.on_any(callback)

    emitter.emit(EngineEventType.ROUND_ENDED, {"chips": 900})
    emitter.emit("custom", {})

    assert [c.args[0] for c in callback.call_args_list] == [
        ("ROUND_ENDED", {"chips": 900}),
        ("custom", {}),
    ]

    unsubscribe()
    emitter.emit(EngineEventType.ROUND_ENDED, {})
    assert callback.call_count == 2


def test_context_merged_into_payload():
    emitter = EventEmitter()
    callback = MagicMock()
    emitter.on(EngineEventType.PLAYER_ACTION, callback)

    emitter.set_context("session-123", "7")
    emitter.emit(EngineEventType.PLAYER_ACTION, {"action": "hit"})
    emitter.emit(EngineEventType.PLAYER_ACTION, {"session_id": "other"})

    first, second = [c.args[0] for c in callback.call_args_list]
    assert first == {"session_id": "session-123", "round_id": "7", "action": "hit"}
    assert second["session_id"] == "other"


def test_failing_listener_does_not_stop_others(caplog):
    emitter = EventEmitter()

    def broken(data):
        raise ValueError("listener failed")

    after = MagicMock()
    emitter.on(EngineEventType.DEALER_ACTION, broken)
    emitter.on(EngineEventType.DEALER_ACTION, after)

    with caplog.at_level(logging.ERROR, logger="pitboss.events"):
        emitter.emit(EngineEventType.DEALER_ACTION, {})

    after.assert_called_once()
    assert "listener failed" in caplog.text


def test_listener_may_unsubscribe_while_handling():
    emitter = EventEmitter()
    calls = []

    def handle(data):
        calls.append(data)
        unsubscribe()

    unsubscribe = emitter.on(EngineEventType.SHUFFLE, handle)
    emitter.emit(EngineEventType.SHUFFLE, {"n": 1})
    emitter.emit(EngineEventType.SHUFFLE, {"n": 2})

    assert calls == [{"n": 1}]


def test_event_bus_singleton():
    assert EventBus.get_instance() is EventBus.get_instance()
    assert isinstance(EventBus.get_instance(), EventEmitter)


def test_reducer_publishes_on_the_bus(rigged_shoe):
    bus = EventBus.get_instance()
    bets = MagicMock()
    bus.on(EngineEventType.PLAYER_BET, bets)
    bus.set_context("session-1", "1")

    shoe = rigged_shoe("10", "7", "9", "K")
    state = create_initial_state(1000, 1, session_id="session-1")
    apply(state, GameAction.place_bet(0, 25), shoe)

    payload = bets.call_args.args[0]
    assert payload["amount"] == 25
    assert payload["hand_index"] == 0
    assert payload["round_id"] == "1"


def test_concurrent_emits():
    emitter = EventEmitter()
    count = {"value": 0}
    lock = threading.Lock()

    def increment(data):
        with lock:
            count["value"] += 1

    emitter.on(EngineEventType.SHUFFLE, increment)
    threads = [
        threading.Thread(target=emitter.emit, args=(EngineEventType.SHUFFLE, {}))
        for _ in range(10)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert count["value"] == 10


if __name__ == "__main__":
    pytest.main(["-xvs", __file__])
