"""
Event system for the pitboss engine.

Transitions announce what happened at the table (cards dealt, hands settled,
shoe reshuffled) on a process-wide bus. Hosts subscribe to drive animation,
auditing or persistence hooks; the engine never depends on anyone listening.
"""

from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Union
import threading
import logging
from enum import Enum

logger = logging.getLogger("pitboss.events")


class EngineEventType(Enum):
    """
    Event types emitted by the pitboss engine.
    """

    # Round lifecycle
    ROUND_STARTED = "round_started"
    ROUND_ENDED = "round_ended"

    # Player events
    PLAYER_BET = "player_bet"
    PLAYER_ACTION = "player_action"

    # Hand events
    HAND_SPLIT = "hand_split"
    HAND_BUSTED = "hand_busted"
    HAND_RESULT = "hand_result"

    # Dealer events
    DEALER_BLACKJACK = "dealer_blackjack"
    DEALER_ACTION = "dealer_action"

    # Even money events
    EVEN_MONEY_OFFERED = "even_money_offered"
    EVEN_MONEY_DECISION = "even_money_decision"

    # Money events
    MONEY_PAYOUT = "money_payout"

    # Shoe events
    SHUFFLE = "shuffle"


def _event_name(event_type: Union[str, EngineEventType]) -> str:
    return event_type.name if isinstance(event_type, Enum) else event_type


class EventEmitter:
    """
    Dispatches table events to subscribers.

    Listeners for one event type receive the payload dict; catch-all
    listeners receive an ``(event_name, payload)`` tuple. When a session
    context is set, its ``session_id`` and ``round_id`` are merged into
    every payload (keys in the payload win).
    """

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = defaultdict(list)
        self._catch_all: List[Callable] = []
        self._listener_lock = threading.RLock()
        self._session_id: Optional[str] = None
        self._round_id: Optional[str] = None

    def set_context(self, session_id: str, round_id: str) -> None:
        """
        Tag subsequent events with the session and round they belong to.

        Args:
            session_id: The session or room the events belong to
            round_id: The identifier for the current round
        """
        self._session_id = session_id
        self._round_id = round_id

    def _subscribe(self, bucket: List[Callable], callback: Callable) -> Callable:
        with self._listener_lock:
            bucket.append(callback)

        def unsubscribe():
            with self._listener_lock:
                if callback in bucket:
                    bucket.remove(callback)

        return unsubscribe

    def on(self, event_type: Union[str, EngineEventType], callback: Callable) -> Callable:
        """
        Subscribe to one event type.

        Returns:
            Function that removes this subscription
        """
        return self._subscribe(self._listeners[_event_name(event_type)], callback)

    def on_any(self, callback: Callable) -> Callable:
        """
        Subscribe to every event.

        Returns:
            Function that removes this subscription
        """
        return self._subscribe(self._catch_all, callback)

    def emit(self, event_type: Union[str, EngineEventType], data: Dict[str, Any]) -> None:
        """
        Deliver an event to its listeners, then to the catch-all listeners.

        A failing listener is logged and does not stop the remaining ones or
        the transition that emitted the event.
        """
        name = _event_name(event_type)
        if self._session_id is not None:
            data = {"session_id": self._session_id, "round_id": self._round_id, **data}

        with self._listener_lock:
            calls = [(callback, data) for callback in self._listeners.get(name, ())]
            calls.extend((callback, (name, data)) for callback in self._catch_all)

        # Listeners run outside the lock so they may subscribe or emit themselves
        for callback, args in calls:
            try:
                callback(args)
            except Exception as e:
                logger.error(f"Error in event handler for {name}: {e}", exc_info=True)


class EventBus:
    """
    Process-wide holder of the engine's `EventEmitter`.
    """

    _instance = None
    _lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> EventEmitter:
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = EventEmitter()
        return cls._instance
