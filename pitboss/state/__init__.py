"""
Immutable state management for single-player blackjack.

This package provides immutable state classes and pure transition functions
for managing a solo session in a predictable and testable way.
"""

from pitboss.state.models import (
    DealerHand,
    GamePhase,
    GameState,
    PlayerHand,
)
from pitboss.state.actions import ActionType, GameAction
from pitboss.state.transitions import (
    StateTransitionEngine,
    advance_to_next_playable_hand,
    apply,
    create_initial_state,
    game_reducer,
    get_available_actions,
    resolve_hands,
)

__all__ = [
    "DealerHand",
    "GamePhase",
    "GameState",
    "PlayerHand",
    "ActionType",
    "GameAction",
    "StateTransitionEngine",
    "advance_to_next_playable_hand",
    "apply",
    "create_initial_state",
    "game_reducer",
    "get_available_actions",
    "resolve_hands",
]
