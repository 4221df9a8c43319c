"""
Multiplayer round engine.

Rounds are persisted between requests; each operation takes the stored
state and returns a patch for the host to write back.
"""

from pitboss.multiplayer.state import (
    ChipUpdate,
    EngineResult,
    MultiplayerGameState,
    MultiplayerPhase,
    ResolveResult,
    SeatHand,
)
from pitboss.multiplayer.engine import (
    create_new_round,
    deal_cards,
    get_available_actions,
    place_bet,
    play_dealer,
    player_double,
    player_hit,
    player_split,
    player_stand,
    player_surrender,
    resolve_round,
    run_automatic_phases,
)

__all__ = [
    "ChipUpdate",
    "EngineResult",
    "MultiplayerGameState",
    "MultiplayerPhase",
    "ResolveResult",
    "SeatHand",
    "create_new_round",
    "deal_cards",
    "get_available_actions",
    "place_bet",
    "play_dealer",
    "player_double",
    "player_hit",
    "player_split",
    "player_stand",
    "player_surrender",
    "resolve_round",
    "run_automatic_phases",
]
