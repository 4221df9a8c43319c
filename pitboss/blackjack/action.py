"""Enums for player decisions and hand outcomes."""
from enum import Enum


class PlayerAction(Enum):
    """Enum for the possible actions a player can take on a hand."""

    HIT = "hit"
    STAND = "stand"
    DOUBLE = "double"
    SPLIT = "split"
    SURRENDER = "surrender"


class HandOutcome(Enum):
    """Enum for how a settled hand finished against the dealer."""

    WIN = "win"
    LOSS = "loss"
    PUSH = "push"
    BLACKJACK = "blackjack"
    SURRENDER = "surrender"
