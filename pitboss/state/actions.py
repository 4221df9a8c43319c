"""
Actions accepted by the single-player reducer.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Sequence, Tuple


class ActionType(Enum):
    PLACE_BET = auto()
    CLEAR_BET = auto()
    CLEAR_ALL_BETS = auto()
    SAME_BET = auto()
    DOUBLE_PREVIOUS_BET = auto()
    DEAL = auto()
    HIT = auto()
    STAND = auto()
    DOUBLE_DOWN = auto()
    SPLIT = auto()
    SURRENDER = auto()
    ACCEPT_EVEN_MONEY = auto()
    DECLINE_EVEN_MONEY = auto()
    DEALER_PLAY = auto()
    RESOLVE = auto()
    NEW_ROUND = auto()


@dataclass(frozen=True)
class GameAction:
    """
    A single reducer input.

    Attributes:
        type: What to do
        hand_index: Betting spot for PLACE_BET and CLEAR_BET
        amount: Bet size for PLACE_BET
        previous_bets: Bets to repeat for SAME_BET and DOUBLE_PREVIOUS_BET;
            when None the state's own ``previous_bets`` are used
    """

    type: ActionType
    hand_index: int = 0
    amount: float = 0
    previous_bets: Optional[Tuple[float, ...]] = None

    @classmethod
    def place_bet(cls, hand_index: int, amount: float) -> "GameAction":
        return cls(ActionType.PLACE_BET, hand_index=hand_index, amount=amount)

    @classmethod
    def clear_bet(cls, hand_index: int) -> "GameAction":
        return cls(ActionType.CLEAR_BET, hand_index=hand_index)

    @classmethod
    def same_bet(cls, previous_bets: Optional[Sequence[float]] = None) -> "GameAction":
        bets = tuple(previous_bets) if previous_bets is not None else None
        return cls(ActionType.SAME_BET, previous_bets=bets)

    @classmethod
    def double_previous_bet(
        cls, previous_bets: Optional[Sequence[float]] = None
    ) -> "GameAction":
        bets = tuple(previous_bets) if previous_bets is not None else None
        return cls(ActionType.DOUBLE_PREVIOUS_BET, previous_bets=bets)

    @classmethod
    def of(cls, action_type: ActionType) -> "GameAction":
        """Build an action that carries no arguments."""
        return cls(action_type)
