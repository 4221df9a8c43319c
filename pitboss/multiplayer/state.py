"""
Persisted round state for a multiplayer table.

A multiplayer round lives in storage between requests. Each engine
operation receives a `MultiplayerGameState` rebuilt from the stored row and
answers with a patch; the host merges the patch with `apply_updates` and
writes it back with `to_row`.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pitboss.blackjack.action import HandOutcome, PlayerAction
from pitboss.blackjack.hand import HandTotal, evaluate_hand
from pitboss.common.card import Card


class MultiplayerPhase(Enum):
    BETTING = "betting"
    DEALING = "dealing"
    PLAYER_ACTION = "player_action"
    DEALER_PLAY = "dealer_play"
    RESOLUTION = "resolution"
    ROUND_OVER = "round_over"


@dataclass(frozen=True)
class SeatHand:
    """
    One hand at a multiplayer table.

    A seat owns one hand until it splits; split hands keep the seat number
    and owner and sit next to each other in seat order.
    """

    seat_number: int
    user_id: str
    bet: float
    cards: Tuple[Card, ...] = ()
    actions: Tuple[PlayerAction, ...] = ()
    is_doubled: bool = False
    is_stood: bool = False
    is_surrendered: bool = False
    is_split: bool = False
    outcome: Optional[HandOutcome] = None
    payout: float = 0

    @property
    def total(self) -> HandTotal:
        return evaluate_hand(self.cards, self.is_split)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seat_number": self.seat_number,
            "user_id": self.user_id,
            "bet": self.bet,
            "cards": [card.to_dict() for card in self.cards],
            "actions": [action.value for action in self.actions],
            "is_doubled": self.is_doubled,
            "is_stood": self.is_stood,
            "is_surrendered": self.is_surrendered,
            "is_split": self.is_split,
            "outcome": self.outcome.value if self.outcome else None,
            "payout": self.payout,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SeatHand":
        outcome = data.get("outcome")
        return cls(
            seat_number=data["seat_number"],
            user_id=data["user_id"],
            bet=data["bet"],
            cards=tuple(Card.from_dict(c) for c in data.get("cards", ())),
            actions=tuple(PlayerAction(a) for a in data.get("actions", ())),
            is_doubled=data.get("is_doubled", False),
            is_stood=data.get("is_stood", False),
            is_surrendered=data.get("is_surrendered", False),
            is_split=data.get("is_split", False),
            outcome=HandOutcome(outcome) if outcome else None,
            payout=data.get("payout", 0),
        )


@dataclass(frozen=True)
class MultiplayerGameState:
    """
    Authoritative state of one round at a multiplayer table.

    Attributes:
        id: Identifier of the stored round
        room_id: Table the round belongs to
        round_number: Rounds played at the table, this one included
        phase: Current phase
        active_seat: Seat whose turn it is, if any
        active_hand_index: Index into ``player_hands`` of the hand to act
        shoe: Undealt cards, bottom first
        cards_dealt: Cards dealt since the last shuffle
        cut_card_position: Cards dealt before a reshuffle is due
        needs_reshuffle: Whether the cut card has come out
        player_hands: Hands in seat order
        dealer_cards: Dealer's cards; the second is the hole card
        hole_card_revealed: Whether the hole card is face up
    """

    room_id: str
    id: str = ""
    round_number: int = 1
    phase: MultiplayerPhase = MultiplayerPhase.BETTING
    active_seat: Optional[int] = None
    active_hand_index: Optional[int] = None
    shoe: Tuple[Card, ...] = ()
    cards_dealt: int = 0
    cut_card_position: int = 0
    needs_reshuffle: bool = False
    player_hands: Tuple[SeatHand, ...] = ()
    dealer_cards: Tuple[Card, ...] = ()
    hole_card_revealed: bool = False
    updated_at: Optional[str] = field(default=None, compare=False)

    def apply_updates(self, updates: Mapping[str, Any]) -> "MultiplayerGameState":
        """Return a copy with an engine patch merged in."""
        return replace(self, **updates)

    def hands_for(self, user_id: str) -> List[SeatHand]:
        return [h for h in self.player_hands if h.user_id == user_id]

    def to_row(self) -> Dict[str, Any]:
        """
        Convert the state to the stored row shape.

        Returns:
            Dictionary keyed by column name, cards and hands as plain dicts
        """
        return {
            "id": self.id,
            "room_id": self.room_id,
            "round_number": self.round_number,
            "phase": self.phase.value,
            "active_seat": self.active_seat,
            "active_hand_index": self.active_hand_index,
            "shoe": [card.to_dict() for card in self.shoe],
            "cards_dealt": self.cards_dealt,
            "cut_card_position": self.cut_card_position,
            "needs_reshuffle": self.needs_reshuffle,
            "player_hands": [hand.to_dict() for hand in self.player_hands],
            "dealer_cards": [card.to_dict() for card in self.dealer_cards],
            "hole_card_revealed": self.hole_card_revealed,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "MultiplayerGameState":
        """
        Rebuild the state from a stored row.

        Raises:
            ValueError: If a required column is missing
        """
        try:
            return cls(
                id=row["id"],
                room_id=row["room_id"],
                round_number=row["round_number"],
                phase=MultiplayerPhase(row["phase"]),
                active_seat=row.get("active_seat"),
                active_hand_index=row.get("active_hand_index"),
                shoe=tuple(Card.from_dict(c) for c in row["shoe"]),
                cards_dealt=row["cards_dealt"],
                cut_card_position=row["cut_card_position"],
                needs_reshuffle=row["needs_reshuffle"],
                player_hands=tuple(
                    SeatHand.from_dict(h) for h in row.get("player_hands") or ()
                ),
                dealer_cards=tuple(
                    Card.from_dict(c) for c in row.get("dealer_cards") or ()
                ),
                hole_card_revealed=row["hole_card_revealed"],
                updated_at=row.get("updated_at"),
            )
        except KeyError as exc:
            raise ValueError(f"Round row missing column {exc.args[0]!r}") from exc

    def to_client_dict(self) -> Dict[str, Any]:
        """
        The state as players may see it.

        The shoe is dropped so the card order stays secret, and the hole card
        is replaced by ``None`` until it is revealed.
        """
        data = self.to_row()
        del data["shoe"]
        data["dealer_cards"] = [
            None if i == 1 and not self.hole_card_revealed else card.to_dict()
            for i, card in enumerate(self.dealer_cards)
        ]
        return data


@dataclass(frozen=True)
class EngineResult:
    """Outcome of one engine operation: a failure reason or a state patch."""

    success: bool
    error: Optional[str] = None
    updates: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def fail(cls, error: str) -> "EngineResult":
        return cls(success=False, error=error)


@dataclass(frozen=True)
class ChipUpdate:
    """Chips to hand back to one seat at settlement (stake plus net payout)."""

    user_id: str
    seat_number: int
    net_return: float


@dataclass(frozen=True)
class ResolveResult(EngineResult):
    chip_updates: List[ChipUpdate] = field(default_factory=list)

    @classmethod
    def fail(cls, error: str) -> "ResolveResult":
        return cls(success=False, error=error)
