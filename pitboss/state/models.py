"""
Immutable state models for a single-player blackjack session.

These dataclasses are replaced wholesale by the transition functions in
`pitboss.state.transitions`; nothing here is ever mutated in place.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple
from enum import Enum
import uuid

from pitboss.blackjack.action import HandOutcome, PlayerAction
from pitboss.blackjack.hand import HandTotal, evaluate_hand
from pitboss.blackjack.rules import DEFAULT_RULES, Rules
from pitboss.common.card import Card


class GamePhase(Enum):
    """
    Phases of a single-player round.

    DEALING and RESOLUTION are passed through within a single transition.
    """

    BETTING = "BETTING"
    DEALING = "DEALING"
    PLAYER_ACTION = "PLAYER_ACTION"
    DEALER_PLAY = "DEALER_PLAY"
    RESOLUTION = "RESOLUTION"
    ROUND_OVER = "ROUND_OVER"


@dataclass(frozen=True)
class PlayerHand:
    """
    Immutable representation of one player hand.

    Attributes:
        cards: Cards in the hand, in the order dealt
        bet: Amount riding on the hand (doubled in place on a double down)
        actions: Decisions taken on the hand
        is_doubled: Whether the bet has been doubled
        is_split: Whether this hand was created via a split
        is_surrendered: Whether the hand has been surrendered
        is_stood: Whether the hand is finished taking cards
        outcome: Set once at settlement, None until then
        payout: Net change recorded at settlement
    """

    cards: Tuple[Card, ...] = ()
    bet: float = 0
    actions: Tuple[PlayerAction, ...] = ()
    is_doubled: bool = False
    is_split: bool = False
    is_surrendered: bool = False
    is_stood: bool = False
    outcome: Optional[HandOutcome] = None
    payout: float = 0

    @property
    def total(self) -> HandTotal:
        return evaluate_hand(self.cards, self.is_split)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cards": [card.to_dict() for card in self.cards],
            "bet": self.bet,
            "actions": [action.value for action in self.actions],
            "is_doubled": self.is_doubled,
            "is_split": self.is_split,
            "is_surrendered": self.is_surrendered,
            "is_stood": self.is_stood,
            "outcome": self.outcome.value if self.outcome else None,
            "payout": self.payout,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlayerHand":
        outcome = data.get("outcome")
        return cls(
            cards=tuple(Card.from_dict(c) for c in data.get("cards", ())),
            bet=data.get("bet", 0),
            actions=tuple(PlayerAction(a) for a in data.get("actions", ())),
            is_doubled=data.get("is_doubled", False),
            is_split=data.get("is_split", False),
            is_surrendered=data.get("is_surrendered", False),
            is_stood=data.get("is_stood", False),
            outcome=HandOutcome(outcome) if outcome else None,
            payout=data.get("payout", 0),
        )


@dataclass(frozen=True)
class DealerHand:
    """
    Immutable representation of the dealer's hand.

    The second card is the hole card and stays hidden until
    ``hole_card_revealed`` is set.
    """

    cards: Tuple[Card, ...] = ()
    hole_card_revealed: bool = False

    @property
    def up_card(self) -> Optional[Card]:
        return self.cards[0] if self.cards else None

    @property
    def visible_cards(self) -> Tuple[Card, ...]:
        """Cards a player at the table can see."""
        if self.hole_card_revealed:
            return self.cards
        return self.cards[:1]

    @property
    def total(self) -> HandTotal:
        return evaluate_hand(self.cards)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cards": [card.to_dict() for card in self.cards],
            "hole_card_revealed": self.hole_card_revealed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DealerHand":
        return cls(
            cards=tuple(Card.from_dict(c) for c in data.get("cards", ())),
            hole_card_revealed=data.get("hole_card_revealed", False),
        )


@dataclass(frozen=True)
class GameState:
    """
    Immutable representation of a single-player session between transitions.

    Attributes:
        phase: Current phase of the round
        shoe: Snapshot of the undealt cards, bottom first
        cards_dealt: Cards dealt since the last shuffle
        cut_card_position: Cards dealt before a reshuffle is due
        needs_reshuffle: Whether the cut card came out this round
        player_hands: Hands in play, left to right
        dealer_hand: The dealer's hand
        active_hand_index: Hand currently being played
        chips: Chips not currently riding on a hand
        bets: Pending bets per betting spot during BETTING
        hands_configuration: Number of betting spots (1-6)
        session_id: Identifier of the session
        hand_number: Rounds dealt so far
        even_money_offered: Whether an even-money decision is pending
        even_money_hand_index: Hand the even-money offer concerns
        previous_bets: Bets of the last completed round
        rules: Table configuration
    """

    phase: GamePhase = GamePhase.BETTING
    shoe: Tuple[Card, ...] = ()
    cards_dealt: int = 0
    cut_card_position: int = 0
    needs_reshuffle: bool = False
    player_hands: Tuple[PlayerHand, ...] = ()
    dealer_hand: DealerHand = field(default_factory=DealerHand)
    active_hand_index: int = 0
    chips: float = 0
    bets: Tuple[float, ...] = (0,)
    hands_configuration: int = 1
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    hand_number: int = 0
    even_money_offered: bool = False
    even_money_hand_index: Optional[int] = None
    previous_bets: Tuple[float, ...] = ()
    rules: Rules = DEFAULT_RULES

    @property
    def active_hand(self) -> Optional[PlayerHand]:
        """Get the hand currently being played."""
        if 0 <= self.active_hand_index < len(self.player_hands):
            return self.player_hands[self.active_hand_index]
        return None

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the game state to a dictionary suitable for persistence.

        Returns:
            Dictionary representation of the game state
        """
        return {
            "phase": self.phase.value,
            "shoe": [card.to_dict() for card in self.shoe],
            "cards_dealt": self.cards_dealt,
            "cut_card_position": self.cut_card_position,
            "needs_reshuffle": self.needs_reshuffle,
            "player_hands": [hand.to_dict() for hand in self.player_hands],
            "dealer_hand": self.dealer_hand.to_dict(),
            "active_hand_index": self.active_hand_index,
            "chips": self.chips,
            "bets": list(self.bets),
            "hands_configuration": self.hands_configuration,
            "session_id": self.session_id,
            "hand_number": self.hand_number,
            "even_money_offered": self.even_money_offered,
            "even_money_hand_index": self.even_money_hand_index,
            "previous_bets": list(self.previous_bets),
            "rules": self.rules.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameState":
        """
        Rebuild a game state from `to_dict` output.

        Raises:
            ValueError: If a required field is missing or malformed
        """
        try:
            return cls(
                phase=GamePhase(data["phase"]),
                shoe=tuple(Card.from_dict(c) for c in data["shoe"]),
                cards_dealt=data["cards_dealt"],
                cut_card_position=data["cut_card_position"],
                needs_reshuffle=data["needs_reshuffle"],
                player_hands=tuple(
                    PlayerHand.from_dict(h) for h in data["player_hands"]
                ),
                dealer_hand=DealerHand.from_dict(data["dealer_hand"]),
                active_hand_index=data["active_hand_index"],
                chips=data["chips"],
                bets=tuple(data["bets"]),
                hands_configuration=data["hands_configuration"],
                session_id=data["session_id"],
                hand_number=data["hand_number"],
                even_money_offered=data.get("even_money_offered", False),
                even_money_hand_index=data.get("even_money_hand_index"),
                previous_bets=tuple(data.get("previous_bets", ())),
                rules=Rules.from_dict(data.get("rules", {})),
            )
        except KeyError as exc:
            raise ValueError(f"Game state missing field {exc.args[0]!r}") from exc
