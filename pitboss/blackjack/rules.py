from dataclasses import asdict, dataclass, fields
from typing import Any, Dict

from pitboss.blackjack import constants


@dataclass(frozen=True)
class Rules:
    """
    Table configuration shared by the single-player and multiplayer engines.

    Attributes:
        num_decks: Decks in the shoe
        penetration: Fraction of the shoe dealt before the cut card
        min_bet: Smallest bet accepted on a hand
        blackjack_payout: Net multiplier paid on a natural
        max_split_hands: Player hands allowed in play before splitting stops (per seat at a multiplayer table)
        max_hands: Betting spots a single player may play at once
        min_buy_in: Smallest session buy-in
        max_buy_in: Largest session buy-in
        buy_in_increment: Buy-ins must be a multiple of this
        dealer_hit_soft_17: Whether the dealer draws on soft 17
    """

    num_decks: int = constants.NUM_DECKS
    penetration: float = constants.CUT_CARD_PENETRATION
    min_bet: int = constants.MIN_BET
    blackjack_payout: float = constants.BLACKJACK_PAYOUT
    max_split_hands: int = constants.MAX_SPLIT_HANDS
    max_hands: int = constants.MAX_HANDS
    min_buy_in: int = constants.MIN_BUY_IN
    max_buy_in: int = constants.MAX_BUY_IN
    buy_in_increment: int = constants.BUY_IN_INCREMENT
    dealer_hit_soft_17: bool = True

    def __post_init__(self):
        if self.num_decks < 1:
            raise ValueError("Number of decks must be at least 1")
        if not 0 < self.penetration <= 1:
            raise ValueError("Penetration must be between 0 and 1")
        if self.min_bet < 1:
            raise ValueError("Minimum bet must be at least 1")
        if self.blackjack_payout <= 0:
            raise ValueError("Blackjack payout must be positive")
        if self.max_split_hands < 1:
            raise ValueError("max_split_hands must be at least 1")
        if self.max_hands < 1:
            raise ValueError("max_hands must be at least 1")
        if self.min_buy_in > self.max_buy_in:
            raise ValueError("min_buy_in cannot exceed max_buy_in")
        if self.buy_in_increment < 1:
            raise ValueError("buy_in_increment must be at least 1")

    def to_dict(self) -> Dict[str, Any]:
        """Convert rules to a dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rules":
        """
        Build rules from a dictionary, filling gaps with defaults.

        Raises:
            ValueError: If the dictionary names an unknown rule
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown rules: {', '.join(sorted(unknown))}")
        return cls(**data)


DEFAULT_RULES = Rules()
