"""Blackjack table constants and value mappings."""

from pitboss.common.card import Rank

NUM_DECKS = 6
CARDS_PER_DECK = 52
TOTAL_CARDS = NUM_DECKS * CARDS_PER_DECK  # 312
CUT_CARD_PENETRATION = 0.75

MIN_BET = 1
MIN_BUY_IN = 100
MAX_BUY_IN = 10000
BUY_IN_INCREMENT = 100

MAX_HANDS = 6
# Max hands one betting spot may grow to by splitting (original + 3 splits)
MAX_SPLIT_HANDS = 4
BLACKJACK_PAYOUT = 1.5  # 3:2

BLACKJACK_VALUES = {
    Rank.TWO: 2,
    Rank.THREE: 3,
    Rank.FOUR: 4,
    Rank.FIVE: 5,
    Rank.SIX: 6,
    Rank.SEVEN: 7,
    Rank.EIGHT: 8,
    Rank.NINE: 9,
    Rank.TEN: 10,
    Rank.JACK: 10,
    Rank.QUEEN: 10,
    Rank.KING: 10,
    Rank.ACE: 11,
}


def card_value(rank: Rank) -> int:
    """Get the blackjack value for a given rank; Aces count 11."""
    return BLACKJACK_VALUES[rank]
