"""
Hand evaluation for blackjack.

Totals are derived on demand from a card list; nothing here holds state.
"""

from dataclasses import dataclass
from typing import Sequence

from pitboss.blackjack.action import HandOutcome
from pitboss.blackjack.constants import card_value
from pitboss.common.card import Card, Rank


@dataclass(frozen=True)
class HandTotal:
    """
    Evaluated totals of a hand.

    Attributes:
        hard: Total after demoting as many Aces to 1 as needed
        soft: Total with every Ace counted as 11
        best: The total the hand plays as (equal to ``hard``)
        is_soft: Whether an Ace still counts as 11 in ``best``
        is_bust: Whether ``best`` exceeds 21
        is_blackjack: Two-card 21 not produced by a split
    """

    hard: int
    soft: int
    best: int
    is_soft: bool
    is_bust: bool
    is_blackjack: bool


def evaluate_hand(cards: Sequence[Card], is_from_split: bool = False) -> HandTotal:
    """
    Evaluate a hand of cards.

    Aces start at 11 and are demoted to 1 one at a time while the total is
    over 21.

    >>> from pitboss.common.card import Suit
    >>> evaluate_hand([Card(Suit.HEARTS, Rank.ACE), Card(Suit.CLUBS, Rank.SIX)]).best
    17
    """
    total = 0
    aces = 0
    for card in cards:
        total += card_value(card.rank)
        if card.rank is Rank.ACE:
            aces += 1

    soft_total = total
    while total > 21 and aces > 0:
        total -= 10
        aces -= 1

    return HandTotal(
        hard=total,
        soft=soft_total,
        best=total,
        is_soft=aces > 0,
        is_bust=total > 21,
        is_blackjack=len(cards) == 2 and total == 21 and not is_from_split,
    )


def can_split(cards: Sequence[Card]) -> bool:
    """Two cards of equal value (a Ten and a King qualify)."""
    if len(cards) != 2:
        return False
    return card_value(cards[0].rank) == card_value(cards[1].rank)


def dealer_shows_ace(dealer_cards: Sequence[Card]) -> bool:
    """Check if the dealer's up card is an Ace."""
    return len(dealer_cards) > 0 and dealer_cards[0].rank is Rank.ACE


def dealer_shows_ten(dealer_cards: Sequence[Card]) -> bool:
    """Check if the dealer's up card is ten-valued."""
    return len(dealer_cards) > 0 and card_value(dealer_cards[0].rank) == 10


def should_dealer_hit(cards: Sequence[Card], hit_soft_17: bool = True) -> bool:
    """
    Whether the dealer draws another card.

    The dealer draws below 17 and, when ``hit_soft_17`` is set, on soft 17.
    """
    total = evaluate_hand(cards)
    if total.is_bust:
        return False
    if total.best < 17:
        return True
    return hit_soft_17 and total.best == 17 and total.is_soft


def determine_outcome(
    player_total: HandTotal, dealer_total: HandTotal, is_surrendered: bool
) -> HandOutcome:
    """Determine the outcome of a player hand against the dealer hand."""
    if is_surrendered:
        return HandOutcome.SURRENDER
    if player_total.is_bust:
        return HandOutcome.LOSS
    if player_total.is_blackjack and dealer_total.is_blackjack:
        return HandOutcome.PUSH
    if player_total.is_blackjack:
        return HandOutcome.BLACKJACK
    if dealer_total.is_bust:
        return HandOutcome.WIN
    if player_total.best > dealer_total.best:
        return HandOutcome.WIN
    if player_total.best == dealer_total.best:
        return HandOutcome.PUSH
    return HandOutcome.LOSS
