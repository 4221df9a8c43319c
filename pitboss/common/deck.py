"""
This module builds decks and multi-deck shoes and shuffles them.

>>> len(create_deck())
52
>>> len(create_shoe(6))
312
"""

import secrets
from typing import Callable, List

from pitboss.common.card import Card, Rank, Suit

RandomInt = Callable[[int], int]

_UINT32_RANGE = 1 << 32

# Precompute the default deck
_DEFAULT_DECK = tuple(Card(suit, rank) for suit in Suit for rank in Rank)


def create_deck() -> List[Card]:
    """
    Construct a single 52-card deck, suit-major and rank-minor.

    :return: A new list of Card instances.
    """
    return list(_DEFAULT_DECK)


def create_shoe(num_decks: int = 6) -> List[Card]:
    """
    Construct an unshuffled shoe of ``num_decks`` full decks.

    :param num_decks: Number of decks to combine.
    :raises ValueError: If ``num_decks`` is less than one.
    """
    if num_decks < 1:
        raise ValueError("Number of decks must be at least 1")
    shoe: List[Card] = []
    for _ in range(num_decks):
        shoe.extend(_DEFAULT_DECK)
    return shoe


def secure_random_int(upper: int) -> int:
    """
    Return a uniformly distributed integer in ``[0, upper)``.

    Draws 32-bit values from the operating system CSPRNG and rejects draws
    that fall in the tail ``[limit, 2**32)``, where ``limit`` is the largest
    multiple of ``upper``, so the final modulo carries no bias.
    """
    if upper <= 0:
        return 0
    limit = _UINT32_RANGE - (_UINT32_RANGE % upper)
    while True:
        draw = secrets.randbits(32)
        if draw < limit:
            return draw % upper


def shuffle(cards: List[Card], random_int: RandomInt = secure_random_int) -> List[Card]:
    """
    Fisher-Yates shuffle the cards in place.

    :param cards: The list to shuffle.
    :param random_int: Source of uniform integers in ``[0, n)``. Defaults to
                       the cryptographically secure source; tests may pass a
                       seeded one for reproducibility.
    :return: The same list, shuffled.
    """
    for i in range(len(cards) - 1, 0, -1):
        j = random_int(i + 1)
        cards[i], cards[j] = cards[j], cards[i]
    return cards
