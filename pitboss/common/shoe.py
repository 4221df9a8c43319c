import logging
import math
from typing import Iterable, List, Optional

from pitboss.common.card import Card
from pitboss.common.deck import RandomInt, create_shoe, secure_random_int, shuffle
from pitboss.events import EngineEventType, EventBus

logger = logging.getLogger(__name__)

DEFAULT_NUM_DECKS = 6
DEFAULT_PENETRATION = 0.75


class ShoeExhaustedError(RuntimeError):
    """Raised when a card is requested from an empty shoe."""


def cut_card_position(shoe_size: int, penetration: float = DEFAULT_PENETRATION) -> int:
    """
    Number of cards that may be dealt before a reshuffle is required.

    >>> cut_card_position(312, 0.75)
    234
    """
    return math.floor(shoe_size * penetration)


class Shoe:
    def __init__(
        self,
        num_decks: int = DEFAULT_NUM_DECKS,
        penetration: float = DEFAULT_PENETRATION,
        random_int: RandomInt = secure_random_int,
        shuffled: bool = True,
    ):
        """
        Initialize a freshly shuffled Shoe.

        :param num_decks: Number of decks to use in the shoe (default is 6)
        :param penetration: Fraction of the shoe dealt before the cut card is reached
        :param random_int: Uniform integer source used when shuffling
        :param shuffled: When False the shoe starts empty, to be filled by
            `restore_state`
        """
        if num_decks < 1:
            raise ValueError("Number of decks must be at least 1")
        if not 0 < penetration <= 1:
            raise ValueError("Penetration must be between 0 and 1")

        self.num_decks = num_decks
        self.penetration = penetration
        self._random_int = random_int
        self._cards: List[Card] = (
            shuffle(create_shoe(num_decks), random_int) if shuffled else []
        )
        self._cut_card_position = cut_card_position(len(self._cards), penetration)
        self._cards_dealt = 0

    @classmethod
    def from_state(
        cls,
        cards: Iterable[Card],
        cards_dealt: int,
        num_decks: int = DEFAULT_NUM_DECKS,
        penetration: float = DEFAULT_PENETRATION,
        random_int: RandomInt = secure_random_int,
    ) -> "Shoe":
        """Rebuild a shoe from persisted state without shuffling a new one first."""
        shoe = cls(num_decks, penetration, random_int, shuffled=False)
        shoe.restore_state(cards, cards_dealt)
        return shoe

    def deal(self) -> Card:
        """
        Deal the top card of the shoe.

        The top of the shoe is the end of the card list.

        :raises ShoeExhaustedError: If no cards remain. Callers are expected to
            reshuffle at the cut card long before this can happen.
        """
        if not self._cards:
            raise ShoeExhaustedError("Shoe is empty. Reshuffle required.")
        card = self._cards.pop()
        self._cards_dealt += 1
        return card

    def needs_reshuffle(self) -> bool:
        """Return whether the cut card has been reached."""
        return self._cards_dealt >= self._cut_card_position

    def reshuffle(self, num_decks: Optional[int] = None) -> None:
        """Discard the current shoe and replace it with a freshly shuffled one."""
        if num_decks is not None:
            if num_decks < 1:
                raise ValueError("Number of decks must be at least 1")
            self.num_decks = num_decks

        discarded = len(self._cards)
        self._cards = shuffle(create_shoe(self.num_decks), self._random_int)
        self._cut_card_position = cut_card_position(len(self._cards), self.penetration)
        self._cards_dealt = 0

        logger.info(
            "Reshuffled %d-deck shoe (%d undealt cards discarded)",
            self.num_decks,
            discarded,
        )
        EventBus.get_instance().emit(
            EngineEventType.SHUFFLE,
            {
                "num_decks": self.num_decks,
                "cut_card_position": self._cut_card_position,
                "discarded": discarded,
            },
        )

    def restore_state(self, cards: Iterable[Card], cards_dealt: int) -> None:
        """
        Rehydrate the shoe from persisted state.

        The cut card is placed relative to the full shoe the cards came from,
        i.e. the remaining cards plus those already dealt.
        """
        if cards_dealt < 0:
            raise ValueError("cards_dealt must be non-negative")
        self._cards = list(cards)
        self._cards_dealt = cards_dealt
        self._cut_card_position = cut_card_position(
            len(self._cards) + cards_dealt, self.penetration
        )

    def get_shoe(self) -> List[Card]:
        """Return a copy of the remaining cards, bottom first."""
        return list(self._cards)

    def get_cards_dealt(self) -> int:
        """Return the number of cards dealt since the last shuffle."""
        return self._cards_dealt

    def get_cut_card_position(self) -> int:
        """Return the cut card position."""
        return self._cut_card_position

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards remaining in the shoe."""
        return len(self._cards)

    def penetration_percentage(self) -> float:
        """Return how far through the shoe dealing has progressed."""
        total = len(self._cards) + self._cards_dealt
        if total == 0:
            return 0.0
        return self._cards_dealt / total

    def __str__(self) -> str:
        return f"Shoe with {self.cards_remaining} cards remaining"

    def __repr__(self) -> str:
        return (
            f"Shoe(num_decks={self.num_decks}, penetration={self.penetration}, "
            f"cards_remaining={self.cards_remaining}, cards_dealt={self._cards_dealt})"
        )
