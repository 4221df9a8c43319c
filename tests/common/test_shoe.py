from collections import Counter
from unittest.mock import MagicMock

import pytest

from pitboss.common.card import Card, Rank, Suit
from pitboss.common.deck import create_shoe
from pitboss.common.shoe import Shoe, ShoeExhaustedError, cut_card_position


def test_cut_card_position():
    assert cut_card_position(312) == 234
    assert cut_card_position(312, 0.75) == 234
    assert cut_card_position(52, 0.5) == 26
    assert cut_card_position(10, 0.75) == 7


def test_new_shoe():
    shoe = Shoe()
    assert shoe.cards_remaining == 312
    assert shoe.get_cards_dealt() == 0
    assert shoe.get_cut_card_position() == 234
    assert not shoe.needs_reshuffle()


def test_new_shoe_rejects_bad_configuration():
    with pytest.raises(ValueError):
        Shoe(num_decks=0)
    with pytest.raises(ValueError):
        Shoe(penetration=1.5)


def test_deal_takes_from_the_top():
    shoe = Shoe()
    top = shoe.get_shoe()[-1]
    assert shoe.deal() == top
    assert shoe.cards_remaining == 311
    assert shoe.get_cards_dealt() == 1


def test_needs_reshuffle_at_cut_card():
    shoe = Shoe(num_decks=1)
    for _ in range(38):
        shoe.deal()
    assert not shoe.needs_reshuffle()
    shoe.deal()
    assert shoe.needs_reshuffle()


def test_deal_from_empty_shoe_raises():
    shoe = Shoe(num_decks=1)
    for _ in range(52):
        shoe.deal()
    with pytest.raises(ShoeExhaustedError):
        shoe.deal()


def test_reshuffle_restores_full_shoe(events):
    shoe = Shoe(num_decks=1)
    for _ in range(45):
        shoe.deal()
    shoe.reshuffle()
    assert shoe.cards_remaining == 52
    assert shoe.get_cards_dealt() == 0
    assert set(Counter(shoe.get_shoe()).values()) == {1}
    assert [name for name, _ in events] == ["SHUFFLE"]
    assert events[0][1]["discarded"] == 7


def test_reshuffle_with_new_deck_count():
    shoe = Shoe(num_decks=1)
    shoe.reshuffle(2)
    assert shoe.cards_remaining == 104
    assert shoe.get_cut_card_position() == 78


def test_get_shoe_is_a_copy():
    shoe = Shoe()
    cards = shoe.get_shoe()
    cards.clear()
    assert shoe.cards_remaining == 312


def test_restore_state_uses_full_shoe_size_for_cut():
    shoe = Shoe()
    remaining = create_shoe(6)[:212]
    shoe.restore_state(remaining, 100)
    assert shoe.cards_remaining == 212
    assert shoe.get_cards_dealt() == 100
    assert shoe.get_cut_card_position() == 234
    assert shoe.get_shoe() == remaining


def test_restore_state_past_cut_needs_reshuffle():
    shoe = Shoe.from_state(create_shoe(6)[:70], 242)
    assert shoe.needs_reshuffle()


def test_restore_rejects_negative_dealt():
    with pytest.raises(ValueError):
        Shoe().restore_state([], -1)


def test_cards_are_conserved_across_deals():
    shoe = Shoe(num_decks=2)
    dealt = [shoe.deal() for _ in range(60)]
    assert Counter(dealt) + Counter(shoe.get_shoe()) == Counter(create_shoe(2))
    assert shoe.cards_remaining + shoe.get_cards_dealt() == 104


def test_penetration_percentage():
    shoe = Shoe(num_decks=1)
    for _ in range(13):
        shoe.deal()
    assert shoe.penetration_percentage() == pytest.approx(0.25)


def test_stacked_shoe_deals_in_order(rigged_shoe):
    shoe = rigged_shoe("A", "K", "5")
    assert [c.rank for c in (shoe.deal(), shoe.deal(), shoe.deal())] == [
        Rank.ACE,
        Rank.KING,
        Rank.FIVE,
    ]
    assert not shoe.needs_reshuffle()


def test_from_state_does_not_shuffle():
    random_int = MagicMock(side_effect=lambda n: 0)
    remaining = create_shoe(6)[:212]

    shoe = Shoe.from_state(remaining, 100, random_int=random_int)

    random_int.assert_not_called()
    assert shoe.get_shoe() == remaining
    assert shoe.get_cut_card_position() == 234

    shoe.reshuffle()
    assert random_int.called
    assert shoe.cards_remaining == 312
