import pytest
from pitboss.common.card import Card, Suit, Rank
from pitboss.blackjack.constants import card_value


def test_card_initialization():
    card = Card(Suit.HEARTS, Rank.EIGHT)
    assert card.suit == Suit.HEARTS
    assert card.rank == Rank.EIGHT


def test_card_repr():
    card = Card(Suit.HEARTS, Rank.EIGHT)
    assert repr(card) == "Card(Suit.HEARTS, Rank.EIGHT)"


def test_card_str():
    card = Card(Suit.HEARTS, Rank.EIGHT)
    assert str(card) == "8 of ♥"


def test_face_card_str():
    assert str(Card(Suit.SPADES, Rank.QUEEN)) == "Q of ♠"


def test_invalid_suit():
    with pytest.raises(TypeError):
        Card("Z", Rank.EIGHT)


def test_invalid_rank():
    with pytest.raises(TypeError):
        Card(Suit.HEARTS, 8)


def test_cards_are_values():
    assert Card(Suit.CLUBS, Rank.TEN) == Card(Suit.CLUBS, Rank.TEN)
    assert len({Card(Suit.CLUBS, Rank.TEN), Card(Suit.CLUBS, Rank.TEN)}) == 1


def test_card_is_immutable():
    card = Card(Suit.CLUBS, Rank.TEN)
    with pytest.raises(AttributeError):
        card.rank = Rank.ACE


def test_face_cards_are_distinct_ranks():
    assert len({Rank.TEN, Rank.JACK, Rank.QUEEN, Rank.KING}) == 4


def test_rank_values():
    assert card_value(Rank.TWO) == 2
    assert card_value(Rank.TEN) == 10
    assert card_value(Rank.KING) == 10
    assert card_value(Rank.ACE) == 11


def test_to_dict():
    assert Card(Suit.DIAMONDS, Rank.ACE).to_dict() == {"suit": "diamonds", "rank": "A"}


def test_from_dict():
    assert Card.from_dict({"suit": "hearts", "rank": "10"}) == Card(Suit.HEARTS, Rank.TEN)


def test_from_dict_missing_key():
    with pytest.raises(ValueError):
        Card.from_dict({"suit": "hearts"})


def test_from_dict_unknown_rank():
    with pytest.raises(ValueError):
        Card.from_dict({"suit": "hearts", "rank": "1"})
