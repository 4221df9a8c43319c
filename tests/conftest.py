"""
Pytest configuration for tests at the root level.

This module contains pytest fixtures shared by every test package: a clean
event bus per test and helpers for stacking a shoe with known cards.
"""

import pytest

from pitboss.common.card import Card, Rank, Suit
from pitboss.common.deck import create_shoe
from pitboss.common.shoe import Shoe
from pitboss.events import EventBus


# Reset event bus before each test
@pytest.fixture(scope="function", autouse=True)
def reset_event_bus():
    """Reset the event bus singleton before each test."""
    EventBus._instance = None
    yield
    EventBus._instance = None


def make_cards(*ranks: str):
    """Cards of the given ranks ("2".."10", "J", "Q", "K", "A"), suits rotating."""
    suits = list(Suit)
    return [Card(suits[i % len(suits)], Rank(r)) for i, r in enumerate(ranks)]


def stack_shoe(shoe: Shoe, *ranks: str) -> Shoe:
    """
    Put cards of the given ranks on top of ``shoe`` in dealing order.

    A full unshuffled six-deck shoe sits underneath, so the cut card stays far
    away and nothing triggers a reshuffle mid-test.
    """
    top = make_cards(*ranks)
    shoe.restore_state(create_shoe(6) + list(reversed(top)), 0)
    return shoe


@pytest.fixture
def cards():
    """Factory building a list of cards from rank strings."""
    return make_cards


@pytest.fixture
def rigged_shoe():
    """Factory returning a shoe that deals the given ranks first."""

    def _factory(*ranks: str) -> Shoe:
        return stack_shoe(Shoe(), *ranks)

    return _factory


@pytest.fixture
def events():
    """Collect every event emitted on the bus as ``(event_type, data)`` pairs."""
    received = []
    EventBus.get_instance().on_any(received.append)
    return received
