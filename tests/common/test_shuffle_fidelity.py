"""
Tests for shuffle fidelity.

This test suite verifies:
1. The shoe's Fisher-Yates shuffle spreads cards evenly across positions
2. A weak shuffle produces measurable non-randomness
3. The individual statistics behave as expected on known orders
"""

import random

import numpy as np
import pytest

from pitboss.verification.statistics import (
    ShuffleFidelityAnalyzer,
    autocorrelation,
    confidence_interval,
    position_frequency_matrix,
    position_uniformity,
    rising_sequences,
    shuffled_orders,
)


def cut_only(cards):
    """A 'shuffle' that only cuts the deck: preserves almost all order."""
    point = len(cards) // 3
    return cards[point:] + cards[:point]


def test_fisher_yates_passes_uniformity():
    report = ShuffleFidelityAnalyzer(
        deck_size=52, trials=2000, random_int=random.Random(2024).randrange
    ).run()

    assert report.p_value > 1e-6
    assert report.is_fair()
    assert report.expected_rising_sequences == 26.5
    assert abs(report.mean_rising_sequences - 26.5) < 1.5
    assert abs(report.mean_autocorrelation) < 0.05


def test_default_secure_source_passes():
    report = ShuffleFidelityAnalyzer(deck_size=20, trials=500).run()
    assert report.p_value > 1e-6


def test_cut_only_shuffle_is_rejected():
    report = ShuffleFidelityAnalyzer(deck_size=52, trials=200, shuffle_fn=cut_only).run()

    assert report.p_value < 1e-6
    assert report.mean_rising_sequences == 2
    assert report.mean_autocorrelation > 0.5
    assert not report.is_fair()


def test_position_frequency_matrix_sums():
    orders = shuffled_orders(lambda cards: cards[::-1], deck_size=5, trials=10)
    assert orders.shape == (10, 5)
    counts = position_frequency_matrix(orders)
    assert counts.shape == (5, 5)
    assert np.all(counts.sum(axis=0) == 10)
    assert np.all(counts.sum(axis=1) == 10)
    assert counts[0, 4] == 10


def test_position_uniformity_of_perfect_spread():
    counts = np.full((4, 4), 25)
    result = position_uniformity(counts)
    assert result["chi_square"] == pytest.approx(0.0)
    assert result["p_value"] == pytest.approx(1.0)


def test_rising_sequences_of_known_orders():
    assert rising_sequences(list(range(10))) == 1
    assert rising_sequences(list(range(9, -1, -1))) == 10
    # A perfect riffle of two ordered halves leaves two rising sequences
    assert rising_sequences([0, 4, 1, 5, 2, 6, 3, 7]) == 2
    assert rising_sequences([]) == 0


def test_autocorrelation_of_ordered_sequence():
    assert autocorrelation(list(range(52))) == pytest.approx(1.0)
    assert autocorrelation([3, 3, 3, 3]) == 0.0


def test_confidence_interval_contains_mean():
    interval = confidence_interval([1.0, 2.0, 3.0, 4.0, 5.0])
    assert interval.contains(3.0)
    assert interval.lower < 3.0 < interval.upper
    assert interval.to_dict()["confidence"] == 0.95


def test_analyzer_rejects_tiny_runs():
    with pytest.raises(ValueError):
        ShuffleFidelityAnalyzer(deck_size=1)
    with pytest.raises(ValueError):
        ShuffleFidelityAnalyzer(trials=1)
