"""
Statistical checks of shuffle fairness.

This module measures how close the shoe's shuffle comes to a uniformly
random permutation: how evenly each card lands across positions, how many
rising sequences survive the shuffle, and how much order leaks from one
position to the next.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np
import scipy.stats as stats

from pitboss.common.deck import RandomInt, secure_random_int, shuffle

ShuffleFn = Callable[[List[int]], List[int]]


@dataclass
class ConfidenceInterval:
    """
    Represents a confidence interval with lower and upper bounds.

    Attributes:
        lower: The lower bound of the confidence interval
        upper: The upper bound of the confidence interval
        confidence: The confidence level (e.g., 0.95 for 95% confidence)
    """

    lower: float
    upper: float
    confidence: float

    def contains(self, value: float) -> bool:
        """Check if the interval contains a value."""
        return self.lower <= value <= self.upper

    def to_dict(self) -> Dict[str, float]:
        return {"lower": self.lower, "upper": self.upper, "confidence": self.confidence}


@dataclass
class ShuffleFairnessReport:
    """
    Results of a batch of shuffles.

    Attributes:
        deck_size: Cards in each shuffled sequence
        trials: Number of shuffles measured
        chi_square: Statistic of the position-uniformity test
        p_value: Probability of a statistic at least this large under a fair shuffle
        mean_rising_sequences: Average rising sequences per shuffle
        expected_rising_sequences: Expectation for a uniform permutation
        rising_interval: Confidence interval for the mean rising sequences
        mean_autocorrelation: Average lag-1 autocorrelation of the shuffled order
    """

    deck_size: int
    trials: int
    chi_square: float
    p_value: float
    mean_rising_sequences: float
    expected_rising_sequences: float
    rising_interval: ConfidenceInterval
    mean_autocorrelation: float

    def is_fair(self, alpha: float = 0.001, max_autocorrelation: float = 0.1) -> bool:
        """Whether no test rejects the shuffle at significance ``alpha``."""
        return (
            self.p_value >= alpha
            and abs(self.mean_autocorrelation) <= max_autocorrelation
            and abs(self.mean_rising_sequences - self.expected_rising_sequences)
            <= 0.1 * self.expected_rising_sequences
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deck_size": self.deck_size,
            "trials": self.trials,
            "chi_square": self.chi_square,
            "p_value": self.p_value,
            "mean_rising_sequences": self.mean_rising_sequences,
            "expected_rising_sequences": self.expected_rising_sequences,
            "rising_interval": self.rising_interval.to_dict(),
            "mean_autocorrelation": self.mean_autocorrelation,
        }


def shuffled_orders(shuffle_fn: ShuffleFn, deck_size: int, trials: int) -> np.ndarray:
    """
    Shuffle ``0..deck_size-1`` ``trials`` times.

    Returns:
        A ``trials x deck_size`` array, one shuffled order per row
    """
    return np.array(
        [shuffle_fn(list(range(deck_size))) for _ in range(trials)], dtype=np.int64
    )


def position_frequency_matrix(orders: np.ndarray) -> np.ndarray:
    """
    Count where each card lands across a batch of shuffled orders.

    Returns:
        A ``deck_size x deck_size`` array; entry ``[card, position]`` is the
        number of orders that put ``card`` at ``position``
    """
    deck_size = orders.shape[1]
    counts = np.zeros((deck_size, deck_size), dtype=np.int64)
    positions = np.broadcast_to(np.arange(deck_size), orders.shape)
    np.add.at(counts, (orders, positions), 1)
    return counts


def position_uniformity(counts: np.ndarray) -> Dict[str, float]:
    """
    Chi-square test of a position-frequency matrix against a uniform spread.
    """
    observed = counts.ravel()
    expected = np.full(observed.shape, observed.sum() / observed.size)
    result = stats.chisquare(observed, expected)
    return {"chi_square": float(result.statistic), "p_value": float(result.pvalue)}


def rising_sequences(order: Sequence[int]) -> int:
    """
    Number of rising sequences in a permutation of ``0..n-1``.

    A fresh, unshuffled order has one; a riffle shuffle at most doubles the
    count. A uniform permutation averages ``(n + 1) / 2``.

    >>> rising_sequences([0, 1, 2, 3])
    1
    >>> rising_sequences([3, 2, 1, 0])
    4
    """
    if len(order) == 0:
        return 0
    where = np.empty(len(order), dtype=np.int64)
    where[np.asarray(order)] = np.arange(len(order))
    return int(1 + np.count_nonzero(where[1:] < where[:-1]))


def autocorrelation(order: Sequence[int], lag: int = 1) -> float:
    """Pearson correlation between the sequence and itself shifted by ``lag``."""
    values = np.asarray(order, dtype=float)
    if len(values) <= lag + 1:
        return 0.0
    head, tail = values[:-lag], values[lag:]
    if head.std() == 0 or tail.std() == 0:
        return 0.0
    return float(np.corrcoef(head, tail)[0, 1])


def confidence_interval(values: Sequence[float], confidence: float = 0.95) -> ConfidenceInterval:
    """Student-t confidence interval for the mean of ``values``."""
    mean = np.mean(values)
    std_err = stats.sem(values)
    margin = std_err * stats.t.ppf((1 + confidence) / 2, len(values) - 1)
    return ConfidenceInterval(float(mean - margin), float(mean + margin), confidence)


class ShuffleFidelityAnalyzer:
    """
    Runs a shuffle many times and measures the result.

    By default the analyzer exercises the same Fisher-Yates shuffle the shoe
    uses. Pass ``shuffle_fn`` to measure something else, for instance a
    deliberately weak shuffle in a test.
    """

    def __init__(
        self,
        deck_size: int = 52,
        trials: int = 2000,
        random_int: RandomInt = secure_random_int,
        shuffle_fn: Optional[ShuffleFn] = None,
    ):
        """
        Args:
            deck_size: Cards per shuffled sequence
            trials: Number of shuffles to run
            random_int: Uniform integer source for the default shuffle
            shuffle_fn: Shuffle to measure instead of the default
        """
        if deck_size < 2:
            raise ValueError("deck_size must be at least 2")
        if trials < 2:
            raise ValueError("trials must be at least 2")

        self.deck_size = deck_size
        self.trials = trials
        self.shuffle_fn = shuffle_fn or (lambda cards: shuffle(cards, random_int))

    def run(self) -> ShuffleFairnessReport:
        orders = shuffled_orders(self.shuffle_fn, self.deck_size, self.trials)
        rising = [rising_sequences(order) for order in orders]
        correlations = [autocorrelation(order) for order in orders]

        uniformity = position_uniformity(position_frequency_matrix(orders))
        return ShuffleFairnessReport(
            deck_size=self.deck_size,
            trials=self.trials,
            chi_square=uniformity["chi_square"],
            p_value=uniformity["p_value"],
            mean_rising_sequences=float(np.mean(rising)),
            expected_rising_sequences=(self.deck_size + 1) / 2,
            rising_interval=confidence_interval(rising),
            mean_autocorrelation=float(np.mean(correlations)),
        )
