"""
Verification tools for the pitboss engine.

This package provides statistical checks that the shoe's shuffle behaves
like a uniformly random permutation.
"""

from pitboss.verification.statistics import (
    ConfidenceInterval,
    ShuffleFairnessReport,
    ShuffleFidelityAnalyzer,
    autocorrelation,
    position_frequency_matrix,
    position_uniformity,
    rising_sequences,
    shuffled_orders,
)

__all__ = [
    "ConfidenceInterval",
    "ShuffleFairnessReport",
    "ShuffleFidelityAnalyzer",
    "autocorrelation",
    "position_frequency_matrix",
    "position_uniformity",
    "rising_sequences",
    "shuffled_orders",
]
