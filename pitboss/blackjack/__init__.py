"""Blackjack rules: hand evaluation, betting and payouts."""
