"""
Bet validation and payout arithmetic.

Payouts are net figures: the stake itself is handled by the caller, which
charges it when the bet is placed and hands back ``bet + payout`` at
settlement.
"""

from dataclasses import dataclass
from numbers import Real
from typing import Optional, Sequence

from pitboss.blackjack import constants
from pitboss.blackjack.action import HandOutcome


@dataclass(frozen=True)
class BetValidation:
    """Result of a bet or buy-in check."""

    valid: bool
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid


_OK = BetValidation(True)


def _is_whole(amount) -> bool:
    if isinstance(amount, bool) or not isinstance(amount, Real):
        return False
    return float(amount).is_integer()


def validate_bet(
    amount: float,
    available_chips: float,
    existing_bets_total: float = 0,
    min_bet: int = constants.MIN_BET,
) -> BetValidation:
    """Validate a bet amount against the current chip stack."""
    if amount < min_bet:
        return BetValidation(False, f"Minimum bet is ${min_bet}")
    if not _is_whole(amount):
        return BetValidation(False, "Bet must be a whole number")
    if amount > available_chips - existing_bets_total:
        return BetValidation(False, "Insufficient chips")
    return _OK


def validate_all_bets(
    bets: Sequence[float],
    hands_configuration: int,
    available_chips: float,
    min_bet: int = constants.MIN_BET,
) -> BetValidation:
    """Validate that every hand carries a bet and the total is affordable."""
    if len(bets) != hands_configuration:
        return BetValidation(
            False, f"Expected {hands_configuration} bets, got {len(bets)}"
        )

    for i, bet in enumerate(bets):
        if bet < min_bet:
            return BetValidation(
                False, f"Hand {i + 1} must have at least a ${min_bet} bet"
            )

    if sum(bets) > available_chips:
        return BetValidation(False, "Total bets exceed available chips")

    return _OK


def calculate_payout(
    bet: float,
    outcome: HandOutcome,
    blackjack_payout: float = constants.BLACKJACK_PAYOUT,
) -> float:
    """
    Net change for a settled hand.

    - Blackjack: +1.5x bet (3:2)
    - Win: +1x bet
    - Push: 0
    - Loss: -1x bet
    - Surrender: -0.5x bet
    """
    if outcome is HandOutcome.BLACKJACK:
        return bet * blackjack_payout
    if outcome is HandOutcome.WIN:
        return bet
    if outcome is HandOutcome.PUSH:
        return 0
    if outcome is HandOutcome.LOSS:
        return -bet
    if outcome is HandOutcome.SURRENDER:
        return -(bet / 2)
    raise ValueError(f"Unknown outcome: {outcome!r}")


def calculate_even_money(bet: float) -> float:
    """Even money pays a blackjack 1:1 while the dealer shows an Ace."""
    return bet


def validate_buy_in(
    amount: float,
    min_buy_in: int = constants.MIN_BUY_IN,
    max_buy_in: int = constants.MAX_BUY_IN,
    increment: int = constants.BUY_IN_INCREMENT,
) -> BetValidation:
    """Validate a session buy-in amount."""
    if amount < min_buy_in:
        return BetValidation(False, f"Minimum buy-in is ${min_buy_in}")
    if amount > max_buy_in:
        return BetValidation(False, f"Maximum buy-in is ${max_buy_in}")
    if amount % increment != 0:
        return BetValidation(False, f"Buy-in must be in ${increment} increments")
    return _OK


def can_afford_double(original_bet: float, available_chips: float) -> bool:
    return available_chips >= original_bet


def can_afford_split(original_bet: float, available_chips: float) -> bool:
    return available_chips >= original_bet
