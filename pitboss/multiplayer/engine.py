"""
Per-action engine for multiplayer tables.

Every operation here is a pure function of the persisted round state and
the caller's arguments. Nothing is kept between calls: the shoe is rebuilt
from the state for each operation that deals, and the new shoe position is
returned in the patch for the host to store.

Operations answer with an `EngineResult`. On failure ``error`` carries a
reason suitable for showing to the player and ``updates`` is empty.
"""

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pitboss.blackjack.action import PlayerAction
from pitboss.blackjack.betting import calculate_payout, can_afford_double, can_afford_split
from pitboss.blackjack.hand import (
    can_split,
    dealer_shows_ace,
    dealer_shows_ten,
    determine_outcome,
    evaluate_hand,
    should_dealer_hit,
)
from pitboss.blackjack.rules import DEFAULT_RULES, Rules
from pitboss.common.card import Card
from pitboss.common.shoe import Shoe
from pitboss.events import EngineEventType, EventBus
from pitboss.multiplayer.state import (
    ChipUpdate,
    EngineResult,
    MultiplayerGameState,
    MultiplayerPhase,
    ResolveResult,
    SeatHand,
)

logger = logging.getLogger(__name__)

NOT_IN_BETTING = "Not in betting phase"
NOT_IN_PLAYER_ACTION = "Not in player action phase"
NOT_YOUR_TURN = "Not your turn"


def _emit(state: MultiplayerGameState, event_type: EngineEventType, data: Dict[str, Any]) -> None:
    EventBus.get_instance().emit(
        event_type,
        {"room_id": state.room_id, "round_number": state.round_number, **data},
    )


def _restore_shoe(state: MultiplayerGameState, rules: Rules) -> Shoe:
    return Shoe.from_state(
        state.shoe,
        state.cards_dealt,
        num_decks=rules.num_decks,
        penetration=rules.penetration,
    )


def _shoe_updates(shoe: Shoe) -> Dict[str, Any]:
    return {
        "shoe": tuple(shoe.get_shoe()),
        "cards_dealt": shoe.get_cards_dealt(),
        "cut_card_position": shoe.get_cut_card_position(),
        "needs_reshuffle": shoe.needs_reshuffle(),
    }


# ----------------------------------------------------------------------
# Round lifecycle
# ----------------------------------------------------------------------


def create_new_round(
    room_id: str,
    existing_shoe: Optional[Sequence[Card]] = None,
    existing_cards_dealt: Optional[int] = None,
    round_number: int = 1,
    rules: Rules = DEFAULT_RULES,
) -> MultiplayerGameState:
    """
    Open a betting round, carrying the table's shoe forward.

    A fresh shoe is shuffled when none is supplied or when the supplied shoe
    is past its cut card.

    Args:
        room_id: Table the round belongs to
        existing_shoe: Undealt cards left by the previous round
        existing_cards_dealt: Cards dealt from that shoe since its shuffle
        round_number: Number of this round at the table
        rules: Table configuration

    Returns:
        A BETTING-phase state with no hands
    """
    if existing_shoe is not None and existing_cards_dealt is not None:
        shoe = Shoe.from_state(
            existing_shoe,
            existing_cards_dealt,
            num_decks=rules.num_decks,
            penetration=rules.penetration,
        )
    else:
        shoe = Shoe(rules.num_decks, rules.penetration)

    if shoe.needs_reshuffle():
        shoe.reshuffle()

    return MultiplayerGameState(
        room_id=room_id,
        round_number=round_number,
        phase=MultiplayerPhase.BETTING,
        shoe=tuple(shoe.get_shoe()),
        cards_dealt=shoe.get_cards_dealt(),
        cut_card_position=shoe.get_cut_card_position(),
        needs_reshuffle=False,
    )


# ----------------------------------------------------------------------
# Betting
# ----------------------------------------------------------------------


def place_bet(
    state: MultiplayerGameState,
    seat_number: int,
    user_id: str,
    amount: float,
    chips_at_table: float,
    min_bet: float,
    max_bet: float,
) -> EngineResult:
    """
    Place, replace or clear (``amount == 0``) a seat's bet.

    The seat's chips are not touched here; the host charges the stake when
    the cards are dealt.
    """
    if state.phase != MultiplayerPhase.BETTING:
        return EngineResult.fail(NOT_IN_BETTING)

    if amount == 0:
        hands = tuple(
            h for h in state.player_hands
            if not (h.seat_number == seat_number and h.user_id == user_id)
        )
        return EngineResult(success=True, updates={"player_hands": hands})

    if amount < min_bet or amount > max_bet:
        return EngineResult.fail(f"Bet must be between ${min_bet} and ${max_bet}")

    if amount > chips_at_table:
        return EngineResult.fail("Insufficient chips")

    hand = SeatHand(seat_number=seat_number, user_id=user_id, bet=amount)
    hands = [h for h in state.player_hands if h.seat_number != seat_number]
    hands.append(hand)
    hands.sort(key=lambda h: h.seat_number)

    _emit(state, EngineEventType.PLAYER_BET, {"seat_number": seat_number, "user_id": user_id, "amount": amount})
    return EngineResult(success=True, updates={"player_hands": tuple(hands)})


# ----------------------------------------------------------------------
# Dealing
# ----------------------------------------------------------------------


def deal_cards(state: MultiplayerGameState, rules: Rules = DEFAULT_RULES) -> EngineResult:
    """
    Deal two cards to every seat with a bet and two to the dealer.

    The dealer checks for blackjack behind an Ace or ten-value up card; a
    dealer natural sends the round straight to resolution.
    """
    if state.phase != MultiplayerPhase.BETTING:
        return EngineResult.fail(NOT_IN_BETTING)
    if not state.player_hands:
        return EngineResult.fail("No players have placed bets")

    shoe = _restore_shoe(state, rules)
    if shoe.needs_reshuffle():
        shoe.reshuffle()

    player_cards: List[List[Card]] = [[] for _ in state.player_hands]
    dealer_cards: List[Card] = []
    for _ in range(2):
        for cards in player_cards:
            cards.append(shoe.deal())
        dealer_cards.append(shoe.deal())

    hands = tuple(
        replace(hand, cards=tuple(cards))
        for hand, cards in zip(state.player_hands, player_cards)
    )
    updates: Dict[str, Any] = {
        "player_hands": hands,
        "dealer_cards": tuple(dealer_cards),
        **_shoe_updates(shoe),
    }

    _emit(
        state,
        EngineEventType.ROUND_STARTED,
        {"seats": [h.seat_number for h in hands], "dealer_up_card": str(dealer_cards[0])},
    )

    if dealer_shows_ace(dealer_cards) or dealer_shows_ten(dealer_cards):
        if evaluate_hand(dealer_cards).is_blackjack:
            _emit(state, EngineEventType.DEALER_BLACKJACK, {})
            updates.update(
                phase=MultiplayerPhase.RESOLUTION,
                hole_card_revealed=True,
                active_seat=None,
                active_hand_index=None,
            )
            return EngineResult(success=True, updates=updates)

    first = _find_next_playable_hand(hands, 0)
    if first is None:
        # Every seat holds a natural, so nobody has a decision to make
        updates.update(
            phase=MultiplayerPhase.DEALER_PLAY,
            hole_card_revealed=False,
            active_seat=None,
            active_hand_index=None,
        )
    else:
        updates.update(
            phase=MultiplayerPhase.PLAYER_ACTION,
            hole_card_revealed=False,
            active_seat=hands[first].seat_number,
            active_hand_index=first,
        )
    return EngineResult(success=True, updates=updates)


# ----------------------------------------------------------------------
# Player actions
# ----------------------------------------------------------------------


def player_hit(state: MultiplayerGameState, user_id: str, rules: Rules = DEFAULT_RULES) -> EngineResult:
    if state.phase != MultiplayerPhase.PLAYER_ACTION:
        return EngineResult.fail(NOT_IN_PLAYER_ACTION)
    index = _get_active_hand_index(state, user_id)
    if index is None:
        return EngineResult.fail(NOT_YOUR_TURN)

    shoe = _restore_shoe(state, rules)
    hand = state.player_hands[index]
    card = shoe.deal()
    hand = replace(
        hand,
        cards=hand.cards + (card,),
        actions=hand.actions + (PlayerAction.HIT,),
    )

    total = hand.total
    if total.is_bust or total.best == 21:
        hand = replace(hand, is_stood=True)

    hands = _replace_hand(state.player_hands, index, hand)
    _emit(
        state,
        EngineEventType.PLAYER_ACTION,
        {"seat_number": hand.seat_number, "action": PlayerAction.HIT.value, "card": str(card), "total": total.best},
    )
    if total.is_bust:
        _emit(state, EngineEventType.HAND_BUSTED, {"seat_number": hand.seat_number, "total": total.best})

    return EngineResult(
        success=True,
        updates={
            "player_hands": hands,
            **_advance(hands, index, hand.is_stood),
            **_shoe_updates(shoe),
        },
    )


def player_stand(state: MultiplayerGameState, user_id: str) -> EngineResult:
    if state.phase != MultiplayerPhase.PLAYER_ACTION:
        return EngineResult.fail(NOT_IN_PLAYER_ACTION)
    index = _get_active_hand_index(state, user_id)
    if index is None:
        return EngineResult.fail(NOT_YOUR_TURN)

    hand = state.player_hands[index]
    hand = replace(hand, is_stood=True, actions=hand.actions + (PlayerAction.STAND,))
    hands = _replace_hand(state.player_hands, index, hand)

    _emit(state, EngineEventType.PLAYER_ACTION, {"seat_number": hand.seat_number, "action": PlayerAction.STAND.value})
    return EngineResult(
        success=True,
        updates={"player_hands": hands, **_advance(hands, index, True)},
    )


def player_double(
    state: MultiplayerGameState,
    user_id: str,
    chips_at_table: float,
    rules: Rules = DEFAULT_RULES,
) -> EngineResult:
    """
    Double the active hand's bet and deal it exactly one card.

    The host charges the additional stake against ``chips_at_table``.
    """
    if state.phase != MultiplayerPhase.PLAYER_ACTION:
        return EngineResult.fail(NOT_IN_PLAYER_ACTION)
    index = _get_active_hand_index(state, user_id)
    if index is None:
        return EngineResult.fail(NOT_YOUR_TURN)

    hand = state.player_hands[index]
    if len(hand.cards) != 2:
        return EngineResult.fail("Can only double on first two cards")
    if not can_afford_double(hand.bet, chips_at_table):
        return EngineResult.fail("Insufficient chips to double")

    shoe = _restore_shoe(state, rules)
    card = shoe.deal()
    hand = replace(
        hand,
        bet=hand.bet * 2,
        cards=hand.cards + (card,),
        actions=hand.actions + (PlayerAction.DOUBLE,),
        is_doubled=True,
        is_stood=True,
    )
    hands = _replace_hand(state.player_hands, index, hand)

    _emit(
        state,
        EngineEventType.PLAYER_ACTION,
        {"seat_number": hand.seat_number, "action": PlayerAction.DOUBLE.value, "card": str(card), "bet": hand.bet},
    )
    return EngineResult(
        success=True,
        updates={
            "player_hands": hands,
            **_advance(hands, index, True),
            **_shoe_updates(shoe),
        },
    )


def player_split(
    state: MultiplayerGameState,
    user_id: str,
    chips_at_table: float,
    rules: Rules = DEFAULT_RULES,
) -> EngineResult:
    """
    Split the active pair into two hands of the same seat.

    Each new hand gets a second card at once. A first hand that reaches 21
    stands and play moves to its sibling. A seat may grow to
    ``rules.max_split_hands`` hands.
    """
    if state.phase != MultiplayerPhase.PLAYER_ACTION:
        return EngineResult.fail(NOT_IN_PLAYER_ACTION)
    index = _get_active_hand_index(state, user_id)
    if index is None:
        return EngineResult.fail(NOT_YOUR_TURN)

    hand = state.player_hands[index]
    seat_hands = sum(1 for h in state.player_hands if h.seat_number == hand.seat_number)
    if not can_split(hand.cards) or seat_hands >= rules.max_split_hands:
        return EngineResult.fail("Cannot split this hand")
    if not can_afford_split(hand.bet, chips_at_table):
        return EngineResult.fail("Insufficient chips to split")

    shoe = _restore_shoe(state, rules)
    first = SeatHand(
        seat_number=hand.seat_number,
        user_id=hand.user_id,
        bet=hand.bet,
        cards=(hand.cards[0], shoe.deal()),
        actions=(PlayerAction.SPLIT,),
        is_split=True,
    )
    second = SeatHand(
        seat_number=hand.seat_number,
        user_id=hand.user_id,
        bet=hand.bet,
        cards=(hand.cards[1], shoe.deal()),
        actions=(PlayerAction.SPLIT,),
        is_split=True,
    )
    if first.total.best == 21:
        first = replace(first, is_stood=True)

    hands = list(state.player_hands)
    hands[index:index + 1] = [first, second]
    hands = tuple(hands)

    _emit(
        state,
        EngineEventType.HAND_SPLIT,
        {
            "seat_number": hand.seat_number,
            "hands": [[str(c) for c in first.cards], [str(c) for c in second.cards]],
        },
    )
    return EngineResult(
        success=True,
        updates={
            "player_hands": hands,
            **_advance(hands, index, first.is_stood),
            **_shoe_updates(shoe),
        },
    )


def player_surrender(state: MultiplayerGameState, user_id: str) -> EngineResult:
    """Give up half the bet before taking any other decision on the hand."""
    if state.phase != MultiplayerPhase.PLAYER_ACTION:
        return EngineResult.fail(NOT_IN_PLAYER_ACTION)
    index = _get_active_hand_index(state, user_id)
    if index is None:
        return EngineResult.fail(NOT_YOUR_TURN)

    hand = state.player_hands[index]
    if len(hand.cards) != 2 or hand.actions or hand.is_split:
        return EngineResult.fail("Cannot surrender this hand")

    hand = replace(
        hand,
        is_surrendered=True,
        is_stood=True,
        actions=hand.actions + (PlayerAction.SURRENDER,),
    )
    hands = _replace_hand(state.player_hands, index, hand)

    _emit(state, EngineEventType.PLAYER_ACTION, {"seat_number": hand.seat_number, "action": PlayerAction.SURRENDER.value})
    return EngineResult(
        success=True,
        updates={"player_hands": hands, **_advance(hands, index, True)},
    )


def get_available_actions(
    state: MultiplayerGameState,
    user_id: str,
    chips_at_table: float,
    rules: Rules = DEFAULT_RULES,
) -> List[PlayerAction]:
    """Decisions ``user_id`` may take right now; empty when it is not their turn."""
    if state.phase != MultiplayerPhase.PLAYER_ACTION:
        return []
    index = _get_active_hand_index(state, user_id)
    if index is None:
        return []

    hand = state.player_hands[index]
    if hand.is_stood or hand.is_surrendered or hand.total.is_bust:
        return []

    actions = [PlayerAction.HIT, PlayerAction.STAND]
    if len(hand.cards) != 2:
        return actions

    if can_afford_double(hand.bet, chips_at_table):
        actions.append(PlayerAction.DOUBLE)
    seat_hands = sum(1 for h in state.player_hands if h.seat_number == hand.seat_number)
    if (
        can_split(hand.cards)
        and seat_hands < rules.max_split_hands
        and can_afford_split(hand.bet, chips_at_table)
    ):
        actions.append(PlayerAction.SPLIT)
    if not hand.actions and not hand.is_split:
        actions.append(PlayerAction.SURRENDER)
    return actions


# ----------------------------------------------------------------------
# Dealer and settlement
# ----------------------------------------------------------------------


def play_dealer(state: MultiplayerGameState, rules: Rules = DEFAULT_RULES) -> EngineResult:
    """
    Turn the hole card and draw to the house rule.

    When no hand is left alive (all bust or surrendered) the dealer turns the
    hole card without drawing.
    """
    if state.phase != MultiplayerPhase.DEALER_PLAY:
        return EngineResult.fail("Not in dealer play phase")

    any_live = any(
        not h.is_surrendered and not h.total.is_bust for h in state.player_hands
    )
    if not any_live:
        return EngineResult(
            success=True,
            updates={"phase": MultiplayerPhase.RESOLUTION, "hole_card_revealed": True},
        )

    shoe = _restore_shoe(state, rules)
    dealer_cards = list(state.dealer_cards)
    while should_dealer_hit(dealer_cards, rules.dealer_hit_soft_17):
        dealer_cards.append(shoe.deal())

    total = evaluate_hand(dealer_cards)
    _emit(
        state,
        EngineEventType.DEALER_ACTION,
        {"cards": [str(c) for c in dealer_cards], "total": total.best, "is_bust": total.is_bust},
    )
    return EngineResult(
        success=True,
        updates={
            "phase": MultiplayerPhase.RESOLUTION,
            "dealer_cards": tuple(dealer_cards),
            "hole_card_revealed": True,
            **_shoe_updates(shoe),
        },
    )


def resolve_round(state: MultiplayerGameState, rules: Rules = DEFAULT_RULES) -> ResolveResult:
    """
    Settle every unsettled hand against the dealer.

    ``chip_updates`` holds one entry per seat, in seat order, with the chips
    to return to that seat: the stake plus the net payout, summed over the
    seat's split hands. A losing seat gets an entry of zero.
    """
    if state.phase != MultiplayerPhase.RESOLUTION:
        return ResolveResult.fail("Not in resolution phase")

    dealer_total = evaluate_hand(state.dealer_cards)
    returns: Dict[Tuple[int, str], float] = {}
    resolved = []

    for hand in state.player_hands:
        if hand.outcome is not None:
            resolved.append(hand)
            continue

        outcome = determine_outcome(hand.total, dealer_total, hand.is_surrendered)
        payout = calculate_payout(hand.bet, outcome, rules.blackjack_payout)
        key = (hand.seat_number, hand.user_id)
        returns[key] = returns.get(key, 0) + hand.bet + payout
        resolved.append(replace(hand, outcome=outcome, payout=payout))

        _emit(
            state,
            EngineEventType.HAND_RESULT,
            {"seat_number": hand.seat_number, "user_id": hand.user_id, "outcome": outcome.value, "payout": payout},
        )

    chip_updates = [
        ChipUpdate(user_id=user_id, seat_number=seat, net_return=amount)
        for (seat, user_id), amount in sorted(returns.items())
    ]
    _emit(state, EngineEventType.ROUND_ENDED, {"dealer_total": dealer_total.best})

    return ResolveResult(
        success=True,
        updates={
            "phase": MultiplayerPhase.ROUND_OVER,
            "player_hands": tuple(resolved),
            "hole_card_revealed": True,
            "active_seat": None,
            "active_hand_index": None,
        },
        chip_updates=chip_updates,
    )


def run_automatic_phases(
    state: MultiplayerGameState, rules: Rules = DEFAULT_RULES
) -> Tuple[MultiplayerGameState, List[ChipUpdate]]:
    """
    Play the dealer and settle the round if the state has fallen through to them.

    Hosts call this after applying any player operation so that the last
    decision of a round completes it within the same request.

    Returns:
        The resulting state and the chip updates to apply (empty when the
        round did not settle)
    """
    if state.phase == MultiplayerPhase.DEALER_PLAY:
        result = play_dealer(state, rules)
        state = state.apply_updates(result.updates)

    if state.phase == MultiplayerPhase.RESOLUTION:
        result = resolve_round(state, rules)
        logger.debug("Round %d at %s settled", state.round_number, state.room_id)
        return state.apply_updates(result.updates), result.chip_updates

    return state, []


# ----------------------------------------------------------------------
# Turn navigation
# ----------------------------------------------------------------------


def _get_active_hand_index(state: MultiplayerGameState, user_id: str) -> Optional[int]:
    """Index of the hand to act, provided ``user_id`` owns it."""
    if state.active_hand_index is not None:
        index = state.active_hand_index
        if 0 <= index < len(state.player_hands) and state.player_hands[index].user_id == user_id:
            return index
        return None

    # Rows written before hand indexes were tracked only name the seat
    for i, hand in enumerate(state.player_hands):
        if hand.seat_number == state.active_seat and hand.user_id == user_id:
            return i
    return None


def _find_next_playable_hand(hands: Sequence[SeatHand], start: int) -> Optional[int]:
    for i in range(start, len(hands)):
        hand = hands[i]
        if hand.is_stood or hand.is_surrendered or hand.is_doubled:
            continue
        total = hand.total
        if total.is_bust or total.is_blackjack:
            continue
        return i
    return None


def _advance(hands: Sequence[SeatHand], index: int, hand_done: bool) -> Dict[str, Any]:
    """Pointer and phase patch after an action on ``hands[index]``."""
    if not hand_done:
        return {
            "phase": MultiplayerPhase.PLAYER_ACTION,
            "active_seat": hands[index].seat_number,
            "active_hand_index": index,
        }

    following = _find_next_playable_hand(hands, index + 1)
    if following is None:
        return {
            "phase": MultiplayerPhase.DEALER_PLAY,
            "active_seat": None,
            "active_hand_index": None,
        }
    return {
        "phase": MultiplayerPhase.PLAYER_ACTION,
        "active_seat": hands[following].seat_number,
        "active_hand_index": following,
    }


def _replace_hand(hands: Sequence[SeatHand], index: int, hand: SeatHand) -> Tuple[SeatHand, ...]:
    updated = list(hands)
    updated[index] = hand
    return tuple(updated)
