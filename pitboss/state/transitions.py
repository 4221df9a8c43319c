"""
State transition functions for a single-player blackjack session.

Every transition takes the current `GameState` (plus the session's `Shoe`
for anything that deals) and returns a new state without modifying the
original. Illegal actions return the input state unchanged: a host may
dispatch optimistically and consult `get_available_actions` to decide what
to offer the player.
"""

import logging
import uuid
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence

from pitboss.blackjack.action import HandOutcome, PlayerAction
from pitboss.blackjack.betting import (
    calculate_even_money,
    calculate_payout,
    can_afford_double,
    can_afford_split,
    validate_all_bets,
    validate_bet,
)
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
from pitboss.common.shoe import Shoe, cut_card_position
from pitboss.events import EngineEventType, EventBus
from pitboss.state.actions import ActionType, GameAction
from pitboss.state.models import DealerHand, GamePhase, GameState, PlayerHand

logger = logging.getLogger(__name__)


def create_initial_state(
    chips: float,
    hands_configuration: int,
    session_id: Optional[str] = None,
    shoe: Optional[Sequence[Card]] = None,
    cards_dealt: Optional[int] = None,
    rules: Optional[Rules] = None,
) -> GameState:
    """
    Create the BETTING-phase state a session starts from.

    Args:
        chips: Chips the player brings to the table
        hands_configuration: Number of betting spots to play (1 to ``rules.max_hands``)
        session_id: Identifier of the session; generated when omitted
        shoe: Undealt cards of a persisted shoe being resumed
        cards_dealt: Cards dealt from that shoe since its last shuffle
        rules: Table configuration

    Raises:
        ValueError: If the hand configuration or chip count is out of range
    """
    rules = rules or DEFAULT_RULES
    if not 1 <= hands_configuration <= rules.max_hands:
        raise ValueError(
            f"hands_configuration must be between 1 and {rules.max_hands}"
        )
    if chips < 0:
        raise ValueError("chips must be non-negative")

    shoe_cards = tuple(shoe) if shoe is not None else ()
    dealt = cards_dealt or 0
    cut = (
        cut_card_position(len(shoe_cards) + dealt, rules.penetration)
        if shoe_cards
        else 0
    )

    return GameState(
        phase=GamePhase.BETTING,
        shoe=shoe_cards,
        cards_dealt=dealt,
        cut_card_position=cut,
        needs_reshuffle=bool(shoe_cards) and dealt >= cut,
        chips=chips,
        bets=(0,) * hands_configuration,
        hands_configuration=hands_configuration,
        session_id=session_id or str(uuid.uuid4()),
        rules=rules,
    )


def get_available_actions(state: GameState) -> List[PlayerAction]:
    """
    Return the decisions currently permitted on the active hand.

    Nothing is available outside PLAYER_ACTION or while an even-money offer
    is waiting for an answer.
    """
    if state.phase != GamePhase.PLAYER_ACTION or state.even_money_offered:
        return []

    hand = state.active_hand
    if hand is None or hand.outcome is not None:
        return []

    total = hand.total
    if total.is_bust or total.is_blackjack or hand.is_stood or hand.is_surrendered:
        return []
    if hand.is_doubled:
        return []

    actions = [PlayerAction.HIT, PlayerAction.STAND]
    first_decision = len(hand.cards) == 2

    # Doubling is allowed on any two-card hand, split hands included
    if first_decision and can_afford_double(hand.bet, state.chips):
        actions.append(PlayerAction.DOUBLE)

    if (
        first_decision
        and can_split(hand.cards)
        and len(state.player_hands) < state.rules.max_split_hands
        and can_afford_split(hand.bet, state.chips)
    ):
        actions.append(PlayerAction.SPLIT)

    if first_decision and not hand.actions and not hand.is_split:
        actions.append(PlayerAction.SURRENDER)

    return actions


def _emit(state: GameState, event_type: EngineEventType, data: Dict) -> None:
    EventBus.get_instance().emit(
        event_type,
        {"session_id": state.session_id, "hand_number": state.hand_number, **data},
    )


def _sync_shoe(state: GameState, shoe: Shoe) -> GameState:
    """Copy the shoe's position into the state so it can be persisted alone."""
    return replace(
        state,
        shoe=tuple(shoe.get_shoe()),
        cards_dealt=shoe.get_cards_dealt(),
        cut_card_position=shoe.get_cut_card_position(),
        needs_reshuffle=shoe.needs_reshuffle(),
    )


def _replace_hand(state: GameState, index: int, hand: PlayerHand) -> GameState:
    hands = list(state.player_hands)
    hands[index] = hand
    return replace(state, player_hands=tuple(hands))


def _fit_bets(bets: Sequence[float], hands_configuration: int) -> tuple:
    fitted = list(bets[:hands_configuration])
    fitted.extend([0] * (hands_configuration - len(fitted)))
    return tuple(fitted)


class StateTransitionEngine:
    """
    Pure functions for state transitions.

    Each method takes a state and returns a new state, without modifying the
    original. Methods that deal take the session's shoe, which they advance
    in place.
    """

    # ------------------------------------------------------------------
    # Betting
    # ------------------------------------------------------------------

    @staticmethod
    def place_bet(state: GameState, hand_index: int, amount: float) -> GameState:
        """
        Set the bet on one betting spot.

        Args:
            state: Current game state
            hand_index: Betting spot to bet on
            amount: Amount to bet

        Returns:
            New game state with the bet placed, or the original state if the
            bet is not allowed
        """
        if state.phase != GamePhase.BETTING:
            return state
        if not 0 <= hand_index < state.hands_configuration:
            return state

        other_bets = sum(b for i, b in enumerate(state.bets) if i != hand_index)
        if not validate_bet(amount, state.chips, other_bets, state.rules.min_bet):
            return state

        bets = list(state.bets)
        bets[hand_index] = amount
        new_state = replace(state, bets=tuple(bets))

        _emit(state, EngineEventType.PLAYER_BET, {"hand_index": hand_index, "amount": amount})
        return new_state

    @staticmethod
    def clear_bet(state: GameState, hand_index: int) -> GameState:
        if state.phase != GamePhase.BETTING:
            return state
        if not 0 <= hand_index < state.hands_configuration:
            return state
        bets = list(state.bets)
        bets[hand_index] = 0
        return replace(state, bets=tuple(bets))

    @staticmethod
    def clear_all_bets(state: GameState) -> GameState:
        if state.phase != GamePhase.BETTING:
            return state
        return replace(state, bets=(0,) * state.hands_configuration)

    @staticmethod
    def repeat_bets(
        state: GameState, previous_bets: Optional[Sequence[float]], multiplier: int = 1
    ) -> GameState:
        """
        Re-place the previous round's bets, optionally scaled.

        Used for both SAME_BET (``multiplier=1``) and DOUBLE_PREVIOUS_BET
        (``multiplier=2``).
        """
        if state.phase != GamePhase.BETTING:
            return state
        if previous_bets is None:
            previous_bets = state.previous_bets
        if not previous_bets:
            return state

        bets = _fit_bets([b * multiplier for b in previous_bets], state.hands_configuration)
        if sum(bets) > state.chips:
            return state
        return replace(state, bets=bets)

    # ------------------------------------------------------------------
    # Dealing
    # ------------------------------------------------------------------

    @staticmethod
    def deal(state: GameState, shoe: Shoe) -> GameState:
        """
        Charge the bets and deal the opening cards.

        Cards go round-robin: one to each player hand, one to the dealer,
        then the same again. Afterwards the round either offers even money,
        settles against a dealer blackjack, or waits for the first decision.
        """
        if state.phase != GamePhase.BETTING:
            return state

        rules = state.rules
        if not validate_all_bets(state.bets, state.hands_configuration, state.chips, rules.min_bet):
            return state

        if state.needs_reshuffle or shoe.needs_reshuffle():
            shoe.reshuffle()

        chips = state.chips - sum(state.bets)

        player_cards: List[List[Card]] = [[] for _ in state.bets]
        dealer_cards: List[Card] = []
        for _ in range(2):
            for cards in player_cards:
                cards.append(shoe.deal())
            dealer_cards.append(shoe.deal())

        player_hands = tuple(
            PlayerHand(cards=tuple(cards), bet=bet)
            for cards, bet in zip(player_cards, state.bets)
        )
        dealer_hand = DealerHand(cards=tuple(dealer_cards))

        new_state = replace(
            state,
            phase=GamePhase.DEALING,
            chips=chips,
            player_hands=player_hands,
            dealer_hand=dealer_hand,
            active_hand_index=0,
            hand_number=state.hand_number + 1,
            even_money_offered=False,
            even_money_hand_index=None,
        )
        new_state = _sync_shoe(new_state, shoe)

        _emit(
            new_state,
            EngineEventType.ROUND_STARTED,
            {
                "bets": list(state.bets),
                "player_cards": [[str(c) for c in h.cards] for h in player_hands],
                "dealer_up_card": str(dealer_cards[0]),
            },
        )

        shows_ace = dealer_shows_ace(dealer_cards)
        shows_ten = dealer_shows_ten(dealer_cards)

        # One even-money offer per deal, on the first natural found
        if shows_ace:
            for i, hand in enumerate(player_hands):
                if evaluate_hand(hand.cards).is_blackjack:
                    _emit(new_state, EngineEventType.EVEN_MONEY_OFFERED, {"hand_index": i})
                    return replace(
                        new_state,
                        phase=GamePhase.PLAYER_ACTION,
                        even_money_offered=True,
                        even_money_hand_index=i,
                    )

        if (shows_ace or shows_ten) and evaluate_hand(dealer_cards).is_blackjack:
            _emit(new_state, EngineEventType.DEALER_BLACKJACK, {})
            return resolve_hands(
                replace(
                    new_state,
                    phase=GamePhase.RESOLUTION,
                    dealer_hand=replace(dealer_hand, hole_card_revealed=True),
                )
            )

        return advance_to_next_playable_hand(replace(new_state, phase=GamePhase.PLAYER_ACTION))

    # ------------------------------------------------------------------
    # Player decisions
    # ------------------------------------------------------------------

    @staticmethod
    def hit(state: GameState, shoe: Shoe) -> GameState:
        """Deal one card to the active hand; a bust or 21 ends the hand."""
        if PlayerAction.HIT not in get_available_actions(state):
            return state

        index = state.active_hand_index
        hand = state.player_hands[index]
        card = shoe.deal()
        new_hand = replace(
            hand,
            cards=hand.cards + (card,),
            actions=hand.actions + (PlayerAction.HIT,),
        )

        total = new_hand.total
        if total.is_bust or total.best == 21:
            new_hand = replace(new_hand, is_stood=True)

        new_state = _sync_shoe(_replace_hand(state, index, new_hand), shoe)
        _emit(
            new_state,
            EngineEventType.PLAYER_ACTION,
            {"hand_index": index, "action": PlayerAction.HIT.value, "card": str(card), "total": total.best},
        )
        if total.is_bust:
            _emit(new_state, EngineEventType.HAND_BUSTED, {"hand_index": index, "total": total.best})

        if new_hand.is_stood:
            return advance_to_next_playable_hand(new_state)
        return new_state

    @staticmethod
    def stand(state: GameState) -> GameState:
        if PlayerAction.STAND not in get_available_actions(state):
            return state

        index = state.active_hand_index
        hand = state.player_hands[index]
        new_hand = replace(
            hand, is_stood=True, actions=hand.actions + (PlayerAction.STAND,)
        )
        new_state = _replace_hand(state, index, new_hand)
        _emit(new_state, EngineEventType.PLAYER_ACTION, {"hand_index": index, "action": PlayerAction.STAND.value})
        return advance_to_next_playable_hand(new_state)

    @staticmethod
    def double_down(state: GameState, shoe: Shoe) -> GameState:
        """Double the bet, take exactly one card and finish the hand."""
        if PlayerAction.DOUBLE not in get_available_actions(state):
            return state

        index = state.active_hand_index
        hand = state.player_hands[index]
        card = shoe.deal()
        new_hand = replace(
            hand,
            cards=hand.cards + (card,),
            bet=hand.bet * 2,
            is_doubled=True,
            is_stood=True,
            actions=hand.actions + (PlayerAction.DOUBLE,),
        )

        new_state = replace(_replace_hand(state, index, new_hand), chips=state.chips - hand.bet)
        new_state = _sync_shoe(new_state, shoe)
        _emit(
            new_state,
            EngineEventType.PLAYER_ACTION,
            {"hand_index": index, "action": PlayerAction.DOUBLE.value, "card": str(card), "bet": new_hand.bet},
        )
        return advance_to_next_playable_hand(new_state)

    @staticmethod
    def split(state: GameState, shoe: Shoe) -> GameState:
        """
        Split the active pair into two hands, each completed with a new card.

        The second hand's bet is charged immediately. Split hands can make 21
        but never blackjack.
        """
        if PlayerAction.SPLIT not in get_available_actions(state):
            return state

        index = state.active_hand_index
        hand = state.player_hands[index]

        first = PlayerHand(
            cards=(hand.cards[0], shoe.deal()),
            bet=hand.bet,
            actions=(PlayerAction.SPLIT,),
            is_split=True,
        )
        second = PlayerHand(
            cards=(hand.cards[1], shoe.deal()),
            bet=hand.bet,
            actions=(PlayerAction.SPLIT,),
            is_split=True,
        )
        if first.total.best == 21:
            first = replace(first, is_stood=True)

        hands = list(state.player_hands)
        hands[index:index + 1] = [first, second]
        new_state = replace(state, player_hands=tuple(hands), chips=state.chips - hand.bet)
        new_state = _sync_shoe(new_state, shoe)

        _emit(
            new_state,
            EngineEventType.HAND_SPLIT,
            {
                "hand_index": index,
                "hands": [[str(c) for c in first.cards], [str(c) for c in second.cards]],
            },
        )

        if first.is_stood:
            return advance_to_next_playable_hand(new_state)
        return new_state

    @staticmethod
    def surrender(state: GameState) -> GameState:
        """Give up the hand before any other decision; settled at resolution."""
        if PlayerAction.SURRENDER not in get_available_actions(state):
            return state

        index = state.active_hand_index
        hand = state.player_hands[index]
        new_hand = replace(
            hand,
            is_surrendered=True,
            is_stood=True,
            actions=hand.actions + (PlayerAction.SURRENDER,),
        )
        new_state = _replace_hand(state, index, new_hand)
        _emit(new_state, EngineEventType.PLAYER_ACTION, {"hand_index": index, "action": PlayerAction.SURRENDER.value})
        return advance_to_next_playable_hand(new_state)

    # ------------------------------------------------------------------
    # Even money
    # ------------------------------------------------------------------

    @staticmethod
    def accept_even_money(state: GameState) -> GameState:
        """
        Settle the offered blackjack at 1:1 right away.

        The stake and the even-money payout are credited immediately; the
        hand's outcome is fixed so resolution leaves it alone.
        """
        if state.phase != GamePhase.PLAYER_ACTION or not state.even_money_offered:
            return state
        index = state.even_money_hand_index
        if index is None or not 0 <= index < len(state.player_hands):
            return state

        hand = state.player_hands[index]
        payout = calculate_even_money(hand.bet)
        new_hand = replace(hand, is_stood=True, outcome=HandOutcome.WIN, payout=payout)

        new_state = replace(
            _replace_hand(state, index, new_hand),
            chips=state.chips + hand.bet + payout,
            even_money_offered=False,
            even_money_hand_index=None,
        )
        _emit(new_state, EngineEventType.EVEN_MONEY_DECISION, {"hand_index": index, "accepted": True})
        _emit(
            new_state,
            EngineEventType.MONEY_PAYOUT,
            {"hand_index": index, "outcome": HandOutcome.WIN.value, "payout": payout},
        )

        if state.dealer_hand.total.is_blackjack:
            return resolve_hands(
                replace(
                    new_state,
                    phase=GamePhase.RESOLUTION,
                    dealer_hand=replace(state.dealer_hand, hole_card_revealed=True),
                )
            )
        return advance_to_next_playable_hand(new_state)

    @staticmethod
    def decline_even_money(state: GameState) -> GameState:
        """
        Keep the blackjack riding for 3:2, at the risk of a push.
        """
        if state.phase != GamePhase.PLAYER_ACTION or not state.even_money_offered:
            return state
        index = state.even_money_hand_index
        if index is None or not 0 <= index < len(state.player_hands):
            return state

        new_state = replace(state, even_money_offered=False, even_money_hand_index=None)
        _emit(new_state, EngineEventType.EVEN_MONEY_DECISION, {"hand_index": index, "accepted": False})

        if state.dealer_hand.total.is_blackjack:
            return resolve_hands(
                replace(
                    new_state,
                    phase=GamePhase.RESOLUTION,
                    dealer_hand=replace(state.dealer_hand, hole_card_revealed=True),
                )
            )

        hand = state.player_hands[index]
        new_state = _replace_hand(new_state, index, replace(hand, is_stood=True))
        return advance_to_next_playable_hand(new_state)

    # ------------------------------------------------------------------
    # Dealer and settlement
    # ------------------------------------------------------------------

    @staticmethod
    def dealer_play(state: GameState, shoe: Shoe) -> GameState:
        """Play the dealer's hand out in one step and settle the round."""
        if state.phase != GamePhase.DEALER_PLAY:
            return state

        dealer_cards = list(state.dealer_hand.cards)
        while should_dealer_hit(dealer_cards, state.rules.dealer_hit_soft_17):
            dealer_cards.append(shoe.deal())

        new_state = replace(
            state,
            phase=GamePhase.RESOLUTION,
            dealer_hand=DealerHand(cards=tuple(dealer_cards), hole_card_revealed=True),
        )
        new_state = _sync_shoe(new_state, shoe)

        total = evaluate_hand(dealer_cards)
        _emit(
            new_state,
            EngineEventType.DEALER_ACTION,
            {"cards": [str(c) for c in dealer_cards], "total": total.best, "is_bust": total.is_bust},
        )
        return resolve_hands(new_state)

    @staticmethod
    def resolve(state: GameState) -> GameState:
        """RESOLVE as a dispatched action: only meaningful once play is over."""
        if state.phase not in (GamePhase.RESOLUTION, GamePhase.ROUND_OVER):
            return state
        if state.phase == GamePhase.ROUND_OVER and all(
            h.outcome is not None for h in state.player_hands
        ):
            return state
        return resolve_hands(state)

    @staticmethod
    def new_round(state: GameState, shoe: Shoe) -> GameState:
        """
        Clear the table for the next round, keeping chips and counters.

        A player with no chips left stays where they are; ending the session
        is up to the host.
        """
        if state.phase != GamePhase.ROUND_OVER:
            return state
        if state.chips <= 0:
            return state

        if state.needs_reshuffle or shoe.needs_reshuffle():
            shoe.reshuffle()

        new_state = replace(
            state,
            phase=GamePhase.BETTING,
            player_hands=(),
            dealer_hand=DealerHand(),
            active_hand_index=0,
            bets=(0,) * state.hands_configuration,
            previous_bets=state.bets,
            even_money_offered=False,
            even_money_hand_index=None,
        )
        return _sync_shoe(new_state, shoe)


def resolve_hands(state: GameState) -> GameState:
    """
    Settle every hand that has no outcome yet against the dealer.

    Each newly settled hand returns ``bet + payout`` to the chips. Hands
    that already carry an outcome (even money) are left untouched, so
    calling this again is harmless.
    """
    dealer_total = state.dealer_hand.total
    chips = state.chips
    resolved = []

    for index, hand in enumerate(state.player_hands):
        if hand.outcome is not None:
            resolved.append(hand)
            continue

        outcome = determine_outcome(hand.total, dealer_total, hand.is_surrendered)
        payout = calculate_payout(hand.bet, outcome, state.rules.blackjack_payout)
        chips += hand.bet + payout
        resolved.append(replace(hand, outcome=outcome, payout=payout))

        _emit(
            state,
            EngineEventType.HAND_RESULT,
            {"hand_index": index, "outcome": outcome.value, "bet": hand.bet, "payout": payout},
        )

    new_state = replace(
        state,
        phase=GamePhase.ROUND_OVER,
        player_hands=tuple(resolved),
        chips=chips,
        dealer_hand=replace(state.dealer_hand, hole_card_revealed=True),
    )
    _emit(
        new_state,
        EngineEventType.ROUND_ENDED,
        {"chips": chips, "dealer_total": dealer_total.best},
    )
    return new_state


def advance_to_next_playable_hand(state: GameState) -> GameState:
    """
    Move the active pointer to the next hand that still needs a decision.

    When no hand is left to play, the dealer plays if any hand is still
    live; otherwise the round settles at once with the hole card turned
    over for display.
    """
    index = state.active_hand_index
    hands = state.player_hands

    while index < len(hands):
        hand = hands[index]
        total = hand.total
        if (
            hand.is_stood
            or total.is_bust
            or total.is_blackjack
            or hand.is_surrendered
            or hand.is_doubled
        ):
            index += 1
            continue
        return replace(state, active_hand_index=index)

    any_live = any(
        h.outcome is None and not h.is_surrendered and not h.total.is_bust
        for h in hands
    )
    if any_live:
        return replace(state, phase=GamePhase.DEALER_PLAY, active_hand_index=index)

    return resolve_hands(
        replace(
            state,
            active_hand_index=index,
            dealer_hand=replace(state.dealer_hand, hole_card_revealed=True),
        )
    )


_HANDLERS: Dict[ActionType, Callable[[GameState, GameAction, Shoe], GameState]] = {
    ActionType.PLACE_BET: lambda s, a, d: StateTransitionEngine.place_bet(s, a.hand_index, a.amount),
    ActionType.CLEAR_BET: lambda s, a, d: StateTransitionEngine.clear_bet(s, a.hand_index),
    ActionType.CLEAR_ALL_BETS: lambda s, a, d: StateTransitionEngine.clear_all_bets(s),
    ActionType.SAME_BET: lambda s, a, d: StateTransitionEngine.repeat_bets(s, a.previous_bets),
    ActionType.DOUBLE_PREVIOUS_BET: lambda s, a, d: StateTransitionEngine.repeat_bets(s, a.previous_bets, 2),
    ActionType.DEAL: lambda s, a, d: StateTransitionEngine.deal(s, d),
    ActionType.HIT: lambda s, a, d: StateTransitionEngine.hit(s, d),
    ActionType.STAND: lambda s, a, d: StateTransitionEngine.stand(s),
    ActionType.DOUBLE_DOWN: lambda s, a, d: StateTransitionEngine.double_down(s, d),
    ActionType.SPLIT: lambda s, a, d: StateTransitionEngine.split(s, d),
    ActionType.SURRENDER: lambda s, a, d: StateTransitionEngine.surrender(s),
    ActionType.ACCEPT_EVEN_MONEY: lambda s, a, d: StateTransitionEngine.accept_even_money(s),
    ActionType.DECLINE_EVEN_MONEY: lambda s, a, d: StateTransitionEngine.decline_even_money(s),
    ActionType.DEALER_PLAY: lambda s, a, d: StateTransitionEngine.dealer_play(s, d),
    ActionType.RESOLVE: lambda s, a, d: StateTransitionEngine.resolve(s),
    ActionType.NEW_ROUND: lambda s, a, d: StateTransitionEngine.new_round(s, d),
}


def apply(state: GameState, action: GameAction, shoe: Shoe) -> GameState:
    """
    Apply one action to the state.

    Args:
        state: Current game state
        action: The action to apply
        shoe: The session's shoe, advanced in place when cards are dealt

    Returns:
        The new state, or ``state`` itself when the action is not legal now
    """
    handler = _HANDLERS.get(action.type)
    if handler is None:
        return state

    new_state = handler(state, action, shoe)
    if new_state is state:
        logger.debug("Ignoring %s in phase %s", action.type.name, state.phase.name)
    return new_state


game_reducer = apply
