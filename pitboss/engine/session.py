"""
Solo blackjack session.

This module provides the BlackjackSession class, which owns the shoe and the
current state of one player's session and feeds actions through the pure
transition functions in `pitboss.state`.
"""

import logging
from typing import Any, Dict, List, Optional

from pitboss.blackjack.action import PlayerAction
from pitboss.blackjack.betting import validate_buy_in
from pitboss.blackjack.hand import HandTotal
from pitboss.blackjack.rules import DEFAULT_RULES, Rules
from pitboss.common.deck import RandomInt, secure_random_int
from pitboss.common.shoe import Shoe
from pitboss.events import EventBus
from pitboss.state import (
    ActionType,
    GameAction,
    GamePhase,
    GameState,
    apply,
    create_initial_state,
    get_available_actions,
)

logger = logging.getLogger(__name__)


class BlackjackSession:
    """
    A single player's seat at a solo table.

    The session is the only place where mutable things live: the shoe, and
    the pointer to the latest immutable `GameState`. Everything else is
    delegated to the reducer.
    """

    def __init__(
        self,
        chips: float,
        hands_configuration: int = 1,
        rules: Optional[Rules] = None,
        session_id: Optional[str] = None,
        random_int: RandomInt = secure_random_int,
    ):
        """
        Open a session with a freshly shuffled shoe.

        Args:
            chips: Chips the player sits down with
            hands_configuration: Betting spots to play each round
            rules: Table configuration
            session_id: Identifier for the session; generated when omitted
            random_int: Uniform integer source for shuffles
        """
        self.rules = rules or DEFAULT_RULES
        self.shoe = Shoe(self.rules.num_decks, self.rules.penetration, random_int)
        self.state = create_initial_state(
            chips,
            hands_configuration,
            session_id=session_id,
            shoe=self.shoe.get_shoe(),
            cards_dealt=self.shoe.get_cards_dealt(),
            rules=self.rules,
        )
        EventBus.get_instance().set_context(self.state.session_id, "")

    @classmethod
    def start(
        cls,
        buy_in: float,
        hands_configuration: int = 1,
        rules: Optional[Rules] = None,
        **kwargs: Any,
    ) -> "BlackjackSession":
        """
        Open a session after checking the buy-in against the table limits.

        Raises:
            ValueError: If the buy-in is not accepted
        """
        rules = rules or DEFAULT_RULES
        check = validate_buy_in(
            buy_in, rules.min_buy_in, rules.max_buy_in, rules.buy_in_increment
        )
        if not check:
            raise ValueError(check.error)
        return cls(buy_in, hands_configuration, rules=rules, **kwargs)

    @classmethod
    def restore(
        cls, snapshot: Dict[str, Any], random_int: RandomInt = secure_random_int
    ) -> "BlackjackSession":
        """
        Resume a session from a `snapshot` dictionary.

        Raises:
            ValueError: If the snapshot is malformed
        """
        state = GameState.from_dict(snapshot)
        session = cls.__new__(cls)
        session.rules = state.rules
        session.shoe = Shoe.from_state(
            state.shoe,
            state.cards_dealt,
            num_decks=state.rules.num_decks,
            penetration=state.rules.penetration,
            random_int=random_int,
        )
        session.state = state
        EventBus.get_instance().set_context(state.session_id, str(state.hand_number))
        logger.info(
            "Restored session %s at hand %d (%s)",
            state.session_id,
            state.hand_number,
            state.phase.name,
        )
        return session

    def dispatch(self, action: GameAction) -> GameState:
        """Apply an action and return the new state."""
        if action.type is ActionType.DEAL:
            EventBus.get_instance().set_context(
                self.state.session_id, str(self.state.hand_number + 1)
            )
        self.state = apply(self.state, action, self.shoe)
        return self.state

    def available_actions(self) -> List[PlayerAction]:
        return get_available_actions(self.state)

    def hand_total(self, index: Optional[int] = None) -> Optional[HandTotal]:
        """
        Total of a player hand; the active hand when ``index`` is omitted.
        """
        if index is None:
            index = self.state.active_hand_index
        if 0 <= index < len(self.state.player_hands):
            return self.state.player_hands[index].total
        return None

    def snapshot(self) -> Dict[str, Any]:
        """A dictionary holding everything needed to resume the session."""
        return self.state.to_dict()

    @property
    def is_over(self) -> bool:
        """Whether the player is out of chips at the end of a round."""
        return self.state.phase == GamePhase.ROUND_OVER and self.state.chips <= 0
