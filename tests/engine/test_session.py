"""
Tests for the solo session wrapper.
"""

import pytest

from pitboss.blackjack.action import HandOutcome, PlayerAction
from pitboss.blackjack.rules import Rules
from pitboss.engine import BlackjackSession
from pitboss.state import ActionType, GameAction, GamePhase

DEAL = GameAction.of(ActionType.DEAL)
HIT = GameAction.of(ActionType.HIT)
STAND = GameAction.of(ActionType.STAND)
DEALER_PLAY = GameAction.of(ActionType.DEALER_PLAY)


@pytest.fixture
def session(rigged_shoe):
    """A session whose shoe deals the given ranks first."""

    def _session(*deal_order, chips=1000):
        s = BlackjackSession(chips, session_id="session-1")
        s.shoe = rigged_shoe(*deal_order)
        return s

    return _session


class TestStart:
    def test_valid_buy_in(self):
        session = BlackjackSession.start(500)
        assert session.state.chips == 500
        assert session.state.phase == GamePhase.BETTING
        assert len(session.state.shoe) == 312

    @pytest.mark.parametrize("buy_in", [50, 20000, 250])
    def test_invalid_buy_in_raises(self, buy_in):
        with pytest.raises(ValueError):
            BlackjackSession.start(buy_in)

    def test_custom_rules(self):
        rules = Rules(num_decks=2, penetration=0.5)
        session = BlackjackSession.start(1000, rules=rules)
        assert len(session.state.shoe) == 104
        assert session.state.cut_card_position == 52

    def test_too_many_spots_raises(self):
        with pytest.raises(ValueError):
            BlackjackSession(1000, hands_configuration=7)


class TestDispatch:
    def test_round_through_session(self, session):
        s = session("10", "9", "10", "8")
        s.dispatch(GameAction.place_bet(0, 100))
        state = s.dispatch(DEAL)

        assert state is s.state
        assert state.phase == GamePhase.PLAYER_ACTION
        assert s.available_actions()[:2] == [PlayerAction.HIT, PlayerAction.STAND]
        assert s.hand_total().best == 20

        s.dispatch(STAND)
        s.dispatch(DEALER_PLAY)

        assert s.state.phase == GamePhase.ROUND_OVER
        assert s.state.player_hands[0].outcome == HandOutcome.WIN
        assert s.state.chips == 1100
        assert s.available_actions() == []

    def test_hand_total_out_of_range(self, session):
        s = session()
        assert s.hand_total() is None
        assert s.hand_total(3) is None

    def test_deal_sets_round_context(self, session, events):
        s = session("10", "9", "10", "8")
        s.dispatch(GameAction.place_bet(0, 100))
        s.dispatch(DEAL)

        name, data = events[-1]
        assert data["session_id"] == "session-1"
        assert data["round_id"] == "1"

    def test_is_over_when_broke(self, session):
        s = session("10", "6", "10", "10", "10", chips=100)
        s.dispatch(GameAction.place_bet(0, 100))
        s.dispatch(DEAL)
        s.dispatch(HIT)

        assert s.state.phase == GamePhase.ROUND_OVER
        assert s.state.chips == 0
        assert s.is_over

    def test_not_over_mid_round(self, session):
        s = session("10", "9", "7", "10", chips=100)
        s.dispatch(GameAction.place_bet(0, 100))
        s.dispatch(DEAL)
        assert s.state.chips == 0
        assert not s.is_over


class TestSnapshot:
    def test_restore_continues_identically(self, session):
        s = session("10", "6", "7", "10", "4", "8")
        s.dispatch(GameAction.place_bet(0, 100))
        s.dispatch(DEAL)

        restored = BlackjackSession.restore(s.snapshot())
        assert restored.state == s.state

        for action in (HIT, STAND, DEALER_PLAY):
            s.dispatch(action)
            restored.dispatch(action)

        assert restored.state == s.state
        assert restored.state.player_hands[0].total.best == 21

    def test_snapshot_is_plain_data(self, session):
        snapshot = session().snapshot()
        assert snapshot["session_id"] == "session-1"
        assert snapshot["phase"] == GamePhase.BETTING.value
        assert isinstance(snapshot["shoe"], list)

    def test_restore_rejects_malformed(self):
        with pytest.raises(ValueError):
            BlackjackSession.restore({"phase": "betting"})
