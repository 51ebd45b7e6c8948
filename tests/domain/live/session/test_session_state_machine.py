"""Tests for SessionStateMachine state transitions."""

from app.domain.live.session.session_state_machine import SessionStateMachine
from app.schemas import SessionState


class TestCanTransition:
    """Tests for SessionStateMachine.can_transition method."""

    def test_scheduled_to_live_valid(self):
        """Test SCHEDULED -> LIVE is a valid transition (stream started)."""
        assert SessionStateMachine.can_transition(SessionState.SCHEDULED, SessionState.LIVE) is True

    def test_scheduled_to_cancelled_valid(self):
        """Test SCHEDULED -> CANCELLED is a valid transition."""
        assert SessionStateMachine.can_transition(SessionState.SCHEDULED, SessionState.CANCELLED) is True

    def test_scheduled_to_completed_invalid(self):
        """Test SCHEDULED -> COMPLETED is invalid (must go live first)."""
        assert SessionStateMachine.can_transition(SessionState.SCHEDULED, SessionState.COMPLETED) is False

    def test_live_to_completed_valid(self):
        """Test LIVE -> COMPLETED is a valid transition (stream ended)."""
        assert SessionStateMachine.can_transition(SessionState.LIVE, SessionState.COMPLETED) is True

    def test_live_to_cancelled_invalid(self):
        """Test a live session cannot be cancelled."""
        assert SessionStateMachine.can_transition(SessionState.LIVE, SessionState.CANCELLED) is False

    def test_live_to_scheduled_invalid(self):
        assert SessionStateMachine.can_transition(SessionState.LIVE, SessionState.SCHEDULED) is False

    def test_cancelled_to_scheduled_invalid(self):
        """Test CANCELLED is terminal; a cancelled session is not re-opened."""
        assert SessionStateMachine.can_transition(SessionState.CANCELLED, SessionState.SCHEDULED) is False

    def test_completed_to_live_invalid(self):
        assert SessionStateMachine.can_transition(SessionState.COMPLETED, SessionState.LIVE) is False

    def test_same_state_is_not_a_transition(self):
        """Test X -> X is not listed as a transition; callers treat it as a no-op."""
        for state in SessionState:
            assert SessionStateMachine.can_transition(state, state) is False


class TestIsTerminal:
    """Tests for SessionStateMachine.is_terminal method."""

    def test_completed_is_terminal(self):
        assert SessionStateMachine.is_terminal(SessionState.COMPLETED) is True

    def test_cancelled_is_terminal(self):
        assert SessionStateMachine.is_terminal(SessionState.CANCELLED) is True

    def test_scheduled_and_live_are_not_terminal(self):
        assert SessionStateMachine.is_terminal(SessionState.SCHEDULED) is False
        assert SessionStateMachine.is_terminal(SessionState.LIVE) is False

    def test_terminal_states_have_no_transitions(self):
        for state in SessionStateMachine.TERMINAL_STATES:
            assert SessionStateMachine.get_valid_transitions(state) == set()


class TestValidSources:
    """Tests for SessionStateMachine.get_valid_sources method."""

    def test_live_reachable_only_from_scheduled(self):
        assert SessionStateMachine.get_valid_sources(SessionState.LIVE) == {SessionState.SCHEDULED}

    def test_completed_reachable_only_from_live(self):
        assert SessionStateMachine.get_valid_sources(SessionState.COMPLETED) == {SessionState.LIVE}

    def test_scheduled_is_initial_only(self):
        assert SessionStateMachine.get_valid_sources(SessionState.SCHEDULED) == set()
