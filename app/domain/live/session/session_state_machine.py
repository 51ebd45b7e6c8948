"""Session state machine for managing state transitions."""

from app.schemas import SessionState


class SessionStateMachine:
    """State machine for managing session state transitions.

    State flow with triggers:
    - SCHEDULED (session created by its trainer) -> LIVE (start_stream) | CANCELLED (update_status)
    - LIVE -> COMPLETED (end_stream)
    - COMPLETED/CANCELLED are terminal states

    Moving to the state a session is already in is treated as a no-op by
    callers, not as a transition.
    """

    # State transition map defining valid state flows
    TRANSITIONS: dict[SessionState, set[SessionState]] = {
        SessionState.SCHEDULED: {
            SessionState.LIVE,
            SessionState.CANCELLED,
        },
        SessionState.LIVE: {SessionState.COMPLETED},
        SessionState.COMPLETED: set(),
        SessionState.CANCELLED: set(),
    }

    # Terminal states that cannot transition further
    TERMINAL_STATES: set[SessionState] = {SessionState.COMPLETED, SessionState.CANCELLED}

    @classmethod
    def can_transition(cls, current: SessionState, new: SessionState) -> bool:
        """Check if state transition is valid.

        Args:
            current: Current session state
            new: Target state to transition to

        Returns:
            True if transition is valid, False otherwise
        """
        return new in cls.TRANSITIONS.get(current, set())

    @classmethod
    def is_terminal(cls, state: SessionState) -> bool:
        """Check if a state is terminal (no further transitions allowed)."""
        return state in cls.TERMINAL_STATES

    @classmethod
    def get_valid_transitions(cls, state: SessionState) -> set[SessionState]:
        """Get all valid transitions from a given state."""
        return cls.TRANSITIONS.get(state, set())

    @classmethod
    def get_valid_sources(cls, target: SessionState) -> set[SessionState]:
        """Get all states that can transition to the target state."""
        return {state for state, targets in cls.TRANSITIONS.items() if target in targets}
