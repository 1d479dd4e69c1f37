"""Per-driver, per-day trip state machine."""

from __future__ import annotations

from enum import Enum


class TripState(str, Enum):
    """Whether the driver's active-trip slot for the day is taken."""

    NO_ACTIVE_TRIP = "no_active_trip"
    ACTIVE = "active"


class TripAction(str, Enum):
    """Driver actions on the trip slot."""

    START = "start"
    COMPLETE = "complete"


class InvalidTransitionError(Exception):
    """Raised when an action is not valid in the current state."""

    def __init__(self, from_state: str, action: str, reason: str | None = None):
        self.from_state = from_state
        self.action = action
        self.reason = reason
        msg = f"Cannot '{action}' from state '{from_state}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class TripStateMachine:
    """State machine for a driver's trip slot on one calendar day.

    Allowed transitions:
    - no_active_trip --start--> active
    - active --complete--> no_active_trip

    The cycle can repeat any number of times per day, producing several
    completed trips. A toggle never creates a second active trip: starting
    while a trip is active resolves to completing it.
    """

    VALID_TRANSITIONS: dict[str, dict[str, str]] = {
        TripState.NO_ACTIVE_TRIP: {TripAction.START: TripState.ACTIVE},
        TripState.ACTIVE: {TripAction.COMPLETE: TripState.NO_ACTIVE_TRIP},
    }

    @classmethod
    def state_for(cls, has_active_trip: bool) -> TripState:
        return TripState.ACTIVE if has_active_trip else TripState.NO_ACTIVE_TRIP

    @classmethod
    def can_apply(cls, state: str, action: str) -> bool:
        return action in cls.VALID_TRANSITIONS.get(state, {})

    @classmethod
    def apply(cls, state: str, action: str) -> TripState:
        """Return the next state, raising InvalidTransitionError if not allowed."""
        if not cls.can_apply(state, action):
            raise InvalidTransitionError(_value(state), _value(action))
        return TripState(cls.VALID_TRANSITIONS[state][action])

    @classmethod
    def resolve_action(cls, has_active_trip: bool) -> TripAction:
        """Map a start/complete button press to the action it performs."""
        if has_active_trip:
            return TripAction.COMPLETE
        return TripAction.START


def _value(member: str) -> str:
    return member.value if isinstance(member, Enum) else member
