"""
Booking state machine.

draft     → pending, cancelled
pending   → confirmed, declined, cancelled, expired
confirmed → modified, cancelled, completed
modified  → confirmed, cancelled
declined, cancelled, expired, completed are terminal.
"""

from ...exceptions import InvalidTransition

BOOKING_STATES = (
    "draft",
    "pending",
    "confirmed",
    "modified",
    "declined",
    "cancelled",
    "expired",
    "completed",
)

# States a booking may be created in
INITIAL_STATES = ("draft", "pending")

TERMINAL_STATES = frozenset({"declined", "cancelled", "expired", "completed"})

ALLOWED_TRANSITIONS = {
    "draft": ("pending", "cancelled"),
    "pending": ("confirmed", "declined", "cancelled", "expired"),
    "confirmed": ("modified", "cancelled", "completed"),
    "modified": ("confirmed", "cancelled"),
    "declined": (),
    "cancelled": (),
    "expired": (),
    "completed": (),
}


def transition(current_state: str, requested_state: str) -> str:
    """
    Validate a booking state change and return the new state.

    Raises InvalidTransition for anything outside the table, including
    unknown states. Must be called before any status write.
    """
    if requested_state not in ALLOWED_TRANSITIONS.get(current_state, ()):
        raise InvalidTransition(current_state, requested_state)
    return requested_state


def can_transition(current_state: str, requested_state: str) -> bool:
    return requested_state in ALLOWED_TRANSITIONS.get(current_state, ())


def is_terminal(state: str) -> bool:
    return state in TERMINAL_STATES


def is_active(state: str) -> bool:
    return state in ALLOWED_TRANSITIONS and state not in TERMINAL_STATES
