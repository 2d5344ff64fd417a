"""
Booking lifecycle projector.

Merges the booking's creation fact with its audit entries into one ordered,
read-only timeline:
- booking_created: one event from the booking row itself
- manual_override: a human-acted audit entry that changed state
- status_transition: every other audit entry
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...exceptions import BookingNotFound
from ...models import Booking, BookingAudit
from .repository import BookingRepository

BOOKING_CREATED = "booking_created"
MANUAL_OVERRIDE = "manual_override"
STATUS_TRANSITION = "status_transition"


@dataclass(frozen=True)
class LifecycleEvent:
    type: str
    actor: str
    from_state: Optional[str]
    to_state: Optional[str]
    timestamp: datetime
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def _classify(entry: BookingAudit) -> str:
    has_state_change = entry.previous_state is not None and entry.new_state is not None
    if entry.actor == "human" and has_state_change:
        return MANUAL_OVERRIDE
    return STATUS_TRANSITION


def _creation_event(booking: Booking, entries: list[BookingAudit]) -> LifecycleEvent:
    # The state a booking was created in is the first audited previous_state,
    # or the current status when nothing has moved it yet
    initial_state = booking.status
    for entry in entries:
        if entry.previous_state is not None:
            initial_state = entry.previous_state
            break
        if entry.new_state is not None:
            initial_state = entry.new_state
            break
    return LifecycleEvent(
        type=BOOKING_CREATED,
        actor="system",
        from_state=None,
        to_state=initial_state,
        timestamp=booking.created_at,
    )


def project(db: Session, booking_id: str) -> list[LifecycleEvent]:
    """Lifecycle events for a booking, ascending by timestamp. Raises BookingNotFound"""
    booking = BookingRepository.get_booking(db, booking_id)
    if not booking:
        raise BookingNotFound(booking_id)

    entries = BookingRepository.list_audit_entries(db, booking_id)

    events = [_creation_event(booking, entries)]
    for entry in entries:
        events.append(
            LifecycleEvent(
                type=_classify(entry),
                actor=entry.actor,
                from_state=entry.previous_state,
                to_state=entry.new_state,
                timestamp=entry.created_at,
                reason=entry.reason or entry.event_type,
            )
        )

    # Storage order is not trusted; sort is stable so equal timestamps keep insertion order
    return sorted(events, key=lambda event: event.timestamp)
