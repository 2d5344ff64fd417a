"""
Expire-check-on-read for pending bookings.

There is no background scheduler: a pending booking older than the TTL is
moved to declined (actor=system) the first time anything reads or touches it.
Every read path that returns a booking, including ownership checks, goes
through apply_expiry_on_read so callers always see the resolved state.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...config import BOOKING_PENDING_TTL_HOURS
from ...models import Booking
from .repository import BookingRepository
from .state_machine import transition

logger = logging.getLogger(__name__)

PENDING_TTL = timedelta(hours=BOOKING_PENDING_TTL_HOURS)
EXPIRY_REASON = "pending_ttl_elapsed"


def is_pending_booking_expired(created_at: datetime, now: Optional[datetime] = None) -> bool:
    """True if created_at is older than the pending TTL"""
    now = now or datetime.utcnow()
    return created_at < now - PENDING_TTL


def apply_expiry_on_read(db: Session, booking: Booking, now: Optional[datetime] = None) -> Booking:
    """
    Decline a stale pending booking and return it; otherwise return it unchanged.

    The transition, status write and audit entry commit together. If another
    writer moved the booking first, the fresh row is returned untouched.
    """
    if booking.status != "pending":
        return booking
    if not is_pending_booking_expired(booking.created_at, now):
        return booking

    new_state = transition("pending", "declined")
    try:
        if not BookingRepository.compare_and_set_status(db, booking.id, "pending", new_state):
            db.rollback()
            db.refresh(booking)
            logger.info(f"ℹ️ Booking {booking.id} changed concurrently; expiry skipped ({booking.status})")
            return booking

        BookingRepository.add_audit_entry(
            db,
            booking_id=booking.id,
            previous_state="pending",
            new_state=new_state,
            actor="system",
            reason=EXPIRY_REASON,
        )
        db.commit()
    except Exception as e:
        logger.error(f"❌ Failed to expire booking {booking.id}: {str(e)}")
        db.rollback()
        raise

    db.refresh(booking)
    logger.info(f"⏰ Booking {booking.id} expired: pending → {new_state}")
    return booking
