"""Booking service - Business logic for the governed booking lifecycle"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...exceptions import BookingNotFound, ConversationNotFound, InvalidTransition
from ...models import Booking, BookingAudit
from ..conversations.repository import ConversationRepository
from . import lifecycle
from .expiry import apply_expiry_on_read
from .repository import BookingRepository
from .schemas import BookingCreate
from .state_machine import INITIAL_STATES, transition

logger = logging.getLogger(__name__)

ACTORS = ("system", "human", "ai")


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()

    def create_booking(self, instructor_id: str, data: BookingCreate) -> Booking:
        """Create a booking in draft or pending"""
        if data.status not in INITIAL_STATES:
            raise InvalidTransition(None, data.status)
        if data.conversation_id and not ConversationRepository.get_conversation_for_instructor(
            self.db, data.conversation_id, instructor_id
        ):
            raise ConversationNotFound(data.conversation_id)

        try:
            booking = self.repo.add_booking(
                self.db,
                instructor_id=instructor_id,
                status=data.status,
                customer_ref=data.customer_ref,
                customer_name=data.customer_name,
                start_time=data.start_time,
                end_time=data.end_time,
                calendar_event_id=data.calendar_event_id,
                payment_reference=data.payment_reference,
                conversation_id=data.conversation_id,
                notes=data.notes,
            )
            self.db.commit()
        except Exception as e:
            logger.error(f"❌ Failed to create booking for instructor {instructor_id}: {str(e)}")
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(f"✅ Booking {booking.id} created for instructor {instructor_id} ({booking.status})")
        return booking

    def get_booking(self, booking_id: str, instructor_id: str) -> Booking:
        """Get an owned booking with pending expiry resolved"""
        booking = self.repo.get_booking_for_instructor(self.db, booking_id, instructor_id)
        if not booking:
            raise BookingNotFound(booking_id)
        return apply_expiry_on_read(self.db, booking)

    def list_bookings(self, instructor_id: str, status: Optional[str] = None) -> list[Booking]:
        """List bookings with pending expiry resolved on each row"""
        bookings = self.repo.list_bookings(self.db, instructor_id)
        resolved = [apply_expiry_on_read(self.db, booking) for booking in bookings]
        # Filter after expiry so a stale pending row never shows up as pending
        if status:
            resolved = [booking for booking in resolved if booking.status == status]
        return resolved

    def transition_booking(
        self,
        booking_id: str,
        instructor_id: str,
        requested_state: str,
        actor: str = "human",
        actor_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Booking:
        """
        Move a booking to requested_state.

        The state machine is consulted first; the status write is conditional on
        the state that was validated, and the audit entry commits with it.
        """
        if actor not in ACTORS:
            raise ValueError(f"Unknown booking actor: {actor}")

        booking = self.get_booking(booking_id, instructor_id)
        current_state = booking.status

        try:
            new_state = transition(current_state, requested_state)
        except InvalidTransition:
            logger.warning(
                f"⚠️ Rejected booking {booking_id} transition: {current_state} → {requested_state}"
            )
            raise

        try:
            if not self.repo.compare_and_set_status(self.db, booking_id, current_state, new_state):
                self.db.rollback()
                self.db.refresh(booking)
                logger.warning(
                    f"⚠️ Booking {booking_id} moved to {booking.status} concurrently; "
                    f"{current_state} → {requested_state} rejected"
                )
                raise InvalidTransition(booking.status, requested_state)

            self.repo.add_audit_entry(
                self.db,
                booking_id=booking_id,
                previous_state=current_state,
                new_state=new_state,
                actor=actor,
                actor_id=actor_id,
                reason=reason,
            )
            self.db.commit()
        except InvalidTransition:
            raise
        except Exception as e:
            logger.error(f"❌ Failed to transition booking {booking_id}: {str(e)}")
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(f"✅ Booking {booking_id} transitioned: {current_state} → {new_state} (actor={actor})")
        return booking

    def get_lifecycle(self, booking_id: str, instructor_id: str) -> list[lifecycle.LifecycleEvent]:
        """Ordered lifecycle timeline for an owned booking"""
        self.get_booking(booking_id, instructor_id)
        return lifecycle.project(self.db, booking_id)

    def get_audit_entries(self, booking_id: str, instructor_id: str) -> list[BookingAudit]:
        """Raw audit entries for an owned booking"""
        self.get_booking(booking_id, instructor_id)
        return self.repo.list_audit_entries(self.db, booking_id)
