"""Booking repository - Database operations for bookings and booking_audit"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Booking, BookingAudit


class BookingRepository:
    """
    Repository for booking database operations.

    Write helpers flush but do not commit; services own the transaction.
    """

    @staticmethod
    def get_booking(db: Session, booking_id: str) -> Optional[Booking]:
        """Get a booking by ID regardless of owner"""
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_booking_for_instructor(
        db: Session, booking_id: str, instructor_id: str
    ) -> Optional[Booking]:
        """Get a booking by ID, scoped to its owning instructor"""
        return (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.instructor_id == instructor_id)
            .first()
        )

    @staticmethod
    def get_booking_by_conversation(db: Session, conversation_id: str) -> Optional[Booking]:
        """Get the most recent booking linked to a conversation"""
        return (
            db.query(Booking)
            .filter(Booking.conversation_id == conversation_id)
            .order_by(Booking.created_at.desc())
            .first()
        )

    @staticmethod
    def list_bookings(
        db: Session, instructor_id: str, status: Optional[str] = None
    ) -> list[Booking]:
        """List an instructor's bookings, newest first"""
        query = db.query(Booking).filter(Booking.instructor_id == instructor_id)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.created_at.desc()).all()

    @staticmethod
    def add_booking(db: Session, instructor_id: str, status: str, **booking_data) -> Booking:
        """Insert a booking row"""
        booking = Booking(instructor_id=instructor_id, status=status, **booking_data)
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def compare_and_set_status(
        db: Session, booking_id: str, expected_state: str, new_state: str
    ) -> bool:
        """
        Conditional status update. Returns False when the row is no longer in
        expected_state (a concurrent writer got there first).
        """
        updated = (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.status == expected_state)
            .update(
                {Booking.status: new_state, Booking.updated_at: datetime.utcnow()},
                synchronize_session=False,
            )
        )
        return updated == 1

    @staticmethod
    def add_audit_entry(
        db: Session,
        booking_id: str,
        previous_state: Optional[str],
        new_state: Optional[str],
        actor: str,
        reason: Optional[str] = None,
        actor_id: Optional[str] = None,
        event_type: Optional[str] = None,
    ) -> BookingAudit:
        """Append a booking audit entry"""
        entry = BookingAudit(
            booking_id=booking_id,
            previous_state=previous_state,
            new_state=new_state,
            actor=actor,
            reason=reason,
            actor_id=actor_id,
            event_type=event_type,
        )
        db.add(entry)
        db.flush()
        return entry

    @staticmethod
    def list_audit_entries(db: Session, booking_id: str) -> list[BookingAudit]:
        """Audit entries for a booking in insertion order"""
        return (
            db.query(BookingAudit)
            .filter(BookingAudit.booking_id == booking_id)
            .order_by(BookingAudit.created_at.asc(), BookingAudit.id.asc())
            .all()
        )
