"""Confirmation repository - Database operations for booking_confirmation_audit"""

from typing import Any, Optional

from sqlalchemy.orm import Session

from ...models import BookingConfirmationAudit


class ConfirmationRepository:
    """Repository for confirmation audit records"""

    @staticmethod
    def get_confirmation(db: Session, instructor_id: str, request_id: str) -> Optional[BookingConfirmationAudit]:
        return (
            db.query(BookingConfirmationAudit)
            .filter(
                BookingConfirmationAudit.instructor_id == instructor_id,
                BookingConfirmationAudit.request_id == request_id,
            )
            .first()
        )

    @staticmethod
    def add_confirmation(
        db: Session,
        instructor_id: str,
        request_id: str,
        booking_id: str,
        actor_user_id: Optional[str] = None,
        draft_payload: Optional[dict[str, Any]] = None,
    ) -> BookingConfirmationAudit:
        """(instructor_id, request_id) is unique; a duplicate raises IntegrityError on flush"""
        record = BookingConfirmationAudit(
            instructor_id=instructor_id,
            request_id=request_id,
            booking_id=booking_id,
            actor_user_id=actor_user_id,
            draft_payload=draft_payload,
        )
        db.add(record)
        db.flush()
        return record
