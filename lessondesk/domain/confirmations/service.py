"""Confirmation service - Exactly one booking per (instructor, request id)"""

import logging
from typing import Any, NamedTuple, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...exceptions import ConfirmationConflict, ConversationNotFound
from ..bookings.repository import BookingRepository
from ..conversations.repository import ConversationRepository
from .repository import ConfirmationRepository

logger = logging.getLogger(__name__)

CREATED_FROM_AI_DRAFT = "booking_created_from_ai_draft"
CONFIRMED_BOOKING_STATE = "draft"


class ConfirmationResult(NamedTuple):
    booking_id: str
    already_confirmed: bool


class BookingConfirmationService:
    """Service layer for idempotent booking confirmation"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ConfirmationRepository()

    def confirm(
        self,
        instructor_id: str,
        request_id: str,
        booking_fields: dict[str, Any],
        actor_id: Optional[str] = None,
    ) -> ConfirmationResult:
        """
        Create a booking for a confirmation request, or return the booking a
        previous call with the same request id created. Replays ignore the new
        booking_fields.
        """
        existing = self.repo.get_confirmation(self.db, instructor_id, request_id)
        if existing:
            logger.info(f"ℹ️ Confirmation {request_id} replayed; booking {existing.booking_id}")
            return ConfirmationResult(booking_id=existing.booking_id, already_confirmed=True)

        conversation_id = booking_fields.get("conversation_id")
        if conversation_id and not ConversationRepository.get_conversation_for_instructor(
            self.db, conversation_id, instructor_id
        ):
            logger.warning(
                f"⚠️ Confirmation {request_id} names conversation {conversation_id} "
                f"not owned by {instructor_id}"
            )
            raise ConversationNotFound(conversation_id)

        try:
            booking = BookingRepository.add_booking(
                self.db,
                instructor_id=instructor_id,
                status=CONFIRMED_BOOKING_STATE,
                **booking_fields,
            )
            BookingRepository.add_audit_entry(
                self.db,
                booking_id=booking.id,
                previous_state=None,
                new_state=CONFIRMED_BOOKING_STATE,
                actor="human",
                actor_id=actor_id,
                event_type=CREATED_FROM_AI_DRAFT,
            )
            self.repo.add_confirmation(
                self.db,
                instructor_id=instructor_id,
                request_id=request_id,
                booking_id=booking.id,
                actor_user_id=actor_id,
                draft_payload=jsonable_encoder(booking_fields),
            )
            booking_id = booking.id
            self.db.commit()
        except IntegrityError:
            # Lost the race on (instructor_id, request_id); the booking insert rolled back with it
            self.db.rollback()
            winner = self.repo.get_confirmation(self.db, instructor_id, request_id)
            if winner is None:
                logger.error(f"❌ Confirmation {request_id} conflicted but no winner was found")
                raise ConfirmationConflict(instructor_id, request_id)
            logger.info(f"ℹ️ Concurrent confirmation {request_id}; returning booking {winner.booking_id}")
            return ConfirmationResult(booking_id=winner.booking_id, already_confirmed=True)
        except Exception as e:
            logger.error(f"❌ Failed to confirm booking request {request_id}: {str(e)}")
            self.db.rollback()
            raise

        logger.info(f"✅ Booking {booking_id} confirmed for instructor {instructor_id} (request {request_id})")
        return ConfirmationResult(booking_id=booking_id, already_confirmed=False)
