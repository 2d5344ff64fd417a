"""Evaluation context shared by the eligibility and escalation evaluators"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from ...exceptions import ConversationNotFound
from ..bookings.expiry import apply_expiry_on_read
from ..bookings.repository import BookingRepository
from .repository import ConversationRepository


@dataclass(frozen=True)
class ConversationContext:
    """
    Everything the evaluators look at, read once per evaluation.
    Classifier fields come from the latest inbound message and are None
    when there is no message or the classifier did not report them.
    """

    conversation_id: str
    channel: str
    latest_message_id: Optional[str] = None
    intent: Optional[str] = None
    confidence: Optional[float] = None
    escalation_required: Optional[bool] = None
    sentiment: Optional[str] = None
    sentiment_score: Optional[float] = None
    booking_status: Optional[str] = None


def _as_float(value) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def load_conversation_context(db: Session, conversation_id: str) -> ConversationContext:
    """Raises ConversationNotFound for an unknown conversation"""
    conversation = ConversationRepository.get_conversation(db, conversation_id)
    if not conversation:
        raise ConversationNotFound(conversation_id)

    message = ConversationRepository.get_latest_inbound_message(db, conversation_id)
    classification = {}
    if message:
        classification = ConversationRepository.get_intent_classification(db, message.id) or {}

    confidence = classification.get("confidence")
    if confidence is None:
        confidence = classification.get("intent_confidence")

    escalation_required = classification.get("escalation_required")
    booking = BookingRepository.get_booking_by_conversation(db, conversation_id)
    if booking:
        booking = apply_expiry_on_read(db, booking)

    return ConversationContext(
        conversation_id=conversation_id,
        channel=conversation.channel,
        latest_message_id=message.id if message else None,
        intent=classification.get("intent"),
        confidence=_as_float(confidence),
        escalation_required=escalation_required if isinstance(escalation_required, bool) else None,
        sentiment=classification.get("sentiment"),
        sentiment_score=_as_float(classification.get("sentiment_score")),
        booking_status=booking.status if booking else None,
    )
