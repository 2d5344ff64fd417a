"""Draft service - Draft creation and the approved-send unit of work"""

import logging
from datetime import datetime
from typing import NamedTuple, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...exceptions import (
    AutomationNotPermitted,
    ConversationNotFound,
    DraftNotFound,
    MessageNotFound,
    QuotaRowMissing,
)
from ...models import MessageMetadata
from ..audit.repository import AuditLogRepository
from ..bookings.repository import BookingRepository
from ..conversations.ai_state import can_send, can_suggest, normalize_ai_state
from ..conversations.repository import ConversationRepository
from ..decisioning.gate import gate
from ..messages.repository import MessageRepository
from .repository import DraftRepository, QuotaRepository

logger = logging.getLogger(__name__)

AI_DRAFT_SENT = "ai_draft_sent"


class SentDraft(NamedTuple):
    message_id: str
    text: str


def draft_to_dict(draft: MessageMetadata) -> dict:
    value = draft.value or {}
    return {
        "message_id": draft.message_id,
        "conversation_id": draft.conversation_id,
        "snapshot_id": value.get("snapshot_id"),
        "text": value.get("text", ""),
        "model": value.get("model"),
        "created_at": draft.created_at,
    }


class DraftService:
    """Service layer for automation drafts"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DraftRepository()

    def get_draft(self, message_id: str) -> Optional[MessageMetadata]:
        if not ConversationRepository.get_message(self.db, message_id):
            raise MessageNotFound(message_id)
        return self.repo.get_draft(self.db, message_id)

    def insert_once(
        self, message_id: str, snapshot_id: Optional[str], text: str, model: Optional[str] = None
    ) -> MessageMetadata:
        """
        Create the draft for a message unless one exists; an existing draft is
        returned unchanged. Concurrent callers both get the winning row.
        """
        existing = self.repo.get_draft(self.db, message_id)
        if existing:
            logger.info(f"ℹ️ Draft already exists for message {message_id}; keeping it")
            return existing

        message = ConversationRepository.get_message(self.db, message_id)
        if not message:
            raise MessageNotFound(message_id)

        try:
            draft = self.repo.add_draft(
                self.db,
                message_id=message_id,
                conversation_id=message.conversation_id,
                value={"text": text, "model": model, "snapshot_id": snapshot_id},
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            winner = self.repo.get_draft(self.db, message_id)
            if winner is None:
                raise
            logger.info(f"ℹ️ Concurrent draft insert for message {message_id}; returning the winner")
            return winner
        except Exception as e:
            logger.error(f"❌ Failed to store draft for message {message_id}: {str(e)}")
            self.db.rollback()
            raise

        self.db.refresh(draft)
        logger.info(f"✅ Draft stored for message {message_id} (model={model})")
        return draft

    def create_draft(self, message_id: str, text: str, model: Optional[str] = None) -> MessageMetadata:
        """
        Store a draft only when the message's decision allows drafting and the
        conversation's automation state allows suggestions.
        """
        message = ConversationRepository.get_message(self.db, message_id)
        if not message:
            raise MessageNotFound(message_id)

        conversation = ConversationRepository.get_conversation(self.db, message.conversation_id)
        if not conversation:
            raise ConversationNotFound(message.conversation_id)
        ai_state = normalize_ai_state(conversation.ai_state)

        snapshot = MessageRepository.get_snapshot(self.db, message_id)
        if snapshot is None or not gate(snapshot.decision).allow_draft:
            logger.warning(
                f"⚠️ Draft refused for message {message_id}: decision "
                f"{snapshot.decision if snapshot else 'missing'} does not allow drafting"
            )
            raise AutomationNotPermitted(conversation.id, ai_state, "draft")

        if not can_suggest(ai_state):
            logger.warning(f"⚠️ Draft refused for message {message_id}: conversation is {ai_state}")
            raise AutomationNotPermitted(conversation.id, ai_state, "draft")

        return self.insert_once(message_id, snapshot.id, text, model)

    def send_approved(self, conversation_id: str, approved_by: str, actor_type: str = "instructor") -> SentDraft:
        """
        Send the conversation's pending draft as an outbound message.

        One unit of work: outbound message insert, quota increment, booking
        audit entry (when a booking is linked) and draft removal commit
        together or not at all.
        """
        draft = self.repo.get_latest_draft_for_conversation(self.db, conversation_id)
        if not draft:
            raise DraftNotFound(conversation_id)

        conversation = ConversationRepository.get_conversation(self.db, conversation_id)
        if not conversation:
            raise ConversationNotFound(conversation_id)

        ai_state = normalize_ai_state(conversation.ai_state)
        if not can_send(ai_state):
            logger.warning(f"⚠️ Approved send refused for conversation {conversation_id}: {ai_state}")
            raise AutomationNotPermitted(conversation_id, ai_state, "send")

        draft_value = dict(draft.value or {})
        text = draft_value.get("text", "")
        channel = conversation.channel or "whatsapp"
        period = datetime.utcnow().date()
        sent_payload = {"draft_metadata": draft_value, "approved_by": approved_by}

        try:
            message = ConversationRepository.add_message(
                self.db,
                conversation_id,
                "outbound",
                channel=channel,
                message_text=text,
                sender_identity="human",
                raw_payload=sent_payload,
            )

            if not QuotaRepository.increment_usage(self.db, channel, period):
                raise QuotaRowMissing(channel, period.isoformat())

            booking = BookingRepository.get_booking_by_conversation(self.db, conversation_id)
            if booking:
                BookingRepository.add_audit_entry(
                    self.db,
                    booking_id=booking.id,
                    previous_state=None,
                    new_state=None,
                    actor="human",
                    actor_id=approved_by,
                    event_type=AI_DRAFT_SENT,
                )

            self.repo.delete_drafts_for_conversation(self.db, conversation_id)

            AuditLogRepository.record_secondary_event(
                self.db,
                actor_type=actor_type,
                actor_id=approved_by,
                action=AI_DRAFT_SENT,
                entity_type="conversation",
                entity_id=conversation_id,
                payload={"message_id": message.id, "source_message_id": draft.message_id},
            )
            self.db.commit()
        except QuotaRowMissing:
            logger.error(f"❌ No quota row for channel {channel} on {period}; send aborted")
            self.db.rollback()
            raise
        except Exception as e:
            logger.error(f"❌ Failed to send draft for conversation {conversation_id}: {str(e)}")
            self.db.rollback()
            raise

        logger.info(f"✅ Draft sent in conversation {conversation_id} as message {message.id} (by {approved_by})")
        return SentDraft(message_id=message.id, text=text)
