"""Conversation repository - Database operations for conversations and messages"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Conversation, Message, MessageMetadata

INTENT_CLASSIFICATION_KEY = "intent_classification"


class ConversationRepository:
    """Repository for conversation database operations"""

    @staticmethod
    def get_conversation(db: Session, conversation_id: str) -> Optional[Conversation]:
        return db.query(Conversation).filter(Conversation.id == conversation_id).first()

    @staticmethod
    def get_conversation_for_instructor(
        db: Session, conversation_id: str, instructor_id: str
    ) -> Optional[Conversation]:
        """Get a conversation by ID, scoped to its owning instructor"""
        return (
            db.query(Conversation)
            .filter(Conversation.id == conversation_id, Conversation.instructor_id == instructor_id)
            .first()
        )

    @staticmethod
    def set_ai_state(db: Session, conversation: Conversation, ai_state: str) -> Conversation:
        """Write ai_state; caller commits together with the audit row"""
        conversation.ai_state = ai_state
        conversation.updated_at = datetime.utcnow()
        db.flush()
        return conversation

    @staticmethod
    def get_message(db: Session, message_id: str) -> Optional[Message]:
        return db.query(Message).filter(Message.id == message_id).first()

    @staticmethod
    def get_latest_inbound_message(db: Session, conversation_id: str) -> Optional[Message]:
        return (
            db.query(Message)
            .filter(Message.conversation_id == conversation_id, Message.direction == "inbound")
            .order_by(Message.created_at.desc())
            .first()
        )

    @staticmethod
    def add_message(db: Session, conversation_id: str, direction: str, **message_data) -> Message:
        message = Message(conversation_id=conversation_id, direction=direction, **message_data)
        db.add(message)
        db.flush()
        return message

    @staticmethod
    def get_intent_classification(db: Session, message_id: str) -> Optional[dict]:
        """Classifier output stored against a message, if any"""
        row = (
            db.query(MessageMetadata)
            .filter(
                MessageMetadata.message_id == message_id,
                MessageMetadata.key == INTENT_CLASSIFICATION_KEY,
            )
            .first()
        )
        return row.value if row else None
