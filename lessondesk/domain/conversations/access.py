"""Ownership checks for conversation-scoped routes"""

import logging

from sqlalchemy.orm import Session

from ...auth import Actor
from ...exceptions import ConversationNotFound, MessageNotFound
from ...models import Conversation, Message
from .repository import ConversationRepository

logger = logging.getLogger(__name__)


def get_accessible_conversation(db: Session, conversation_id: str, actor: Actor) -> Conversation:
    """
    The conversation if the actor may act on it. Admins see every conversation;
    everyone else only their instructor's. Foreign and unknown ids both raise
    ConversationNotFound.
    """
    if actor.role == "admin":
        conversation = ConversationRepository.get_conversation(db, conversation_id)
    elif actor.instructor_id:
        conversation = ConversationRepository.get_conversation_for_instructor(
            db, conversation_id, actor.instructor_id
        )
    else:
        conversation = None

    if not conversation:
        logger.warning(f"⚠️ Conversation {conversation_id} not found or not owned by {actor.id}")
        raise ConversationNotFound(conversation_id)
    return conversation


def get_accessible_message(db: Session, message_id: str, actor: Actor) -> Message:
    """The message if the actor may act on its conversation; MessageNotFound otherwise"""
    message = ConversationRepository.get_message(db, message_id)
    if not message:
        raise MessageNotFound(message_id)
    try:
        get_accessible_conversation(db, message.conversation_id, actor)
    except ConversationNotFound:
        raise MessageNotFound(message_id) from None
    return message
