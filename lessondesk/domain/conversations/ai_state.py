"""
Conversation automation state.

States:
- ai_on: automation may suggest and a human may approve-and-send its drafts
- ai_suggestion_only: automation may suggest; approved sends are blocked
- ai_paused_by_human: automation may neither suggest nor send

Any state may move to any other; callers enforce behaviour through
can_suggest / can_send. Every write records the previous state, next state,
actor type and reason in audit_log within the same transaction.
"""

import logging
from typing import NamedTuple, Optional

from sqlalchemy.orm import Session

from ...exceptions import ConversationNotFound
from ..audit.repository import AuditLogRepository
from .repository import ConversationRepository

logger = logging.getLogger(__name__)

AI_ON = "ai_on"
AI_PAUSED_BY_HUMAN = "ai_paused_by_human"
AI_SUGGESTION_ONLY = "ai_suggestion_only"

AI_STATES = (AI_ON, AI_PAUSED_BY_HUMAN, AI_SUGGESTION_ONLY)
DEFAULT_AI_STATE = AI_ON

# ai_state actor → audit_log actor_type
ACTOR_AUDIT_TYPES = {"human": "instructor", "admin": "admin", "system": "system"}


class AIStateChange(NamedTuple):
    previous_state: str
    next_state: str


def normalize_ai_state(raw: Optional[str]) -> str:
    """Unset or unrecognized stored values read as the default"""
    return raw if raw in AI_STATES else DEFAULT_AI_STATE


def can_suggest(ai_state: str) -> bool:
    """Automation may generate drafts"""
    return ai_state != AI_PAUSED_BY_HUMAN


def can_send(ai_state: str) -> bool:
    """A human may approve-and-send an automation draft"""
    return ai_state == AI_ON


def get_ai_state(db: Session, conversation_id: str) -> str:
    """Current automation state; ai_on when unset or the conversation is unknown"""
    conversation = ConversationRepository.get_conversation(db, conversation_id)
    if not conversation:
        return DEFAULT_AI_STATE
    return normalize_ai_state(conversation.ai_state)


def set_ai_state(
    db: Session,
    conversation_id: str,
    next_state: str,
    actor_type: str,
    reason: Optional[str] = None,
    actor_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> AIStateChange:
    """Set the automation state and write its audit entry as one unit"""
    if next_state not in AI_STATES:
        raise ValueError(f"Unknown ai_state: {next_state}")
    if actor_type not in ACTOR_AUDIT_TYPES:
        raise ValueError(f"Unknown ai_state actor_type: {actor_type}")

    conversation = ConversationRepository.get_conversation(db, conversation_id)
    if not conversation:
        raise ConversationNotFound(conversation_id)

    previous_state = normalize_ai_state(conversation.ai_state)

    try:
        ConversationRepository.set_ai_state(db, conversation, next_state)
        AuditLogRepository.insert_audit_event(
            db,
            actor_type=ACTOR_AUDIT_TYPES[actor_type],
            actor_id=actor_id,
            action="ai_state_change",
            entity_type="conversation",
            entity_id=conversation_id,
            request_id=request_id,
            payload={
                "previous_state": previous_state,
                "next_state": next_state,
                "actor_type": actor_type,
                "reason": reason,
            },
        )
        db.commit()
    except Exception as e:
        logger.error(f"❌ Failed to set ai_state for conversation {conversation_id}: {str(e)}")
        db.rollback()
        raise

    logger.info(
        f"🤖 Conversation {conversation_id} ai_state: {previous_state} → {next_state} "
        f"(actor={actor_type}, reason={reason})"
    )
    return AIStateChange(previous_state=previous_state, next_state=next_state)
