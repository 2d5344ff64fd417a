"""Draft repository - Draft metadata rows and per-channel quota counters"""

from datetime import date
from typing import Any, Optional

from sqlalchemy.orm import Session

from ...models import AIChannelQuota, MessageMetadata

AI_DRAFT_KEY = "ai_draft"


class DraftRepository:
    """
    Drafts live in message_metadata under the ai_draft key.
    The (message_id, key) unique constraint allows one draft per message.
    """

    @staticmethod
    def get_draft(db: Session, message_id: str) -> Optional[MessageMetadata]:
        return (
            db.query(MessageMetadata)
            .filter(MessageMetadata.message_id == message_id, MessageMetadata.key == AI_DRAFT_KEY)
            .first()
        )

    @staticmethod
    def get_latest_draft_for_conversation(db: Session, conversation_id: str) -> Optional[MessageMetadata]:
        return (
            db.query(MessageMetadata)
            .filter(
                MessageMetadata.conversation_id == conversation_id,
                MessageMetadata.key == AI_DRAFT_KEY,
            )
            .order_by(MessageMetadata.created_at.desc(), MessageMetadata.id.desc())
            .first()
        )

    @staticmethod
    def add_draft(db: Session, message_id: str, conversation_id: str, value: dict[str, Any]) -> MessageMetadata:
        draft = MessageMetadata(
            message_id=message_id,
            conversation_id=conversation_id,
            key=AI_DRAFT_KEY,
            value=value,
        )
        db.add(draft)
        db.flush()
        return draft

    @staticmethod
    def delete_drafts_for_conversation(db: Session, conversation_id: str) -> int:
        return (
            db.query(MessageMetadata)
            .filter(
                MessageMetadata.conversation_id == conversation_id,
                MessageMetadata.key == AI_DRAFT_KEY,
            )
            .delete(synchronize_session=False)
        )


class QuotaRepository:
    """Per-channel daily counters of automation-authored sends"""

    @staticmethod
    def get_quota(db: Session, channel: str, period: date) -> Optional[AIChannelQuota]:
        return (
            db.query(AIChannelQuota)
            .filter(AIChannelQuota.channel == channel, AIChannelQuota.period == period)
            .first()
        )

    @staticmethod
    def provision_quota(
        db: Session, channel: str, period: date, max_allowed: Optional[int] = None
    ) -> AIChannelQuota:
        """Create the day's row for a channel, or update its limit; caller commits"""
        quota = QuotaRepository.get_quota(db, channel, period)
        if quota:
            quota.max_allowed = max_allowed
        else:
            quota = AIChannelQuota(channel=channel, period=period, max_allowed=max_allowed, used=0)
            db.add(quota)
        db.flush()
        return quota

    @staticmethod
    def increment_usage(db: Session, channel: str, period: date) -> bool:
        """Atomic used = used + 1. Returns False when no row exists for the day"""
        updated = (
            db.query(AIChannelQuota)
            .filter(AIChannelQuota.channel == channel, AIChannelQuota.period == period)
            .update({AIChannelQuota.used: AIChannelQuota.used + 1}, synchronize_session=False)
        )
        return updated == 1
