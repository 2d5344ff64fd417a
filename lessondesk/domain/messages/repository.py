"""Message repository - Database operations for message metadata and decision snapshots"""

from typing import Any, Optional

from sqlalchemy.orm import Session

from ...models import AIDecisionSnapshot, MessageMetadata


class MessageRepository:
    """Repository for message metadata and decision snapshot operations"""

    @staticmethod
    def get_metadata(db: Session, message_id: str, key: str) -> Optional[MessageMetadata]:
        return (
            db.query(MessageMetadata)
            .filter(MessageMetadata.message_id == message_id, MessageMetadata.key == key)
            .first()
        )

    @staticmethod
    def add_metadata(
        db: Session, message_id: str, conversation_id: str, key: str, value: dict[str, Any]
    ) -> MessageMetadata:
        """Insert a metadata row; (message_id, key) is unique"""
        row = MessageMetadata(message_id=message_id, conversation_id=conversation_id, key=key, value=value)
        db.add(row)
        db.flush()
        return row

    @staticmethod
    def get_snapshot(db: Session, message_id: str) -> Optional[AIDecisionSnapshot]:
        return db.query(AIDecisionSnapshot).filter(AIDecisionSnapshot.message_id == message_id).first()

    @staticmethod
    def add_snapshot(db: Session, **snapshot_data) -> AIDecisionSnapshot:
        snapshot = AIDecisionSnapshot(**snapshot_data)
        db.add(snapshot)
        db.flush()
        return snapshot
