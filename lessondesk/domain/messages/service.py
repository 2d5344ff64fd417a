"""Inbound decision service - Records classifier output and the decision taken on it"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...exceptions import MessageNotFound
from ...models import AIDecisionSnapshot, Message
from ..conversations.repository import INTENT_CLASSIFICATION_KEY, ConversationRepository
from ..decisioning.eligibility_resolver import DraftEligibility, resolve_draft_eligibility
from ..decisioning.engine import decide
from ..decisioning.gate import gate
from .repository import MessageRepository
from .schemas import ClassifierOutput

logger = logging.getLogger(__name__)


class InboundDecisionService:
    """Service layer for per-message automation decisions"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = MessageRepository()

    def _get_message(self, message_id: str) -> Message:
        message = ConversationRepository.get_message(self.db, message_id)
        if not message:
            raise MessageNotFound(message_id)
        return message

    def record_classification(self, message_id: str, output: ClassifierOutput) -> AIDecisionSnapshot:
        """
        Store classifier output for a message and the decision taken on it.

        One snapshot per message: a redelivered message returns the snapshot
        recorded the first time, whatever the new classifier output says.
        """
        message = self._get_message(message_id)

        existing = self.repo.get_snapshot(self.db, message_id)
        if existing:
            logger.info(f"ℹ️ Decision already recorded for message {message_id}; returning it")
            return existing

        decision = decide(output.relevance_confidence, output.intent_confidence)
        permissions = gate(decision.decision)

        try:
            if not self.repo.get_metadata(self.db, message_id, INTENT_CLASSIFICATION_KEY):
                self.repo.add_metadata(
                    self.db,
                    message_id=message_id,
                    conversation_id=message.conversation_id,
                    key=INTENT_CLASSIFICATION_KEY,
                    value=output.model_dump(),
                )
            snapshot = self.repo.add_snapshot(
                self.db,
                message_id=message_id,
                conversation_id=message.conversation_id,
                relevance_confidence=decision.relevance_confidence,
                intent_confidence=decision.intent_confidence,
                intent=output.intent,
                decision=decision.decision.value,
                reason=decision.reason.value,
                allow_draft=permissions.allow_draft,
                require_escalation=permissions.require_escalation,
            )
            self.db.commit()
        except IntegrityError:
            # A concurrent delivery of the same message won the insert
            self.db.rollback()
            winner = self.repo.get_snapshot(self.db, message_id)
            if winner is None:
                raise
            logger.info(f"ℹ️ Concurrent decision for message {message_id}; returning the recorded one")
            return winner
        except Exception as e:
            logger.error(f"❌ Failed to record decision for message {message_id}: {str(e)}")
            self.db.rollback()
            raise

        self.db.refresh(snapshot)
        logger.info(
            f"🤖 Message {message_id} decision: {snapshot.decision} ({snapshot.reason}) "
            f"draft={snapshot.allow_draft} escalate={snapshot.require_escalation}"
        )
        return snapshot

    def get_snapshot(self, message_id: str) -> Optional[AIDecisionSnapshot]:
        self._get_message(message_id)
        return self.repo.get_snapshot(self.db, message_id)

    def get_draft_eligibility(self, message_id: str) -> DraftEligibility:
        """What to show for a message; DECISION_MISSING until a decision is recorded"""
        snapshot = self.get_snapshot(message_id)
        if snapshot is None:
            return resolve_draft_eligibility()
        return resolve_draft_eligibility(snapshot.decision, snapshot.reason)
