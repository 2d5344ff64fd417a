"""
Escalation classifier.

Independent of the eligibility evaluator; checked in order, first match wins:

1. explicit_request    - human_request intent or explicit escalation flag
2. low_confidence      - classifier confidence below threshold
3. negative_sentiment  - sentiment label negative or score <= -0.5
4. booking_risk        - a linked booking has left draft
otherwise no escalation (reason none).
"""

import logging
from typing import Callable, NamedTuple

from sqlalchemy.orm import Session

from ...config import AI_MIN_CLASSIFIER_CONFIDENCE
from .context import ConversationContext, load_conversation_context

logger = logging.getLogger(__name__)

HUMAN_REQUEST_INTENT = "human_request"
NEGATIVE_SENTIMENT_SCORE = -0.5

EXPLICIT_REQUEST = "explicit_request"
LOW_CONFIDENCE = "low_confidence"
NEGATIVE_SENTIMENT = "negative_sentiment"
BOOKING_RISK = "booking_risk"
NONE = "none"


class EscalationVerdict(NamedTuple):
    requires_human: bool
    reason: str


def escalation_rules(min_confidence: float) -> list[tuple[str, Callable[[ConversationContext], bool]]]:
    return [
        (
            EXPLICIT_REQUEST,
            lambda ctx: ctx.intent == HUMAN_REQUEST_INTENT or ctx.escalation_required is True,
        ),
        (LOW_CONFIDENCE, lambda ctx: ctx.confidence is not None and ctx.confidence < min_confidence),
        (
            NEGATIVE_SENTIMENT,
            lambda ctx: ctx.sentiment == "negative"
            or (ctx.sentiment_score is not None and ctx.sentiment_score <= NEGATIVE_SENTIMENT_SCORE),
        ),
        (BOOKING_RISK, lambda ctx: ctx.booking_status is not None and ctx.booking_status != "draft"),
    ]


def classify_context(
    ctx: ConversationContext,
    rules: list[tuple[str, Callable[[ConversationContext], bool]]],
) -> EscalationVerdict:
    for reason, matches in rules:
        if matches(ctx):
            return EscalationVerdict(requires_human=True, reason=reason)
    return EscalationVerdict(requires_human=False, reason=NONE)


class EscalationClassifier:
    """Decides whether a conversation must be routed to a human"""

    def __init__(self, db: Session, min_confidence: float = AI_MIN_CLASSIFIER_CONFIDENCE):
        self.db = db
        self.rules = escalation_rules(min_confidence)

    def classify(self, conversation_id: str) -> EscalationVerdict:
        """Raises ConversationNotFound for an unknown conversation"""
        ctx = load_conversation_context(self.db, conversation_id)
        verdict = classify_context(ctx, self.rules)
        if verdict.requires_human:
            logger.info(f"🙋 Conversation {conversation_id} requires a human: {verdict.reason}")
        return verdict
