"""Confidence decision engine - maps two confidence scores to a decision"""

from dataclasses import dataclass

from .policy import (
    INTENT_MIN_DRAFT,
    INTENT_MIN_NO_ESCALATION,
    RELEVANCE_MIN,
    DecisionType,
    ReasonCode,
)


@dataclass(frozen=True)
class DecisionSnapshot:
    """The decision taken for one inbound message"""

    relevance_confidence: float
    intent_confidence: float
    decision: DecisionType
    reason: ReasonCode


def decide(relevance_confidence: float, intent_confidence: float) -> DecisionSnapshot:
    """
    Decide what automation may do with a message.

    Evaluated in order, first match wins:
    - relevance < RELEVANCE_MIN → IGNORE / LOW_RELEVANCE
    - intent < INTENT_MIN_DRAFT → ESCALATE_ONLY / LOW_INTENT
    - intent < INTENT_MIN_NO_ESCALATION → DRAFT_AND_ESCALATE / MEDIUM_CONFIDENCE
    - otherwise → DRAFT_ONLY / HIGH_CONFIDENCE

    Thresholds are inclusive lower bounds: 0.70 relevance is relevant,
    0.75 intent may draft, 0.85 intent skips escalation.
    """
    if relevance_confidence < RELEVANCE_MIN:
        decision, reason = DecisionType.IGNORE, ReasonCode.LOW_RELEVANCE
    elif intent_confidence < INTENT_MIN_DRAFT:
        decision, reason = DecisionType.ESCALATE_ONLY, ReasonCode.LOW_INTENT
    elif intent_confidence < INTENT_MIN_NO_ESCALATION:
        decision, reason = DecisionType.DRAFT_AND_ESCALATE, ReasonCode.MEDIUM_CONFIDENCE
    else:
        decision, reason = DecisionType.DRAFT_ONLY, ReasonCode.HIGH_CONFIDENCE

    return DecisionSnapshot(
        relevance_confidence=relevance_confidence,
        intent_confidence=intent_confidence,
        decision=decision,
        reason=reason,
    )
