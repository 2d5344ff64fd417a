"""
Confidence policy: thresholds and decision vocabularies.

RELEVANCE_MIN: minimum relevance confidence to consider a message at all
INTENT_MIN_DRAFT: minimum intent confidence to let automation draft a reply
INTENT_MIN_NO_ESCALATION: minimum intent confidence to skip human escalation
"""

from enum import Enum

RELEVANCE_MIN = 0.70
INTENT_MIN_DRAFT = 0.75
INTENT_MIN_NO_ESCALATION = 0.85


class DecisionType(str, Enum):
    IGNORE = "IGNORE"  # not relevant: no draft, no escalation
    ESCALATE_ONLY = "ESCALATE_ONLY"  # relevant but unclear intent: human only
    DRAFT_AND_ESCALATE = "DRAFT_AND_ESCALATE"  # draft for human review
    DRAFT_ONLY = "DRAFT_ONLY"  # draft, no escalation needed


class ReasonCode(str, Enum):
    LOW_RELEVANCE = "LOW_RELEVANCE"
    LOW_INTENT = "LOW_INTENT"
    MEDIUM_CONFIDENCE = "MEDIUM_CONFIDENCE"
    HIGH_CONFIDENCE = "HIGH_CONFIDENCE"


def parse_decision(value) -> "DecisionType | None":
    """Coerce a stored/raw decision value; None when unrecognized"""
    if isinstance(value, DecisionType):
        return value
    try:
        return DecisionType(value)
    except (ValueError, TypeError):
        return None


def parse_reason(value) -> "ReasonCode | None":
    if isinstance(value, ReasonCode):
        return value
    try:
        return ReasonCode(value)
    except (ValueError, TypeError):
        return None
