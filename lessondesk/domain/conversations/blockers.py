"""Human-facing blocker tags combining eligibility and escalation verdicts"""

from typing import NamedTuple

from sqlalchemy.orm import Session

from . import eligibility, escalation
from .context import load_conversation_context
from .eligibility import AutomationEligibilityEvaluator, KillSwitch, evaluate_context
from .escalation import EscalationClassifier, classify_context

# Eligibility reasons that have a blocker tag; requires_human surfaces as the
# explicit escalation request that raised it
ELIGIBILITY_BLOCKERS = {
    eligibility.AI_DISABLED: "ai_disabled",
    eligibility.LOW_CONFIDENCE: "low_confidence",
    eligibility.REQUIRES_HUMAN: "explicit_request",
    eligibility.BOOKING_RISK: "booking_risk",
    eligibility.POLICY_BLOCK: "policy_block",
}
ESCALATION_BLOCKERS = {
    escalation.EXPLICIT_REQUEST: "explicit_request",
    escalation.LOW_CONFIDENCE: "low_confidence",
    escalation.NEGATIVE_SENTIMENT: "negative_sentiment",
    escalation.BOOKING_RISK: "booking_risk",
}


class DecisionBlockers(NamedTuple):
    eligible: bool
    blockers: list[str]


def build_decision_blockers(db: Session, conversation_id: str, kill_switch: KillSwitch) -> DecisionBlockers:
    """
    Eligibility plus the ordered, de-duplicated reasons automation is held back.
    Escalation tags come first, then the eligibility tag. An eligible
    conversation reports no blockers.
    """
    ctx = load_conversation_context(db, conversation_id)
    if not kill_switch(ctx.channel):
        return DecisionBlockers(eligible=False, blockers=["ai_disabled"])

    verdict = evaluate_context(ctx, AutomationEligibilityEvaluator(db, kill_switch).rules)
    if verdict.eligible:
        return DecisionBlockers(eligible=True, blockers=[])

    escalation_verdict = classify_context(ctx, EscalationClassifier(db).rules)

    blockers = []
    for tag in (
        ESCALATION_BLOCKERS.get(escalation_verdict.reason),
        ELIGIBILITY_BLOCKERS.get(verdict.reason),
    ):
        if tag and tag not in blockers:
            blockers.append(tag)
    return DecisionBlockers(eligible=False, blockers=blockers)
