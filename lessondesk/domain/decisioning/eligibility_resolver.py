"""
Draft eligibility resolver.

Gives UI and API consumers one stable vocabulary for what to show next to a
message. It mirrors the escalation gate and adds an explanation key; it takes
no decisions of its own.
"""

from typing import NamedTuple, Optional

from .gate import gate
from .policy import DecisionType, parse_decision, parse_reason

DECISION_MISSING = "DECISION_MISSING"

EXPLANATION_KEYS = {
    DecisionType.IGNORE: "IGNORED_LOW_RELEVANCE",
    DecisionType.ESCALATE_ONLY: "ESCALATED_LOW_INTENT",
    DecisionType.DRAFT_AND_ESCALATE: "DRAFT_AVAILABLE_NEEDS_REVIEW",
    DecisionType.DRAFT_ONLY: "DRAFT_AVAILABLE",
}


class DraftEligibility(NamedTuple):
    show_draft_section: bool
    show_escalation_banner: bool
    explanation_key: str


_MISSING = DraftEligibility(False, False, DECISION_MISSING)


def resolve_draft_eligibility(decision=None, reason=None) -> DraftEligibility:
    """Missing or unrecognized decision/reason resolves to DECISION_MISSING"""
    parsed_decision: Optional[DecisionType] = parse_decision(decision) if decision else None
    parsed_reason = parse_reason(reason) if reason else None
    if parsed_decision is None or parsed_reason is None:
        return _MISSING

    permissions = gate(parsed_decision)
    return DraftEligibility(
        show_draft_section=permissions.allow_draft,
        show_escalation_banner=permissions.require_escalation,
        explanation_key=EXPLANATION_KEYS[parsed_decision],
    )
