"""
Automation response eligibility.

Rules are evaluated in priority order and the first match wins, so operators
see the most actionable cause first (a kill-switched, low-confidence
conversation reports ai_disabled):

1. ai_disabled     - the channel's kill-switch is off
2. low_confidence  - latest inbound classifier confidence below threshold
3. requires_human  - latest inbound message flagged escalation_required
4. booking_risk    - a linked booking has left draft
5. policy_block    - channel not in the allowed channel set
otherwise eligible with reason ok.
"""

import logging
from typing import Callable, Iterable, NamedTuple, Optional

from sqlalchemy.orm import Session

from ...config import AI_ALLOWED_CHANNELS, AI_MIN_CLASSIFIER_CONFIDENCE
from .context import ConversationContext, load_conversation_context

logger = logging.getLogger(__name__)

KillSwitch = Callable[[str], bool]  # channel -> automation enabled

AI_DISABLED = "ai_disabled"
LOW_CONFIDENCE = "low_confidence"
REQUIRES_HUMAN = "requires_human"
BOOKING_RISK = "booking_risk"
POLICY_BLOCK = "policy_block"
OK = "ok"


class EligibilityVerdict(NamedTuple):
    eligible: bool
    reason: str


def eligibility_rules(
    kill_switch: KillSwitch,
    allowed_channels: Iterable[str],
    min_confidence: float,
) -> list[tuple[str, Callable[[ConversationContext], bool]]]:
    """Ordered (reason, predicate) pairs; a predicate returning True blocks automation"""
    allowed = frozenset(allowed_channels)
    return [
        (AI_DISABLED, lambda ctx: not kill_switch(ctx.channel)),
        (LOW_CONFIDENCE, lambda ctx: ctx.confidence is not None and ctx.confidence < min_confidence),
        (REQUIRES_HUMAN, lambda ctx: ctx.escalation_required is True),
        (BOOKING_RISK, lambda ctx: ctx.booking_status is not None and ctx.booking_status != "draft"),
        (POLICY_BLOCK, lambda ctx: ctx.channel not in allowed),
    ]


def evaluate_context(
    ctx: ConversationContext,
    rules: list[tuple[str, Callable[[ConversationContext], bool]]],
) -> EligibilityVerdict:
    for reason, blocks in rules:
        if blocks(ctx):
            return EligibilityVerdict(eligible=False, reason=reason)
    return EligibilityVerdict(eligible=True, reason=OK)


class AutomationEligibilityEvaluator:
    """Evaluates whether automation may respond in a conversation"""

    def __init__(
        self,
        db: Session,
        kill_switch: KillSwitch,
        allowed_channels: Optional[Iterable[str]] = None,
        min_confidence: float = AI_MIN_CLASSIFIER_CONFIDENCE,
    ):
        self.db = db
        self.rules = eligibility_rules(
            kill_switch,
            AI_ALLOWED_CHANNELS if allowed_channels is None else allowed_channels,
            min_confidence,
        )

    def evaluate(self, conversation_id: str) -> EligibilityVerdict:
        """Raises ConversationNotFound for an unknown conversation"""
        ctx = load_conversation_context(self.db, conversation_id)
        verdict = evaluate_context(ctx, self.rules)
        logger.debug(f"Eligibility for conversation {conversation_id}: {verdict}")
        return verdict
