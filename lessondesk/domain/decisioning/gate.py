"""Escalation gate - translates a decision into operational permissions"""

from typing import NamedTuple

from .policy import DecisionType, parse_decision


class GatePermissions(NamedTuple):
    allow_draft: bool
    require_escalation: bool


_PERMISSIONS = {
    DecisionType.IGNORE: GatePermissions(allow_draft=False, require_escalation=False),
    DecisionType.ESCALATE_ONLY: GatePermissions(allow_draft=False, require_escalation=True),
    DecisionType.DRAFT_AND_ESCALATE: GatePermissions(allow_draft=True, require_escalation=True),
    DecisionType.DRAFT_ONLY: GatePermissions(allow_draft=True, require_escalation=False),
}

# Unrecognized decisions get the IGNORE permissions, never more
FAIL_CLOSED = _PERMISSIONS[DecisionType.IGNORE]


def gate(decision) -> GatePermissions:
    """Returns (allow_draft, require_escalation) for a decision; never raises"""
    parsed = parse_decision(decision)
    if parsed is None:
        return FAIL_CLOSED
    return _PERMISSIONS[parsed]
