"""
Conversations Domain

Whether automation may take part in a conversation:
- ai_state: per-conversation automation state (ai_on / ai_suggestion_only /
  ai_paused_by_human) with audited writes and the can_suggest / can_send predicates
- eligibility: prioritized verdict on whether automation may respond
- escalation: prioritized verdict on whether a human must take over
- blockers: both verdicts combined into human-facing blocker tags
"""
