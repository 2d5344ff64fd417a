"""
Decisioning Domain

Pure functions that turn classifier confidence into automation permissions:
- policy: thresholds and the Decision / Reason vocabularies
- engine: decide(relevance, intent) -> DecisionSnapshot
- gate: decision -> (allow_draft, require_escalation)
- eligibility_resolver: decision + reason -> caller-facing visibility flags

No database access, no logging, no side effects. Unknown inputs fail closed.
"""
