from typing import Literal, Optional

from pydantic import BaseModel

AIStateValue = Literal["ai_on", "ai_paused_by_human", "ai_suggestion_only"]


class AIStateResponse(BaseModel):
    conversation_id: str
    ai_state: AIStateValue


class AIStateUpdate(BaseModel):
    next_state: AIStateValue
    reason: Optional[str] = None


class AIStateChangeResponse(BaseModel):
    conversation_id: str
    previous_state: AIStateValue
    next_state: AIStateValue


class EligibilityResponse(BaseModel):
    conversation_id: str
    eligible: bool
    reason: str


class EscalationResponse(BaseModel):
    conversation_id: str
    requires_human: bool
    reason: str


class DecisionBlockersResponse(BaseModel):
    conversation_id: str
    eligible: bool
    blockers: list[str]
