"""Message domain schemas - Pydantic models for classifier input and decision output"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ClassifierOutput(BaseModel):
    """Already-resolved output of the upstream message classifier"""

    relevance_confidence: float = Field(..., ge=0.0, le=1.0)
    intent_confidence: float = Field(..., ge=0.0, le=1.0)
    intent: Optional[str] = None
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    escalation_required: Optional[bool] = None
    sentiment: Optional[str] = None
    sentiment_score: Optional[float] = Field(None, ge=-1.0, le=1.0)


class DecisionSnapshotResponse(BaseModel):
    id: str
    message_id: str
    conversation_id: str
    relevance_confidence: float
    intent_confidence: float
    intent: Optional[str] = None
    decision: str
    reason: str
    allow_draft: bool
    require_escalation: bool
    created_at: datetime

    class Config:
        from_attributes = True


class DraftEligibilityResponse(BaseModel):
    message_id: str
    show_draft_section: bool
    show_escalation_banner: bool
    explanation_key: str
