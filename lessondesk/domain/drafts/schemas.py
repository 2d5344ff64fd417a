"""Draft domain schemas - Pydantic models for drafts and approved sends"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class DraftCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=4096)
    model: Optional[str] = Field(None, max_length=100)


class DraftResponse(BaseModel):
    message_id: str
    conversation_id: str
    snapshot_id: Optional[str] = None
    text: str
    model: Optional[str] = None
    created_at: datetime


class SendDraftResponse(BaseModel):
    conversation_id: str
    message_id: str
    text: str


class QuotaProvision(BaseModel):
    channel: str
    period: date
    max_allowed: Optional[int] = Field(None, ge=0)


class QuotaResponse(BaseModel):
    channel: str
    period: date
    max_allowed: Optional[int] = None
    used: int

    class Config:
        from_attributes = True
