"""Audit domain schemas - Pydantic models for audit responses"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class AuditLogEntryResponse(BaseModel):
    id: str
    created_at: datetime
    actor_type: str
    actor_id: Optional[str] = None
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    severity: str
    request_id: Optional[str] = None
    payload: Optional[dict[str, Any]] = None

    class Config:
        from_attributes = True


class AuditLogPage(BaseModel):
    items: list[AuditLogEntryResponse]
    next_cursor: Optional[str] = None
