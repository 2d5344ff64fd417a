"""Booking domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

BookingStatus = Literal[
    "draft", "pending", "confirmed", "modified", "declined", "cancelled", "expired", "completed"
]


class BookingCreate(BaseModel):
    """Schema for creating a booking; new bookings start in draft or pending"""

    customer_ref: Optional[str] = None
    customer_name: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: Literal["draft", "pending"] = "draft"
    calendar_event_id: Optional[str] = None
    payment_reference: Optional[str] = None
    conversation_id: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def validate_time_range(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class BookingTransitionRequest(BaseModel):
    status: BookingStatus
    reason: Optional[str] = Field(None, max_length=500)


class BookingResponse(BaseModel):
    id: str
    instructor_id: str
    customer_ref: Optional[str] = None
    customer_name: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: str
    calendar_event_id: Optional[str] = None
    payment_reference: Optional[str] = None
    conversation_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookingAuditResponse(BaseModel):
    id: int
    booking_id: str
    previous_state: Optional[str] = None
    new_state: Optional[str] = None
    event_type: Optional[str] = None
    actor: str
    actor_id: Optional[str] = None
    reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class LifecycleEventResponse(BaseModel):
    type: str
    actor: str
    from_state: Optional[str] = None
    to_state: Optional[str] = None
    timestamp: datetime
    reason: Optional[str] = None

    class Config:
        from_attributes = True


class BookingLifecycleResponse(BaseModel):
    booking_id: str
    events: list[LifecycleEventResponse]
