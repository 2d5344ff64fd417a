"""Confirmation schemas - Pydantic models for confirming a drafted booking"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class BookingConfirmRequest(BaseModel):
    """Booking fields from the draft; request_id is chosen by the client and reused on retry"""

    request_id: str = Field(..., min_length=1, max_length=255)
    customer_ref: Optional[str] = None
    customer_name: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    conversation_id: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def validate_time_range(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    def booking_fields(self) -> dict:
        return self.model_dump(exclude={"request_id"})


class BookingConfirmResponse(BaseModel):
    booking_id: str
    already_confirmed: bool
