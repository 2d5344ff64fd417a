"""Confirmation router - Idempotent booking confirmation endpoint"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor, get_current_instructor_id
from ...database import get_db
from .schemas import BookingConfirmRequest, BookingConfirmResponse
from .service import BookingConfirmationService

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_confirmation_service(db: Session = Depends(get_db)) -> BookingConfirmationService:
    """Dependency injection for BookingConfirmationService"""
    return BookingConfirmationService(db)


@router.post("/confirm", response_model=BookingConfirmResponse)
async def confirm_booking(
    data: BookingConfirmRequest,
    response: Response,
    actor: Actor = Depends(get_current_actor),
    instructor_id: str = Depends(get_current_instructor_id),
    service: BookingConfirmationService = Depends(get_confirmation_service),
):
    """Create the booking once; retries with the same request_id return it again"""
    result = service.confirm(instructor_id, data.request_id, data.booking_fields(), actor_id=actor.id)
    response.status_code = 200 if result.already_confirmed else 201
    return BookingConfirmResponse(booking_id=result.booking_id, already_confirmed=result.already_confirmed)
