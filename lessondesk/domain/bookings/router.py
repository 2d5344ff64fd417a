"""Booking router - FastAPI endpoints for booking lifecycle operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor, get_current_instructor_id
from ...database import get_db
from .schemas import (
    BookingAuditResponse,
    BookingCreate,
    BookingLifecycleResponse,
    BookingResponse,
    BookingTransitionRequest,
    LifecycleEventResponse,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


@router.get("", response_model=list[BookingResponse])
async def list_bookings(
    instructor_id: str = Depends(get_current_instructor_id),
    service: BookingService = Depends(get_booking_service),
    status: Optional[str] = Query(None, description="Filter by booking status"),
):
    """List the current instructor's bookings"""
    return service.list_bookings(instructor_id, status)


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    instructor_id: str = Depends(get_current_instructor_id),
    service: BookingService = Depends(get_booking_service),
):
    """Create a booking in draft or pending"""
    return service.create_booking(instructor_id, data)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    instructor_id: str = Depends(get_current_instructor_id),
    service: BookingService = Depends(get_booking_service),
):
    """Get a booking (stale pending bookings are declined on read)"""
    return service.get_booking(booking_id, instructor_id)


@router.post("/{booking_id}/transition", response_model=BookingResponse)
async def transition_booking(
    booking_id: str,
    data: BookingTransitionRequest,
    actor: Actor = Depends(get_current_actor),
    instructor_id: str = Depends(get_current_instructor_id),
    service: BookingService = Depends(get_booking_service),
):
    """Request a booking state change"""
    return service.transition_booking(
        booking_id,
        instructor_id,
        data.status,
        actor="human",
        actor_id=actor.id,
        reason=data.reason,
    )


@router.get("/{booking_id}/lifecycle", response_model=BookingLifecycleResponse)
async def get_booking_lifecycle(
    booking_id: str,
    instructor_id: str = Depends(get_current_instructor_id),
    service: BookingService = Depends(get_booking_service),
):
    """Causal timeline of a booking"""
    events = service.get_lifecycle(booking_id, instructor_id)
    return BookingLifecycleResponse(
        booking_id=booking_id,
        events=[LifecycleEventResponse(**event.to_dict()) for event in events],
    )


@router.get("/{booking_id}/audit", response_model=list[BookingAuditResponse])
async def get_booking_audit(
    booking_id: str,
    instructor_id: str = Depends(get_current_instructor_id),
    service: BookingService = Depends(get_booking_service),
):
    """Raw audit entries of a booking"""
    return service.get_audit_entries(booking_id, instructor_id)
