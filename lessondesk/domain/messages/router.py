"""Message router - Classifier intake and decision endpoints"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...database import get_db
from ..conversations.access import get_accessible_message
from .schemas import ClassifierOutput, DecisionSnapshotResponse, DraftEligibilityResponse
from .service import InboundDecisionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["Messages"])


def get_inbound_decision_service(db: Session = Depends(get_db)) -> InboundDecisionService:
    """Dependency injection for InboundDecisionService"""
    return InboundDecisionService(db)


@router.post("/{message_id}/classification", response_model=DecisionSnapshotResponse)
async def record_message_classification(
    message_id: str,
    data: ClassifierOutput,
    actor: Actor = Depends(get_current_actor),
    service: InboundDecisionService = Depends(get_inbound_decision_service),
):
    """Record classifier output and return the decision taken (idempotent per message)"""
    get_accessible_message(service.db, message_id, actor)
    return service.record_classification(message_id, data)


@router.get("/{message_id}/classification", response_model=DecisionSnapshotResponse)
async def get_message_decision(
    message_id: str,
    actor: Actor = Depends(get_current_actor),
    service: InboundDecisionService = Depends(get_inbound_decision_service),
):
    get_accessible_message(service.db, message_id, actor)
    snapshot = service.get_snapshot(message_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="No decision recorded for this message")
    return snapshot


@router.get("/{message_id}/draft-eligibility", response_model=DraftEligibilityResponse)
async def get_message_draft_eligibility(
    message_id: str,
    actor: Actor = Depends(get_current_actor),
    service: InboundDecisionService = Depends(get_inbound_decision_service),
):
    get_accessible_message(service.db, message_id, actor)
    eligibility = service.get_draft_eligibility(message_id)
    return DraftEligibilityResponse(message_id=message_id, **eligibility._asdict())
