"""Conversation router - Automation state and verdict endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...database import get_db
from ...feature_flags import database_kill_switch
from . import ai_state
from .access import get_accessible_conversation
from .blockers import build_decision_blockers
from .eligibility import AutomationEligibilityEvaluator
from .escalation import EscalationClassifier
from .schemas import (
    AIStateChangeResponse,
    AIStateResponse,
    AIStateUpdate,
    DecisionBlockersResponse,
    EligibilityResponse,
    EscalationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["Conversations"])


def get_kill_switch(db: Session = Depends(get_db)):
    """Dependency injection for the channel kill-switch lookup"""
    return database_kill_switch(db)


@router.get("/{conversation_id}/ai-state", response_model=AIStateResponse)
async def get_conversation_ai_state(
    conversation_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    conversation = get_accessible_conversation(db, conversation_id, actor)
    return AIStateResponse(
        conversation_id=conversation_id,
        ai_state=ai_state.normalize_ai_state(conversation.ai_state),
    )


@router.post("/{conversation_id}/ai-state", response_model=AIStateChangeResponse)
async def set_conversation_ai_state(
    conversation_id: str,
    data: AIStateUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
    x_request_id: Optional[str] = Header(None),
):
    """Pause, restrict or resume automation in a conversation"""
    get_accessible_conversation(db, conversation_id, actor)
    change = ai_state.set_ai_state(
        db,
        conversation_id,
        data.next_state,
        actor_type=actor.ai_state_actor_type,
        reason=data.reason,
        actor_id=actor.id,
        request_id=x_request_id,
    )
    return AIStateChangeResponse(
        conversation_id=conversation_id,
        previous_state=change.previous_state,
        next_state=change.next_state,
    )


@router.get("/{conversation_id}/eligibility", response_model=EligibilityResponse)
async def get_conversation_eligibility(
    conversation_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
    kill_switch=Depends(get_kill_switch),
):
    get_accessible_conversation(db, conversation_id, actor)
    verdict = AutomationEligibilityEvaluator(db, kill_switch).evaluate(conversation_id)
    return EligibilityResponse(conversation_id=conversation_id, eligible=verdict.eligible, reason=verdict.reason)


@router.get("/{conversation_id}/escalation", response_model=EscalationResponse)
async def get_conversation_escalation(
    conversation_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    get_accessible_conversation(db, conversation_id, actor)
    verdict = EscalationClassifier(db).classify(conversation_id)
    return EscalationResponse(
        conversation_id=conversation_id,
        requires_human=verdict.requires_human,
        reason=verdict.reason,
    )


@router.get("/{conversation_id}/decision-snapshot", response_model=DecisionBlockersResponse)
async def get_conversation_decision_snapshot(
    conversation_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
    kill_switch=Depends(get_kill_switch),
):
    """Eligibility with the tags shown to operators in the inbox"""
    get_accessible_conversation(db, conversation_id, actor)
    result = build_decision_blockers(db, conversation_id, kill_switch)
    return DecisionBlockersResponse(conversation_id=conversation_id, eligible=result.eligible, blockers=result.blockers)
