"""Draft router - Draft storage and human-approved sending"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...database import get_db
from ..conversations.access import get_accessible_conversation, get_accessible_message
from .schemas import DraftCreate, DraftResponse, SendDraftResponse
from .service import DraftService, draft_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Drafts"])


def get_draft_service(db: Session = Depends(get_db)) -> DraftService:
    """Dependency injection for DraftService"""
    return DraftService(db)


@router.post("/messages/{message_id}/draft", response_model=DraftResponse)
async def create_message_draft(
    message_id: str,
    data: DraftCreate,
    actor: Actor = Depends(get_current_actor),
    service: DraftService = Depends(get_draft_service),
):
    """Store the automation draft for a message (first draft wins)"""
    get_accessible_message(service.db, message_id, actor)
    draft = service.create_draft(message_id, data.text, data.model)
    return DraftResponse(**draft_to_dict(draft))


@router.get("/messages/{message_id}/draft", response_model=DraftResponse)
async def get_message_draft(
    message_id: str,
    actor: Actor = Depends(get_current_actor),
    service: DraftService = Depends(get_draft_service),
):
    get_accessible_message(service.db, message_id, actor)
    draft = service.get_draft(message_id)
    if draft is None:
        raise HTTPException(status_code=404, detail="No draft for this message")
    return DraftResponse(**draft_to_dict(draft))


@router.post("/conversations/{conversation_id}/send-ai-draft", response_model=SendDraftResponse)
async def send_ai_draft(
    conversation_id: str,
    actor: Actor = Depends(get_current_actor),
    service: DraftService = Depends(get_draft_service),
):
    """Approve and send the conversation's pending draft"""
    get_accessible_conversation(service.db, conversation_id, actor)
    sent = service.send_approved(conversation_id, approved_by=actor.id, actor_type=actor.audit_actor_type)
    return SendDraftResponse(conversation_id=conversation_id, message_id=sent.message_id, text=sent.text)
