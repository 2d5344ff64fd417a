import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import Actor, require_admin
from ..database import get_db
from ..domain.audit.repository import AuditLogRepository
from ..domain.audit.schemas import AuditLogPage
from ..domain.drafts.repository import QuotaRepository
from ..domain.drafts.schemas import QuotaProvision, QuotaResponse
from ..feature_flags import FeatureFlagRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


class FeatureFlagUpdate(BaseModel):
    enabled: bool


class FeatureFlagResponse(BaseModel):
    key: str
    enabled: bool
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


@router.get("/audit-log", response_model=AuditLogPage)
async def list_audit_log(
    entity_type: Optional[str] = Query(None),
    entity_id: Optional[str] = Query(None),
    limit: int = Query(50),
    cursor: Optional[str] = Query(None),
    admin: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Audit log newest first; pass next_cursor back to page"""
    items, next_cursor = AuditLogRepository.list_audit_log(
        db, entity_type=entity_type, entity_id=entity_id, limit=limit, cursor=cursor
    )
    return AuditLogPage(items=items, next_cursor=next_cursor)


@router.get("/feature-flags", response_model=list[FeatureFlagResponse])
async def list_feature_flags(admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    return FeatureFlagRepository.list_flags(db)


@router.put("/feature-flags/{key}", response_model=FeatureFlagResponse)
async def set_feature_flag(
    key: str,
    data: FeatureFlagUpdate,
    admin: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Set a flag such as ai_enabled or ai_whatsapp_enabled"""
    try:
        previous = FeatureFlagRepository.get_flag(db, key)
        previous_enabled = previous.enabled if previous else None
        flag = FeatureFlagRepository.set_flag(db, key, data.enabled)
        AuditLogRepository.insert_audit_event(
            db,
            actor_type="admin",
            actor_id=admin.id,
            action="feature_flag_update",
            entity_type="feature_flag",
            entity_id=key,
            severity="warn" if not data.enabled else "info",
            payload={"previous": previous_enabled, "enabled": data.enabled},
        )
        db.commit()
    except Exception as e:
        logger.error(f"❌ Failed to set feature flag {key}: {str(e)}")
        db.rollback()
        raise

    db.refresh(flag)
    logger.info(f"🚩 Feature flag {key} set to {data.enabled} by {admin.id}")
    return flag


@router.post("/quotas", response_model=QuotaResponse)
async def provision_quota(
    data: QuotaProvision,
    admin: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Provision a channel's daily automation quota row"""
    try:
        quota = QuotaRepository.provision_quota(db, data.channel, data.period, data.max_allowed)
        db.commit()
    except Exception as e:
        logger.error(f"❌ Failed to provision quota for {data.channel} on {data.period}: {str(e)}")
        db.rollback()
        raise

    db.refresh(quota)
    logger.info(f"✅ Quota provisioned: {data.channel} {data.period} (max={data.max_allowed})")
    return quota
