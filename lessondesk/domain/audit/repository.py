"""Audit repository - Append-only writes and cursor reads for audit_log"""

import base64
import json
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ...models import AuditLog

logger = logging.getLogger(__name__)

ACTOR_TYPES = ("admin", "system", "instructor")
SEVERITIES = ("info", "warn", "error")
MAX_PAGE_SIZE = 100


def encode_cursor(created_at: datetime, row_id: str) -> str:
    raw = json.dumps({"created_at": created_at.isoformat(), "id": row_id})
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: Optional[str]) -> Optional[tuple[datetime, str]]:
    """Returns (created_at, id) or None; an unreadable cursor restarts from the newest row"""
    if not cursor:
        return None
    try:
        decoded = json.loads(base64.b64decode(cursor.encode("ascii")).decode("utf-8"))
        return datetime.fromisoformat(decoded["created_at"]), decoded["id"]
    except (ValueError, KeyError, TypeError) as e:
        logger.warning(f"⚠️ Ignoring invalid audit cursor: {e}")
        return None


class AuditLogRepository:
    """Repository for audit_log database operations"""

    @staticmethod
    def insert_audit_event(
        db: Session,
        actor_type: str,
        action: str,
        entity_type: str,
        entity_id: Optional[str] = None,
        actor_id: Optional[str] = None,
        severity: str = "info",
        request_id: Optional[str] = None,
        payload: Optional[dict] = None,
    ) -> AuditLog:
        """
        Insert one audit row inside the caller's transaction.
        Flushes but never commits; the caller owns the unit of work.
        """
        if actor_type not in ACTOR_TYPES:
            raise ValueError(f"Unknown audit actor_type: {actor_type}")
        if severity not in SEVERITIES:
            raise ValueError(f"Unknown audit severity: {severity}")

        event = AuditLog(
            actor_type=actor_type,
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            severity=severity,
            request_id=request_id,
            payload=payload,
        )
        db.add(event)
        db.flush()
        return event

    @staticmethod
    def record_secondary_event(db: Session, **event) -> Optional[AuditLog]:
        """
        Insert an audit row that must not undo the primary action on failure.

        Runs in a SAVEPOINT so a failed insert only rolls back itself.
        Failures are logged and swallowed.
        """
        try:
            with db.begin_nested():
                return AuditLogRepository.insert_audit_event(db, **event)
        except Exception as e:
            logger.error(
                f"❌ Secondary audit write failed for {event.get('action')} "
                f"on {event.get('entity_type')}:{event.get('entity_id')}: {e}"
            )
            logger.exception(e)
            return None

    @staticmethod
    def list_audit_log(
        db: Session,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        limit: int = 50,
        cursor: Optional[str] = None,
    ) -> tuple[list[AuditLog], Optional[str]]:
        """List audit rows newest first. Returns (items, next_cursor)"""
        safe_limit = min(max(1, limit), MAX_PAGE_SIZE)

        query = db.query(AuditLog)
        if entity_type:
            query = query.filter(AuditLog.entity_type == entity_type)
        if entity_id:
            query = query.filter(AuditLog.entity_id == entity_id)

        position = decode_cursor(cursor)
        if position:
            cursor_created_at, cursor_id = position
            query = query.filter(
                or_(
                    AuditLog.created_at < cursor_created_at,
                    and_(AuditLog.created_at == cursor_created_at, AuditLog.id < cursor_id),
                )
            )

        rows = (
            query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .limit(safe_limit + 1)
            .all()
        )

        has_more = len(rows) > safe_limit
        items = rows[:safe_limit]
        next_cursor = None
        if has_more and items:
            last = items[-1]
            next_cursor = encode_cursor(last.created_at, last.id)

        return items, next_cursor
