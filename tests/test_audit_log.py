from datetime import datetime, timedelta

import pytest

from lessondesk.domain.audit.repository import AuditLogRepository, decode_cursor, encode_cursor
from lessondesk.models import AuditLog


def _seed(db, count, entity_id="conv-1"):
    base = datetime(2024, 5, 1, 12, 0, 0)
    for i in range(count):
        db.add(
            AuditLog(
                actor_type="system",
                action="ai_state_change",
                entity_type="conversation",
                entity_id=entity_id,
                created_at=base + timedelta(minutes=i),
            )
        )
    db.commit()


def test_insert_validates_actor_and_severity(db):
    with pytest.raises(ValueError):
        AuditLogRepository.insert_audit_event(db, actor_type="robot", action="x", entity_type="conversation")
    with pytest.raises(ValueError):
        AuditLogRepository.insert_audit_event(
            db, actor_type="system", action="x", entity_type="conversation", severity="fatal"
        )


def test_insert_does_not_commit(db):
    AuditLogRepository.insert_audit_event(db, actor_type="admin", action="x", entity_type="feature_flag")
    db.rollback()
    assert db.query(AuditLog).count() == 0


def test_pages_newest_first_without_overlap(db):
    _seed(db, 5)

    first, cursor = AuditLogRepository.list_audit_log(db, entity_type="conversation", limit=2)
    second, cursor2 = AuditLogRepository.list_audit_log(db, entity_type="conversation", limit=2, cursor=cursor)
    third, cursor3 = AuditLogRepository.list_audit_log(db, entity_type="conversation", limit=2, cursor=cursor2)

    timestamps = [row.created_at for row in first + second + third]
    assert timestamps == sorted(timestamps, reverse=True)
    assert len({row.id for row in first + second + third}) == 5
    assert cursor3 is None


def test_filters_by_entity(db):
    _seed(db, 2, entity_id="conv-1")
    _seed(db, 3, entity_id="conv-2")

    items, _ = AuditLogRepository.list_audit_log(db, entity_id="conv-2")
    assert len(items) == 3


def test_limit_is_clamped(db):
    _seed(db, 3)
    items, _ = AuditLogRepository.list_audit_log(db, limit=0)
    assert len(items) == 1


def test_cursor_round_trip_and_garbage():
    created_at = datetime(2024, 5, 1, 12, 30, 15)
    assert decode_cursor(encode_cursor(created_at, "abc")) == (created_at, "abc")
    assert decode_cursor("not-a-cursor") is None
    assert decode_cursor(None) is None
