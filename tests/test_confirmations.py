from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from lessondesk.domain.bookings import lifecycle
from lessondesk.domain.confirmations.repository import ConfirmationRepository
from lessondesk.domain.confirmations.service import BookingConfirmationService
from lessondesk.exceptions import ConfirmationConflict, ConversationNotFound
from lessondesk.models import Booking, BookingAudit, BookingConfirmationAudit, Conversation

from conftest import INSTRUCTOR_ID

FIELDS = {
    "customer_name": "Ana",
    "start_time": datetime(2024, 6, 7, 10, 0),
    "end_time": datetime(2024, 6, 7, 11, 0),
}


def test_first_confirmation_creates_draft_booking(db):
    result = BookingConfirmationService(db).confirm(INSTRUCTOR_ID, "req-1", FIELDS, actor_id="user-1")

    assert result.already_confirmed is False
    booking = db.query(Booking).filter(Booking.id == result.booking_id).one()
    assert booking.status == "draft"
    assert booking.customer_name == "Ana"

    entry = db.query(BookingAudit).filter(BookingAudit.booking_id == booking.id).one()
    assert entry.previous_state is None
    assert entry.new_state == "draft"
    assert entry.actor == "human"

    record = db.query(BookingConfirmationAudit).one()
    assert record.booking_id == booking.id
    assert record.draft_payload["start_time"] == "2024-06-07T10:00:00"


def test_replay_returns_same_booking_and_creates_nothing(db):
    service = BookingConfirmationService(db)

    first = service.confirm(INSTRUCTOR_ID, "req-1", FIELDS)
    second = service.confirm(INSTRUCTOR_ID, "req-1", {"customer_name": "Someone else"})

    assert second.booking_id == first.booking_id
    assert second.already_confirmed is True
    assert db.query(Booking).count() == 1


def test_request_ids_are_scoped_per_instructor(db):
    service = BookingConfirmationService(db)

    first = service.confirm(INSTRUCTOR_ID, "req-1", FIELDS)
    other = service.confirm("instructor-2", "req-1", FIELDS)

    assert other.booking_id != first.booking_id
    assert db.query(Booking).count() == 2


def test_concurrent_confirmation_returns_the_winner(db, monkeypatch):
    service = BookingConfirmationService(db)
    winner = service.confirm(INSTRUCTOR_ID, "req-1", FIELDS)

    real_get = ConfirmationRepository.get_confirmation
    calls = []

    def racing_get(session, instructor_id, request_id):
        calls.append(request_id)
        return None if len(calls) == 1 else real_get(session, instructor_id, request_id)

    monkeypatch.setattr(ConfirmationRepository, "get_confirmation", staticmethod(racing_get))

    result = service.confirm(INSTRUCTOR_ID, "req-1", FIELDS)

    assert result.booking_id == winner.booking_id
    assert result.already_confirmed is True
    assert db.query(Booking).count() == 1


def test_unresolvable_conflict_raises(db, monkeypatch):
    def failing_add(*args, **kwargs):
        raise IntegrityError("INSERT", {}, Exception("duplicate"))

    monkeypatch.setattr(ConfirmationRepository, "add_confirmation", staticmethod(failing_add))

    with pytest.raises(ConfirmationConflict):
        BookingConfirmationService(db).confirm(INSTRUCTOR_ID, "req-1", FIELDS)
    assert db.query(Booking).count() == 0


def test_confirmed_booking_lifecycle_starts_in_draft(db):
    result = BookingConfirmationService(db).confirm(INSTRUCTOR_ID, "req-1", FIELDS)

    events = lifecycle.project(db, result.booking_id)
    assert events[0].type == lifecycle.BOOKING_CREATED
    assert events[0].to_state == "draft"


def test_linked_conversation_must_belong_to_the_instructor(db):
    conversation = Conversation(channel="whatsapp", instructor_id="instructor-2")
    db.add(conversation)
    db.commit()

    with pytest.raises(ConversationNotFound):
        BookingConfirmationService(db).confirm(
            INSTRUCTOR_ID, "req-1", {**FIELDS, "conversation_id": conversation.id}
        )
    assert db.query(Booking).count() == 0
    assert db.query(BookingConfirmationAudit).count() == 0


def test_unknown_linked_conversation_is_not_a_conflict(db):
    with pytest.raises(ConversationNotFound):
        BookingConfirmationService(db).confirm(INSTRUCTOR_ID, "req-1", {**FIELDS, "conversation_id": "missing"})
    assert db.query(Booking).count() == 0


def test_owned_conversation_is_linked(db):
    conversation = Conversation(channel="whatsapp", instructor_id=INSTRUCTOR_ID)
    db.add(conversation)
    db.commit()

    result = BookingConfirmationService(db).confirm(
        INSTRUCTOR_ID, "req-1", {**FIELDS, "conversation_id": conversation.id}
    )

    booking = db.query(Booking).filter(Booking.id == result.booking_id).one()
    assert booking.conversation_id == conversation.id
