import logging
from datetime import datetime, timedelta

from lessondesk.domain.drafts.repository import DraftRepository, QuotaRepository
from lessondesk.domain.drafts.service import DraftService
from lessondesk.feature_flags import FeatureFlagRepository
from lessondesk.models import AIDecisionSnapshot, AuditLog, Booking, Conversation

OTHER_INSTRUCTOR = "instructor-other"


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_requests_are_logged_with_status_and_duration(client, caplog):
    with caplog.at_level(logging.INFO, logger="lessondesk.main"):
        client.get("/health")

    lines = [record.getMessage() for record in caplog.records if record.name == "lessondesk.main"]
    assert any(line.startswith("GET /health - 200 (") and line.endswith("s)") for line in lines)


class TestBookingRoutes:
    def test_create_and_transition(self, client):
        created = client.post("/bookings", json={"status": "pending", "customer_name": "Ana"})
        assert created.status_code == 201
        booking_id = created.json()["id"]

        moved = client.post(f"/bookings/{booking_id}/transition", json={"status": "confirmed"})
        assert moved.status_code == 200
        assert moved.json()["status"] == "confirmed"

        audit = client.get(f"/bookings/{booking_id}/audit").json()
        assert [(row["previous_state"], row["new_state"]) for row in audit] == [("pending", "confirmed")]

    def test_invalid_transition_maps_to_409(self, client, make_booking):
        booking = make_booking(status="confirmed")

        response = client.post(f"/bookings/{booking.id}/transition", json={"status": "draft"})

        assert response.status_code == 409
        assert response.json()["ok"] is False
        assert response.json()["error"] == "INVALID_BOOKING_TRANSITION"

    def test_missing_booking_maps_to_404(self, client):
        response = client.get("/bookings/missing")
        assert response.status_code == 404
        assert response.json()["error"] == "BOOKING_NOT_FOUND"

    def test_cannot_create_confirmed_booking(self, client):
        assert client.post("/bookings", json={"status": "confirmed"}).status_code == 422

    def test_cannot_link_a_foreign_conversation(self, client, db, make_conversation):
        conversation = make_conversation(instructor_id=OTHER_INSTRUCTOR)

        response = client.post("/bookings", json={"status": "draft", "conversation_id": conversation.id})

        assert response.status_code == 404
        assert response.json()["error"] == "CONVERSATION_NOT_FOUND"
        assert db.query(Booking).count() == 0

    def test_stale_pending_is_declined_on_read(self, client, make_booking):
        booking = make_booking(status="pending", created_at=datetime.utcnow() - timedelta(hours=25))
        assert client.get(f"/bookings/{booking.id}").json()["status"] == "declined"

    def test_lifecycle(self, client, make_booking):
        booking = make_booking(status="pending")
        client.post(f"/bookings/{booking.id}/transition", json={"status": "cancelled", "reason": "rain"})

        body = client.get(f"/bookings/{booking.id}/lifecycle").json()
        assert body["booking_id"] == booking.id
        assert [event["type"] for event in body["events"]] == ["booking_created", "manual_override"]
        assert body["events"][1]["reason"] == "rain"


class TestConfirmRoute:
    def test_confirm_is_idempotent(self, client, db):
        payload = {"request_id": "tap-1", "customer_name": "Ana"}

        first = client.post("/bookings/confirm", json=payload)
        second = client.post("/bookings/confirm", json={**payload, "customer_name": "Bob"})

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.json()["booking_id"] == second.json()["booking_id"]
        assert second.json()["already_confirmed"] is True
        assert db.query(Booking).count() == 1

    def test_confirm_rejects_a_foreign_conversation(self, client, db, make_conversation):
        conversation = make_conversation(instructor_id=OTHER_INSTRUCTOR)

        response = client.post("/bookings/confirm", json={"request_id": "tap-1", "conversation_id": conversation.id})

        assert response.status_code == 404
        assert response.json()["error"] == "CONVERSATION_NOT_FOUND"
        assert db.query(Booking).count() == 0


class TestConversationRoutes:
    def test_ai_state_round_trip(self, client, make_conversation):
        conversation = make_conversation()

        response = client.post(
            f"/conversations/{conversation.id}/ai-state",
            json={"next_state": "ai_suggestion_only", "reason": "new staff"},
        )
        assert response.status_code == 200
        assert response.json()["previous_state"] == "ai_on"

        current = client.get(f"/conversations/{conversation.id}/ai-state").json()
        assert current["ai_state"] == "ai_suggestion_only"

    def test_unknown_ai_state_is_rejected(self, client, make_conversation):
        conversation = make_conversation()
        response = client.post(f"/conversations/{conversation.id}/ai-state", json={"next_state": "turbo"})
        assert response.status_code == 422

    def test_eligibility_uses_feature_flags(self, client, db, make_conversation, make_message):
        conversation = make_conversation()
        make_message(conversation, confidence=0.9)

        disabled = client.get(f"/conversations/{conversation.id}/eligibility").json()
        assert disabled == {"conversation_id": conversation.id, "eligible": False, "reason": "ai_disabled"}

        FeatureFlagRepository.set_flag(db, "ai_whatsapp_enabled", True)
        db.commit()
        enabled = client.get(f"/conversations/{conversation.id}/eligibility").json()
        assert enabled["eligible"] is True

    def test_escalation(self, client, make_conversation, make_message):
        conversation = make_conversation()
        make_message(conversation, intent="human_request", confidence=0.9)

        body = client.get(f"/conversations/{conversation.id}/escalation").json()
        assert body["requires_human"] is True
        assert body["reason"] == "explicit_request"

    def test_decision_snapshot(self, client, make_conversation):
        conversation = make_conversation()
        body = client.get(f"/conversations/{conversation.id}/decision-snapshot").json()
        assert body["blockers"] == ["ai_disabled"]

    def test_unknown_conversation_maps_to_404(self, client):
        response = client.get("/conversations/missing/escalation")
        assert response.status_code == 404
        assert response.json()["error"] == "CONVERSATION_NOT_FOUND"


class TestMessageAndDraftRoutes:
    def test_classify_draft_and_send(self, client, db, make_conversation, make_message):
        conversation = make_conversation()
        message = make_message(conversation)
        QuotaRepository.provision_quota(db, "whatsapp", datetime.utcnow().date())
        db.commit()

        decision = client.post(
            f"/messages/{message.id}/classification",
            json={"relevance_confidence": 0.9, "intent_confidence": 0.8},
        ).json()
        assert decision["decision"] == "DRAFT_AND_ESCALATE"

        eligibility = client.get(f"/messages/{message.id}/draft-eligibility").json()
        assert eligibility["show_draft_section"] is True
        assert eligibility["explanation_key"] == "DRAFT_AVAILABLE_NEEDS_REVIEW"

        draft = client.post(f"/messages/{message.id}/draft", json={"text": "Friday works!", "model": "m1"})
        assert draft.status_code == 200
        assert client.get(f"/messages/{message.id}/draft").json()["text"] == "Friday works!"

        sent = client.post(f"/conversations/{conversation.id}/send-ai-draft")
        assert sent.status_code == 200
        assert sent.json()["text"] == "Friday works!"

        assert client.post(f"/conversations/{conversation.id}/send-ai-draft").status_code == 404

    def test_classification_rejects_out_of_range_confidence(self, client, make_conversation, make_message):
        conversation = make_conversation()
        message = make_message(conversation)
        response = client.post(
            f"/messages/{message.id}/classification",
            json={"relevance_confidence": 1.5, "intent_confidence": 0.8},
        )
        assert response.status_code == 422

    def test_missing_quota_maps_to_500(self, client, db, make_conversation, make_message):
        conversation = make_conversation()
        message = make_message(conversation)
        DraftService(db).insert_once(message.id, None, "hello", None)

        response = client.post(f"/conversations/{conversation.id}/send-ai-draft")
        assert response.status_code == 500
        assert response.json()["error"] == "QUOTA_ROW_MISSING"

    def test_draft_refused_maps_to_409(self, client, make_conversation, make_message):
        conversation = make_conversation()
        message = make_message(conversation)
        response = client.post(f"/messages/{message.id}/draft", json={"text": "hello"})
        assert response.status_code == 409
        assert response.json()["error"] == "AUTOMATION_NOT_PERMITTED"


class TestAdminRoutes:
    def test_requires_admin(self, client):
        assert client.get("/admin/audit-log").status_code == 403

    def test_set_flag_writes_audit_event(self, admin_client, db):
        response = admin_client.put("/admin/feature-flags/ai_whatsapp_enabled", json={"enabled": True})
        assert response.status_code == 200
        assert response.json()["enabled"] is True

        event = db.query(AuditLog).filter(AuditLog.action == "feature_flag_update").one()
        assert event.actor_type == "admin"
        assert event.payload == {"previous": None, "enabled": True}

        page = admin_client.get("/admin/audit-log", params={"entity_type": "feature_flag"}).json()
        assert len(page["items"]) == 1
        assert page["next_cursor"] is None

    def test_provision_quota(self, admin_client):
        response = admin_client.post(
            "/admin/quotas", json={"channel": "whatsapp", "period": "2024-05-01", "max_allowed": 50}
        )
        assert response.status_code == 200
        assert response.json()["used"] == 0


class TestConversationOwnership:
    def test_foreign_ai_state_is_hidden(self, client, db, make_conversation):
        conversation = make_conversation(instructor_id=OTHER_INSTRUCTOR)

        read = client.get(f"/conversations/{conversation.id}/ai-state")
        write = client.post(f"/conversations/{conversation.id}/ai-state", json={"next_state": "ai_paused"})

        assert read.status_code == 404
        assert write.status_code == 404
        assert write.json()["error"] == "CONVERSATION_NOT_FOUND"
        db.expire_all()
        assert db.query(Conversation).filter(Conversation.id == conversation.id).one().ai_state is None
        assert db.query(AuditLog).count() == 0

    def test_foreign_verdicts_are_hidden(self, client, make_conversation, make_message):
        conversation = make_conversation(instructor_id=OTHER_INSTRUCTOR)
        make_message(conversation, intent="human_request", confidence=0.9)

        for path in ("eligibility", "escalation", "decision-snapshot"):
            response = client.get(f"/conversations/{conversation.id}/{path}")
            assert response.status_code == 404
            assert response.json()["error"] == "CONVERSATION_NOT_FOUND"

    def test_foreign_draft_cannot_be_sent(self, client, db, make_conversation, make_message):
        conversation = make_conversation(instructor_id=OTHER_INSTRUCTOR)
        message = make_message(conversation)
        DraftService(db).insert_once(message.id, None, "hello", None)
        QuotaRepository.provision_quota(db, "whatsapp", datetime.utcnow().date())
        db.commit()

        response = client.post(f"/conversations/{conversation.id}/send-ai-draft")

        assert response.status_code == 404
        assert response.json()["error"] == "CONVERSATION_NOT_FOUND"
        assert DraftRepository.get_draft(db, message.id) is not None

    def test_foreign_message_draft_is_hidden(self, client, db, make_conversation, make_message):
        conversation = make_conversation(instructor_id=OTHER_INSTRUCTOR)
        message = make_message(conversation)
        DraftService(db).insert_once(message.id, None, "hello", None)

        read = client.get(f"/messages/{message.id}/draft")
        write = client.post(f"/messages/{message.id}/draft", json={"text": "mine now"})

        assert read.status_code == 404
        assert write.status_code == 404
        assert write.json()["error"] == "MESSAGE_NOT_FOUND"
        assert DraftRepository.get_draft(db, message.id).value["text"] == "hello"

    def test_foreign_classification_is_hidden(self, client, db, make_conversation, make_message):
        conversation = make_conversation(instructor_id=OTHER_INSTRUCTOR)
        message = make_message(conversation)

        write = client.post(
            f"/messages/{message.id}/classification",
            json={"relevance_confidence": 0.9, "intent_confidence": 0.8},
        )
        read = client.get(f"/messages/{message.id}/classification")
        eligibility = client.get(f"/messages/{message.id}/draft-eligibility")

        assert write.status_code == 404
        assert write.json()["error"] == "MESSAGE_NOT_FOUND"
        assert read.status_code == 404
        assert eligibility.status_code == 404
        assert db.query(AIDecisionSnapshot).count() == 0

    def test_admin_can_act_on_any_conversation(self, admin_client, db, make_conversation):
        conversation = make_conversation(instructor_id=OTHER_INSTRUCTOR)

        response = admin_client.post(
            f"/conversations/{conversation.id}/ai-state", json={"next_state": "ai_paused", "reason": "abuse"}
        )

        assert response.status_code == 200
        event = db.query(AuditLog).filter(AuditLog.action == "ai_state_change").one()
        assert event.actor_type == "admin"
        assert event.payload["actor_type"] == "admin"

    def test_send_records_the_caller_actor_type(self, admin_client, db, make_conversation, make_message):
        conversation = make_conversation(instructor_id=OTHER_INSTRUCTOR)
        message = make_message(conversation)
        DraftService(db).insert_once(message.id, None, "hello", None)
        QuotaRepository.provision_quota(db, "whatsapp", datetime.utcnow().date())
        db.commit()

        assert admin_client.post(f"/conversations/{conversation.id}/send-ai-draft").status_code == 200

        event = db.query(AuditLog).filter(AuditLog.action == "ai_draft_sent").one()
        assert event.actor_type == "admin"
        assert event.actor_id == "admin-1"
