"""Pytest configuration: in-memory database, app client and data factories."""

import os
from datetime import datetime

# Configure before lessondesk.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["AI_ALLOWED_CHANNELS"] = "whatsapp"
os.environ["AI_ENABLED_DEFAULT"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lessondesk import models
from lessondesk.auth import Actor, get_current_actor
from lessondesk.database import Base, configure_sqlite_transactions, get_db
from lessondesk.domain.conversations.repository import INTENT_CLASSIFICATION_KEY
from lessondesk.main import app

INSTRUCTOR_ID = "instructor-1"

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
configure_sqlite_transactions(test_engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def instructor():
    return Actor(id=INSTRUCTOR_ID, role="instructor", instructor_id=INSTRUCTOR_ID)


@pytest.fixture
def admin():
    return Actor(id="admin-1", role="admin")


def _client_for(db, actor):
    def override_get_db():
        yield db

    async def override_get_current_actor():
        return actor

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_actor] = override_get_current_actor
    return TestClient(app)


@pytest.fixture
def client(db, instructor):
    yield _client_for(db, instructor)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(db, admin):
    yield _client_for(db, admin)
    app.dependency_overrides.clear()


@pytest.fixture
def make_conversation(db):
    def _make(channel="whatsapp", ai_state=None, instructor_id=INSTRUCTOR_ID):
        conversation = models.Conversation(
            channel=channel, ai_state=ai_state, instructor_id=instructor_id, customer_ref="+15550100"
        )
        db.add(conversation)
        db.commit()
        return conversation

    return _make


@pytest.fixture
def make_message(db):
    def _make(conversation, direction="inbound", text="Can I book a lesson on Friday?", created_at=None, **classification):
        message = models.Message(
            conversation_id=conversation.id,
            channel=conversation.channel,
            direction=direction,
            message_text=text,
            sender_identity="customer" if direction == "inbound" else "human",
            created_at=created_at or datetime.utcnow(),
        )
        db.add(message)
        db.flush()
        if classification:
            db.add(
                models.MessageMetadata(
                    message_id=message.id,
                    conversation_id=conversation.id,
                    key=INTENT_CLASSIFICATION_KEY,
                    value=classification,
                )
            )
        db.commit()
        return message

    return _make


@pytest.fixture
def make_booking(db):
    def _make(status="draft", instructor_id=INSTRUCTOR_ID, created_at=None, **fields):
        booking = models.Booking(
            instructor_id=instructor_id,
            status=status,
            created_at=created_at or datetime.utcnow(),
            **fields,
        )
        db.add(booking)
        db.commit()
        return booking

    return _make
