import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def generate_id():
    """Generate a UUID string primary key"""
    return str(uuid.uuid4())


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True, default=generate_id)
    instructor_id = Column(String(36), nullable=True, index=True)
    customer_ref = Column(String(255), nullable=True)
    channel = Column(String(50), nullable=False, default="whatsapp")  # whatsapp, email, web
    # ai_on | ai_paused_by_human | ai_suggestion_only (NULL reads as ai_on)
    ai_state = Column(String(32), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    messages = relationship("Message", back_populates="conversation")


class Message(Base):
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=generate_id)
    conversation_id = Column(String(36), ForeignKey("conversations.id"), nullable=False, index=True)
    channel = Column(String(50), nullable=False, default="whatsapp")
    direction = Column(String(10), nullable=False)  # inbound | outbound
    message_text = Column(Text, nullable=True)
    sender_identity = Column(String(50), nullable=True)  # customer, human, ai
    external_message_id = Column(String(255), nullable=True)
    raw_payload = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    conversation = relationship("Conversation", back_populates="messages")


class MessageMetadata(Base):
    """Key/value facts attached to a message (classifier output, automation drafts)"""

    __tablename__ = "message_metadata"
    __table_args__ = (UniqueConstraint("message_id", "key", name="uq_message_metadata_message_key"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    message_id = Column(String(36), ForeignKey("messages.id"), nullable=False, index=True)
    conversation_id = Column(String(36), ForeignKey("conversations.id"), nullable=False, index=True)
    key = Column(String(64), nullable=False)  # intent_classification | ai_draft
    value = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class AIDecisionSnapshot(Base):
    """One confidence decision per inbound message"""

    __tablename__ = "ai_decision_snapshots"

    id = Column(String(36), primary_key=True, default=generate_id)
    message_id = Column(String(36), ForeignKey("messages.id"), nullable=False, unique=True)
    conversation_id = Column(String(36), ForeignKey("conversations.id"), nullable=False, index=True)
    relevance_confidence = Column(Float, nullable=False)
    intent_confidence = Column(Float, nullable=False)
    intent = Column(String(64), nullable=True)
    decision = Column(String(32), nullable=False)
    reason = Column(String(32), nullable=False)
    allow_draft = Column(Boolean, nullable=False, default=False)
    require_escalation = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=generate_id)
    instructor_id = Column(String(36), nullable=False, index=True)
    customer_ref = Column(String(255), nullable=True)
    customer_name = Column(String(255), nullable=True)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)

    # draft → pending → confirmed → modified/completed, terminal: cancelled/declined/expired/completed
    # Only written through BookingService after the state machine accepts the move
    status = Column(String(20), nullable=False, default="draft", index=True)

    calendar_event_id = Column(String(255), nullable=True)
    payment_reference = Column(String(255), nullable=True)
    conversation_id = Column(String(36), ForeignKey("conversations.id"), nullable=True, index=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    audit_entries = relationship("BookingAudit", back_populates="booking")


class BookingAudit(Base):
    """Append-only booking state transition fact"""

    __tablename__ = "booking_audit"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    previous_state = Column(String(20), nullable=True)  # NULL for creation
    new_state = Column(String(20), nullable=True)
    event_type = Column(String(64), nullable=True)  # e.g. ai_draft_sent, booking_created_from_ai_draft
    actor = Column(String(10), nullable=False)  # system | human | ai
    actor_id = Column(String(255), nullable=True)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    booking = relationship("Booking", back_populates="audit_entries")


class BookingConfirmationAudit(Base):
    """Binds a confirmation request id to the booking it produced"""

    __tablename__ = "booking_confirmation_audit"
    __table_args__ = (
        UniqueConstraint("instructor_id", "request_id", name="uq_confirmation_instructor_request"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    instructor_id = Column(String(36), nullable=False)
    request_id = Column(String(255), nullable=False)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False)
    actor_user_id = Column(String(255), nullable=True)
    draft_payload = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class AIChannelQuota(Base):
    """Per-channel daily counter of automation-authored messages sent"""

    __tablename__ = "ai_channel_quotas"
    __table_args__ = (UniqueConstraint("channel", "period", name="uq_quota_channel_period"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    channel = Column(String(50), nullable=False)
    period = Column(Date, nullable=False)
    max_allowed = Column(Integer, nullable=True)
    used = Column(Integer, nullable=False, default=0)


class AuditLog(Base):
    """Generic append-only audit record (AI state changes, approvals, flag updates)"""

    __tablename__ = "audit_log"

    id = Column(String(36), primary_key=True, default=generate_id)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    actor_type = Column(String(20), nullable=False)  # admin | system | instructor
    actor_id = Column(String(255), nullable=True)
    action = Column(String(100), nullable=False)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(255), nullable=True, index=True)
    severity = Column(String(10), nullable=False, default="info")  # info | warn | error
    request_id = Column(String(255), nullable=True)
    payload = Column(JSON, nullable=True)


class FeatureFlag(Base):
    __tablename__ = "feature_flags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(100), unique=True, nullable=False)  # ai_enabled, ai_whatsapp_enabled
    enabled = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
