"""
Typed errors raised by the booking lifecycle and automation handoff core.

Pure decision functions never raise; everything here is surfaced by stateful
operations and translated to HTTP responses in main.py.
"""

from typing import Optional


class LessonDeskError(Exception):
    """Base class for domain errors"""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidTransition(LessonDeskError):
    code = "INVALID_BOOKING_TRANSITION"
    status_code = 409

    def __init__(self, current_state: Optional[str], requested_state: str):
        super().__init__(f"Invalid booking state transition: {current_state} → {requested_state}")
        self.current_state = current_state
        self.requested_state = requested_state


class BookingNotFound(LessonDeskError):
    code = "BOOKING_NOT_FOUND"
    status_code = 404

    def __init__(self, booking_id: str):
        super().__init__(f"Booking not found: {booking_id}")
        self.booking_id = booking_id


class ConversationNotFound(LessonDeskError):
    code = "CONVERSATION_NOT_FOUND"
    status_code = 404

    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation not found: {conversation_id}")
        self.conversation_id = conversation_id


class MessageNotFound(LessonDeskError):
    code = "MESSAGE_NOT_FOUND"
    status_code = 404

    def __init__(self, message_id: str):
        super().__init__(f"Message not found: {message_id}")
        self.message_id = message_id


class DraftNotFound(LessonDeskError):
    code = "DRAFT_NOT_FOUND"
    status_code = 404

    def __init__(self, conversation_id: str):
        super().__init__(f"AI draft not found for conversation: {conversation_id}")
        self.conversation_id = conversation_id


class ConfirmationConflict(LessonDeskError):
    """The uniqueness guard fired but the winning row could not be read back"""

    code = "CONFIRMATION_CONFLICT"
    status_code = 409

    def __init__(self, instructor_id: str, request_id: str):
        super().__init__(
            f"Confirmation request {request_id} for instructor {instructor_id} conflicted"
        )
        self.instructor_id = instructor_id
        self.request_id = request_id


class QuotaRowMissing(LessonDeskError):
    """Day/channel quota rows must be provisioned before automation may send"""

    code = "QUOTA_ROW_MISSING"
    status_code = 500

    def __init__(self, channel: str, period: str):
        super().__init__(f"Quota row not found for channel {channel} and period {period}")
        self.channel = channel
        self.period = period


class AutomationNotPermitted(LessonDeskError):
    code = "AUTOMATION_NOT_PERMITTED"
    status_code = 409

    def __init__(self, conversation_id: str, ai_state: str, action: str):
        super().__init__(
            f"Automation may not {action} in conversation {conversation_id} (ai_state={ai_state})"
        )
        self.conversation_id = conversation_id
        self.ai_state = ai_state
        self.action = action
