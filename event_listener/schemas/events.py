"""
Pydantic models for inbound Slack Events API payloads.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Outer envelope types the listener knows how to answer."""

    URL_VERIFICATION = "url_verification"
    EVENT_CALLBACK = "event_callback"


class SlackInnerEvent(BaseModel):
    type: str = ""


class SlackEventEnvelope(BaseModel):
    """Minimal view of an Events API request body."""

    type: str = ""
    token: str = ""
    challenge: str = Field(
        "", description="Only present in URL verification requests."
    )
    team_id: str = ""
    api_app_id: str = ""
    event_context: str = ""
    event: Optional[SlackInnerEvent] = None


class URLVerificationResponse(BaseModel):
    challenge: str


class EventAcknowledgement(BaseModel):
    message: str


__all__ = [
    "EventAcknowledgement",
    "EventType",
    "SlackEventEnvelope",
    "SlackInnerEvent",
    "URLVerificationResponse",
]
