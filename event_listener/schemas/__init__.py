"""Public schema exports."""

from .auth import SlackAuthedUser, SlackEnterprise, SlackTeam, SlackTokenResponse
from .events import (
    EventAcknowledgement,
    EventType,
    SlackEventEnvelope,
    SlackInnerEvent,
    URLVerificationResponse,
)

__all__ = [
    "EventAcknowledgement",
    "EventType",
    "SlackAuthedUser",
    "SlackEnterprise",
    "SlackEventEnvelope",
    "SlackInnerEvent",
    "SlackTeam",
    "SlackTokenResponse",
    "URLVerificationResponse",
]
