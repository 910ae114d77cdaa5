"""Service layer exports."""

from .oauth_exchange import OAuthExchangeService
from .slack_events import SlackEventService

__all__ = [
    "OAuthExchangeService",
    "SlackEventService",
]
