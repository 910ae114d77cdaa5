"""Expose constructed client wrappers."""

from .relay_store import RelayStore
from .slack_oauth import USER_SCOPES, SlackOAuthClient
from .state_codec import OAuthStateCodec

__all__ = [
    "OAuthStateCodec",
    "RelayStore",
    "SlackOAuthClient",
    "USER_SCOPES",
]
