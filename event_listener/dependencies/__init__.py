"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_oauth_exchange_service,
    get_relay_store,
    get_slack_event_service,
    get_slack_oauth_client,
    get_state_codec,
)

__all__ = [
    "get_oauth_exchange_service",
    "get_relay_store",
    "get_slack_event_service",
    "get_slack_oauth_client",
    "get_state_codec",
]
