"""
Factory functions to provide shared clients and services as FastAPI dependencies.

Clients are built once per process; services are assembled per request from
those clients so tests can override any single collaborator.
"""

from functools import lru_cache

from fastapi import Depends

from event_listener.clients import OAuthStateCodec, RelayStore, SlackOAuthClient
from event_listener.core.config import get_settings
from event_listener.services import OAuthExchangeService, SlackEventService


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_relay_store() -> RelayStore:
    """Provide the shared relational store."""
    settings = _settings()
    return RelayStore(settings.database.path)


@lru_cache()
def get_state_codec() -> OAuthStateCodec:
    """Provide the OAuth state token codec."""
    return OAuthStateCodec()


@lru_cache()
def get_slack_oauth_client() -> SlackOAuthClient:
    """Create a singleton Slack OAuth client."""
    settings = _settings()
    return SlackOAuthClient(settings.slack)


def get_oauth_exchange_service(
    store: RelayStore = Depends(get_relay_store),
    state_codec: OAuthStateCodec = Depends(get_state_codec),
    oauth_client: SlackOAuthClient = Depends(get_slack_oauth_client),
) -> OAuthExchangeService:
    """Build the OAuth exchange coordinator."""
    return OAuthExchangeService(
        store=store,
        state_codec=state_codec,
        oauth_client=oauth_client,
    )


def get_slack_event_service(
    store: RelayStore = Depends(get_relay_store),
) -> SlackEventService:
    """Build the Slack event ingestion service."""
    return SlackEventService(store)


__all__ = [
    "get_oauth_exchange_service",
    "get_relay_store",
    "get_slack_event_service",
    "get_slack_oauth_client",
    "get_state_codec",
]
