"""
Slack OAuth v2 utilities.

These helpers build the authorization URL for a client registration and
exchange the authorization code returned on the callback.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from event_listener.core.config import SlackSettings
from event_listener.core.errors import (
    InvalidProviderResponseError,
    ProviderExchangeError,
)
from event_listener.schemas import SlackTokenResponse

logger = logging.getLogger(__name__)

USER_SCOPES = (
    "channels:history",
    "channels:read",
    "groups:history",
    "groups:read",
    "im:history",
    "im:read",
    "mpim:history",
    "mpim:read",
    "team:read",
    "users:read",
)


class SlackOAuthClient:
    """Build Slack authorization URLs and exchange authorization codes."""

    def __init__(
        self,
        slack_settings: SlackSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._slack = slack_settings
        self._transport = transport

    def build_authorization_url(self, *, slack_client_id: str, state: str) -> str:
        """Construct the Slack consent URL requesting user-token scopes only."""
        params = {
            "client_id": slack_client_id,
            "scope": "",
            "user_scope": ",".join(USER_SCOPES),
            "redirect_uri": str(self._slack.redirect_uri),
            "state": state,
        }
        return f"{self._slack.authorize_url}?{urlencode(params)}"

    async def exchange_authorization_code(
        self, *, slack_client_id: str, client_secret: str, code: str
    ) -> SlackTokenResponse:
        """Exchange an authorization code for a user token."""
        params = {
            "client_id": slack_client_id,
            "client_secret": client_secret,
            "code": code,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._slack.timeout, transport=self._transport
            ) as client:
                response = await client.get(str(self._slack.token_url), params=params)
        except httpx.HTTPError as exc:
            raise ProviderExchangeError(
                f"Token request to Slack failed: {exc.__class__.__name__}"
            ) from exc

        if not response.is_success:
            raise ProviderExchangeError(
                f"Slack token endpoint returned HTTP {response.status_code}."
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise InvalidProviderResponseError(
                "Slack token endpoint returned malformed JSON."
            ) from exc

        if not isinstance(body, dict):
            raise InvalidProviderResponseError(
                "Slack token endpoint returned a non-object body."
            )

        if not body.get("ok", False):
            raise ProviderExchangeError(
                f"Slack rejected the authorization code: {body.get('error', 'unknown_error')}"
            )

        try:
            return SlackTokenResponse.model_validate(body)
        except ValidationError as exc:
            raise InvalidProviderResponseError(
                f"Slack token response is missing required fields: {exc.error_count()} error(s)."
            ) from exc


__all__ = ["SlackOAuthClient", "USER_SCOPES"]
