"""
Coordinates the Slack OAuth authorization-code flow across tenants.

The redirect request and the callback are independent HTTP requests that may
be handled by different workers; the only thing bridging them is the
persisted ``oauth_state`` row referenced by the state token.
"""

from __future__ import annotations

import logging

from event_listener.clients import OAuthStateCodec, RelayStore, SlackOAuthClient
from event_listener.core.errors import (
    InvalidProviderResponseError,
    InvalidRequestError,
    InvalidStateError,
    MalformedPayloadError,
    MalformedTokenError,
    ProviderExchangeError,
    StateNotFoundError,
    UnknownClientError,
)
from event_listener.models.oauth import Integration

logger = logging.getLogger(__name__)


class OAuthExchangeService:
    """Issue Slack authorization links and complete the resulting callbacks."""

    def __init__(
        self,
        *,
        store: RelayStore,
        state_codec: OAuthStateCodec,
        oauth_client: SlackOAuthClient,
    ) -> None:
        self._store = store
        self._codec = state_codec
        self._oauth = oauth_client

    def build_authorization_link(self, *, account_id: int, client_id: int) -> str:
        """Create a state record and return the Slack consent URL for it."""
        if account_id <= 0:
            raise InvalidRequestError("The account_id query parameter must be positive.")
        if client_id <= 0:
            raise InvalidRequestError("The client_id query parameter must be positive.")

        state_id = self._store.save_oauth_state(account_id=account_id, client_id=client_id)
        state = self._codec.encode(state_id, account_id, client_id)

        # The state row is kept even when the client is unknown; it can never
        # match a callback because lookups join on the client table.
        client = self._store.get_client(client_id)
        if client is None:
            raise UnknownClientError(
                f"Could not retrieve client info for client_id={client_id}"
            )

        logger.info(
            "Issued OAuth state_id=%d for account_id=%d, client_id=%d",
            state_id,
            account_id,
            client_id,
        )
        return self._oauth.build_authorization_url(
            slack_client_id=client.provider_client_id, state=state
        )

    async def complete_authorization(self, *, code: str, state: str) -> Integration:
        """Redeem ``state`` by exchanging ``code`` and storing the credential."""
        try:
            token = self._codec.decode(state)
        except (MalformedTokenError, MalformedPayloadError) as exc:
            logger.warning("Rejected undecodable OAuth state: %s", exc)
            raise InvalidStateError("The OAuth state is invalid.") from exc

        account_id = token.account_id
        client_id = token.client_id

        pending = self._store.get_oauth_state(
            state_id=token.state_id, account_id=account_id, client_id=client_id
        )
        if pending is None:
            raise StateNotFoundError(
                f"Could not find the OAuth state for account_id={account_id}, client_id={client_id}"
            )

        try:
            token_response = await self._oauth.exchange_authorization_code(
                slack_client_id=pending.slack_client_id,
                client_secret=pending.client_secret,
                code=code,
            )
        except (ProviderExchangeError, InvalidProviderResponseError) as exc:
            raise type(exc)(
                f"Could not exchange the token for account_id={account_id}, "
                f"client_id={client_id}: {exc}"
            ) from exc

        integration = self._store.complete_exchange(
            state=pending,
            slack_team_id=token_response.team.id,
            team_name=token_response.team.name,
            slack_user_id=token_response.authed_user.id,
            access_token=token_response.authed_user.access_token,
            app_id=token_response.app_id,
        )
        if integration is None:
            raise StateNotFoundError(
                f"The OAuth state for account_id={account_id}, client_id={client_id} "
                "was redeemed by another request"
            )

        logger.info(
            "Stored integration_id=%d for account_id=%d, client_id=%d, team_id=%d",
            integration.id,
            account_id,
            client_id,
            integration.team_id,
        )
        return integration


__all__ = ["OAuthExchangeService"]
