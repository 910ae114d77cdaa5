"""
FastAPI routes for the Slack event listener.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import RedirectResponse

from event_listener.core.errors import InvalidRequestError
from event_listener.dependencies import (
    get_oauth_exchange_service,
    get_slack_event_service,
)
from event_listener.models.oauth import MAX_ROW_ID, MIN_ROW_ID
from event_listener.services import OAuthExchangeService, SlackEventService

router = APIRouter()


def _require_int(name: str, raw_value: Optional[str]) -> int:
    """Parse a required integer query parameter."""
    if raw_value is None or raw_value == "":
        raise InvalidRequestError(f"The {name} query parameter is required.")
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise InvalidRequestError(
            f"The {name} query parameter must be an integer."
        ) from exc
    if not MIN_ROW_ID <= value <= MAX_ROW_ID:
        raise InvalidRequestError(f"The {name} query parameter must be an integer.")
    return value


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/redirect-link", status_code=HTTPStatus.FOUND)
async def redirect_to_slack(
    exchange: Annotated[OAuthExchangeService, Depends(get_oauth_exchange_service)],
    account_id: Optional[str] = Query(None, description="Tenant account identifier."),
    client_id: Optional[str] = Query(None, description="Client registration identifier."),
) -> RedirectResponse:
    """Start the OAuth flow by redirecting the user to the Slack consent screen."""
    parsed_account_id = _require_int("account_id", account_id)
    parsed_client_id = _require_int("client_id", client_id)

    slack_link = exchange.build_authorization_link(
        account_id=parsed_account_id, client_id=parsed_client_id
    )
    return RedirectResponse(url=slack_link, status_code=HTTPStatus.FOUND)


@router.get("/authorization", status_code=HTTPStatus.NO_CONTENT)
async def receive_authorization_code(
    exchange: Annotated[OAuthExchangeService, Depends(get_oauth_exchange_service)],
    code: str = Query("", description="Authorization code returned by Slack."),
    state: str = Query("", description="State token issued with the redirect link."),
) -> Response:
    """Complete the OAuth exchange for the callback Slack sends after consent."""
    await exchange.complete_authorization(code=code, state=state)
    return Response(status_code=HTTPStatus.NO_CONTENT)


@router.post("/event", status_code=HTTPStatus.OK)
async def receive_slack_event(
    request: Request,
    events: Annotated[SlackEventService, Depends(get_slack_event_service)],
) -> dict:
    """Archive an Events API delivery and answer it by event type."""
    body = await request.body()
    response = events.process_event(body)
    return response.model_dump()


__all__ = ["router"]
