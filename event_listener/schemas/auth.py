"""Schemas describing the Slack OAuth v2 token exchange."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class SlackTeam(BaseModel):
    """Workspace identity returned with an issued token."""

    id: str = Field(..., min_length=1)
    name: str = ""


class SlackEnterprise(BaseModel):
    id: str = ""
    name: str = ""


class SlackAuthedUser(BaseModel):
    """The user who granted the user-token scopes."""

    id: str = Field(..., min_length=1)
    scope: str = ""
    access_token: str = Field(..., min_length=1, repr=False)
    token_type: str = ""


class SlackTokenResponse(BaseModel):
    """Body of a successful ``oauth.v2.access`` call."""

    ok: bool = True
    access_token: Optional[str] = Field(None, repr=False)
    token_type: Optional[str] = None
    scope: Optional[str] = None
    bot_user_id: Optional[str] = None
    app_id: str = ""
    team: SlackTeam
    enterprise: Optional[SlackEnterprise] = None
    authed_user: SlackAuthedUser


__all__ = [
    "SlackAuthedUser",
    "SlackEnterprise",
    "SlackTeam",
    "SlackTokenResponse",
]
