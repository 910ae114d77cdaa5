"""
Domain models for OAuth state and integration persistence.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

# Row ids are stored as signed 64-bit SQLite integers.
MIN_ROW_ID = -(2**63)
MAX_ROW_ID = 2**63 - 1


@dataclass(frozen=True, slots=True)
class StateToken:
    """Tenant routing information carried through the Slack redirect."""

    state_id: int
    account_id: int
    client_id: int


class ClientRegistration(BaseModel):
    """A Slack app registration usable by one or more accounts."""

    id: int
    provider_client_id: str = Field(..., description="Public Slack client id.")
    provider_client_secret: str = Field(..., repr=False)
    name: Optional[str] = None


class OAuthState(BaseModel):
    """One pending or completed authorization attempt."""

    id: int
    account_id: int
    client_id: int
    created: datetime
    redeemed: Optional[datetime] = None


class PendingOAuthState(BaseModel):
    """An unredeemed OAuth state joined to the client it was issued for."""

    id: int
    account_id: int
    client_id: int
    slack_client_id: str
    client_secret: str = Field(..., repr=False)


class Team(BaseModel):
    """A Slack workspace that has completed at least one integration."""

    id: int
    provider_team_id: str
    name: str
    created: datetime


class Integration(BaseModel):
    """A completed linkage of account, client, team and user credential."""

    id: int
    account_id: int
    client_id: int
    team_id: int
    provider_user_id: str
    access_token: str = Field(..., repr=False)
    app_id: str
    created: datetime


__all__ = [
    "MAX_ROW_ID",
    "MIN_ROW_ID",
    "ClientRegistration",
    "Integration",
    "OAuthState",
    "PendingOAuthState",
    "StateToken",
    "Team",
]
