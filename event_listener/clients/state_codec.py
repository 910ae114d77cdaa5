"""
OAuth state token encoding.

The state parameter is echoed back verbatim by Slack, so the tenant routing
information travels inside it. The token carries no signature: the persisted
``oauth_state`` row is what guards against forgery and replay.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from event_listener.core.errors import MalformedPayloadError, MalformedTokenError
from event_listener.models.oauth import MAX_ROW_ID, MIN_ROW_ID, StateToken

_FIELDS = ("state_id", "account_id", "client_id")


class OAuthStateCodec:
    """Encode and decode ``(state_id, account_id, client_id)`` state tokens."""

    def encode(self, state_id: int, account_id: int, client_id: int) -> str:
        payload = {
            "state_id": state_id,
            "account_id": account_id,
            "client_id": client_id,
        }
        serialized = json.dumps(payload, separators=(",", ":"), sort_keys=True)
        return base64.urlsafe_b64encode(serialized.encode("utf-8")).decode("ascii")

    def decode(self, token: str) -> StateToken:
        try:
            raw = base64.b64decode(token.encode("ascii"), altchars=b"-_", validate=True)
        except (UnicodeEncodeError, binascii.Error) as exc:
            raise MalformedTokenError(f"Could not decode the state: {exc}") from exc

        try:
            payload: Any = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise MalformedPayloadError(f"Could not unmarshal the state: {exc}") from exc

        if not isinstance(payload, dict):
            raise MalformedPayloadError("State payload must be a JSON object.")

        values = {}
        for field in _FIELDS:
            value = payload.get(field)
            # bool is an int subclass; reject it along with floats and strings.
            if type(value) is not int:
                raise MalformedPayloadError(
                    f"State payload field {field!r} is missing or not an integer."
                )
            if not MIN_ROW_ID <= value <= MAX_ROW_ID:
                raise MalformedPayloadError(
                    f"State payload field {field!r} is out of range."
                )
            values[field] = value

        return StateToken(**values)


__all__ = ["OAuthStateCodec"]
