"""
Archive and dispatch inbound Slack Events API callbacks.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Union

from pydantic import ValidationError

from event_listener.clients import RelayStore
from event_listener.core.errors import MalformedEventError, PersistenceError
from event_listener.schemas import (
    EventAcknowledgement,
    EventType,
    SlackEventEnvelope,
    URLVerificationResponse,
)

logger = logging.getLogger(__name__)

EventResponse = Union[URLVerificationResponse, EventAcknowledgement]
EventHandler = Callable[[SlackEventEnvelope], EventResponse]


def _handle_url_verification(event: SlackEventEnvelope) -> EventResponse:
    logger.info("Handling URL verification request: %s", event.challenge)
    return URLVerificationResponse(challenge=event.challenge)


def _handle_event_callback(event: SlackEventEnvelope) -> EventResponse:
    inner_type = event.event.type if event.event else ""
    logger.info("Handling event_callback event: %s", inner_type)
    return EventAcknowledgement(message="Message received.")


def _handle_unknown_event(event: SlackEventEnvelope) -> EventResponse:
    logger.info("Handling unknown event type: %s", event.type)
    return EventAcknowledgement(message="Unknown event type.")


_HANDLERS: Dict[EventType, EventHandler] = {
    EventType.URL_VERIFICATION: _handle_url_verification,
    EventType.EVENT_CALLBACK: _handle_event_callback,
}


def get_event_handler(event_type: str) -> EventHandler:
    """Return the handler for ``event_type``, falling back to the unknown handler."""
    try:
        return _HANDLERS[EventType(event_type)]
    except ValueError:
        return _handle_unknown_event


class SlackEventService:
    """Persist raw event bodies and answer them by envelope type."""

    def __init__(self, store: RelayStore) -> None:
        self._store = store

    def process_event(self, body: bytes) -> EventResponse:
        # Archive before parsing so malformed deliveries are kept too.
        try:
            self._store.insert_raw_event(body)
        except PersistenceError as exc:
            logger.warning("Could not archive raw event: %s", exc)

        try:
            event = SlackEventEnvelope.model_validate_json(body)
        except ValidationError as exc:
            raise MalformedEventError(
                f"Could not parse the request body: {exc.error_count()} error(s)."
            ) from exc

        handler = get_event_handler(event.type)
        return handler(event)


__all__ = ["EventResponse", "SlackEventService", "get_event_handler"]
