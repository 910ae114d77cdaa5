"""
Error taxonomy shared by the OAuth exchange and event ingestion flows.

Every error raised by the service layer derives from ``EventListenerError`` so
the HTTP layer can render them uniformly. Only ``InvalidRequestError`` maps to
a client error; everything else surfaces as a 500 with the error message.
"""

from __future__ import annotations


class EventListenerError(Exception):
    """Base class for all handled failures."""


class InvalidRequestError(EventListenerError):
    """Raised when caller-supplied input is missing or out of range."""


class MalformedTokenError(EventListenerError):
    """Raised when a state token is not valid URL-safe base64."""


class MalformedPayloadError(EventListenerError):
    """Raised when a decoded state token does not hold the expected record."""


class InvalidStateError(EventListenerError):
    """Raised when the state returned by Slack cannot be decoded."""


class UnknownClientError(EventListenerError):
    """Raised when no client registration exists for a client id."""


class StateNotFoundError(EventListenerError):
    """Raised when no unredeemed OAuth state matches a callback."""


class ProviderExchangeError(EventListenerError):
    """Raised when the Slack token endpoint fails or rejects the code."""


class InvalidProviderResponseError(EventListenerError):
    """Raised when the Slack token endpoint returns an unusable body."""


class PersistenceError(EventListenerError):
    """Raised when a read or write against the store fails."""


class MalformedEventError(EventListenerError):
    """Raised when an inbound event body cannot be parsed."""


__all__ = [
    "EventListenerError",
    "InvalidProviderResponseError",
    "InvalidRequestError",
    "InvalidStateError",
    "MalformedEventError",
    "MalformedPayloadError",
    "MalformedTokenError",
    "PersistenceError",
    "ProviderExchangeError",
    "StateNotFoundError",
    "UnknownClientError",
]
