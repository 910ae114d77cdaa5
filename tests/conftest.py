"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from event_listener.clients import RelayStore
from event_listener.models.oauth import ClientRegistration


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def store(tmp_path) -> RelayStore:
    return RelayStore(str(tmp_path / "listener.db"))


@pytest.fixture
def registered_client(store: RelayStore) -> ClientRegistration:
    return store.create_client(
        slack_client_id="1111.2222",
        client_secret="client-secret",
        name="Test app",
    )
