try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from event_listener.clients import USER_SCOPES, OAuthStateCodec, SlackOAuthClient
from event_listener.core.config import SlackSettings
from event_listener.core.errors import (
    InvalidProviderResponseError,
    InvalidRequestError,
    InvalidStateError,
    ProviderExchangeError,
    StateNotFoundError,
    UnknownClientError,
)
from event_listener.services import OAuthExchangeService

pytestmark = pytest.mark.anyio


def _token_payload(*, team_name: str = "Acme", user_id: str = "U123") -> dict:
    return {
        "ok": True,
        "app_id": "A0001",
        "authed_user": {
            "id": user_id,
            "scope": ",".join(USER_SCOPES),
            "access_token": f"xoxp-{user_id}",
            "token_type": "user",
        },
        "team": {"id": "T9", "name": team_name},
        "enterprise": None,
        "is_enterprise_install": False,
    }


class FakeSlack:
    """Serves queued responses for the oauth.v2.access endpoint."""

    def __init__(self) -> None:
        self.responses: list[httpx.Response] = []
        self.requests: list[httpx.Request] = []

    def queue_json(self, payload, status_code: int = 200) -> None:
        self.responses.append(httpx.Response(status_code, json=payload))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


@pytest.fixture
def slack() -> FakeSlack:
    return FakeSlack()


@pytest.fixture
def service(store, slack) -> OAuthExchangeService:
    oauth_client = SlackOAuthClient(
        SlackSettings(redirect_uri="https://listener.example.com/authorization"),
        transport=httpx.MockTransport(slack.handler),
    )
    return OAuthExchangeService(
        store=store,
        state_codec=OAuthStateCodec(),
        oauth_client=oauth_client,
    )


def _state_from(url: str) -> str:
    return parse_qs(urlparse(url).query)["state"][0]


async def test_authorization_link_targets_slack_with_fixed_scopes(service, registered_client) -> None:
    url = service.build_authorization_link(account_id=5, client_id=registered_client.id)

    parsed = urlparse(url)
    query = parse_qs(parsed.query, keep_blank_values=True)
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == "https://slack.com/oauth/v2/authorize"
    assert query["client_id"] == ["1111.2222"]
    assert query["scope"] == [""]
    assert query["user_scope"][0].split(",") == list(USER_SCOPES)
    assert len(USER_SCOPES) == 10
    assert query["redirect_uri"] == ["https://listener.example.com/authorization"]

    token = OAuthStateCodec().decode(query["state"][0])
    assert token.account_id == 5
    assert token.client_id == registered_client.id


@pytest.mark.parametrize("account_id, client_id", [(0, 1), (1, 0), (-3, 2)])
async def test_authorization_link_validates_ids_before_writing(
    service, store, account_id: int, client_id: int
) -> None:
    with pytest.raises(InvalidRequestError):
        service.build_authorization_link(account_id=account_id, client_id=client_id)

    assert store.list_oauth_states() == []


async def test_authorization_link_for_unknown_client_leaves_orphan_state(service, store) -> None:
    with pytest.raises(UnknownClientError):
        service.build_authorization_link(account_id=5, client_id=77)

    states = store.list_oauth_states()
    assert len(states) == 1
    assert states[0].redeemed is None


async def test_complete_authorization_stores_integration(service, store, slack, registered_client) -> None:
    state = _state_from(service.build_authorization_link(account_id=5, client_id=registered_client.id))
    slack.queue_json(_token_payload())

    integration = await service.complete_authorization(code="code-1", state=state)

    assert integration.account_id == 5
    assert integration.client_id == registered_client.id
    assert integration.provider_user_id == "U123"
    assert integration.access_token == "xoxp-U123"
    assert integration.app_id == "A0001"

    sent = slack.requests[0]
    assert sent.method == "GET"
    assert sent.url.path == "/api/oauth.v2.access"
    assert sent.url.params["client_id"] == "1111.2222"
    assert sent.url.params["client_secret"] == "client-secret"
    assert sent.url.params["code"] == "code-1"

    assert store.get_team("T9").name == "Acme"
    assert store.list_oauth_states()[0].redeemed is not None


async def test_replayed_state_is_rejected(service, store, slack, registered_client) -> None:
    state = _state_from(service.build_authorization_link(account_id=5, client_id=registered_client.id))
    slack.queue_json(_token_payload())
    await service.complete_authorization(code="code-1", state=state)

    with pytest.raises(StateNotFoundError):
        await service.complete_authorization(code="code-2", state=state)

    assert len(slack.requests) == 1
    assert len(store.list_integrations(account_id=5)) == 1


async def test_forged_state_is_rejected(service, slack, registered_client) -> None:
    state = _state_from(service.build_authorization_link(account_id=5, client_id=registered_client.id))
    token = OAuthStateCodec().decode(state)
    forged = OAuthStateCodec().encode(token.state_id, 6, token.client_id)

    with pytest.raises(StateNotFoundError):
        await service.complete_authorization(code="code-1", state=forged)

    assert slack.requests == []


async def test_undecodable_state_is_opaque(service) -> None:
    with pytest.raises(InvalidStateError) as excinfo:
        await service.complete_authorization(code="code-1", state="%%%not-base64")

    assert str(excinfo.value) == "The OAuth state is invalid."


async def test_rejected_code_leaves_state_redeemable(service, store, slack, registered_client) -> None:
    state = _state_from(service.build_authorization_link(account_id=5, client_id=registered_client.id))
    slack.queue_json({"ok": False, "error": "invalid_code"})
    slack.queue_json(_token_payload())

    with pytest.raises(ProviderExchangeError) as excinfo:
        await service.complete_authorization(code="bad-code", state=state)

    assert "account_id=5" in str(excinfo.value)
    assert "invalid_code" in str(excinfo.value)
    assert store.list_oauth_states()[0].redeemed is None

    integration = await service.complete_authorization(code="good-code", state=state)
    assert integration.account_id == 5


async def test_http_failure_from_slack_is_a_provider_error(service, slack, registered_client) -> None:
    state = _state_from(service.build_authorization_link(account_id=5, client_id=registered_client.id))
    slack.responses.append(httpx.Response(502, text="bad gateway"))

    with pytest.raises(ProviderExchangeError):
        await service.complete_authorization(code="code-1", state=state)


async def test_transport_failure_is_a_provider_error(store, registered_client) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    service = OAuthExchangeService(
        store=store,
        state_codec=OAuthStateCodec(),
        oauth_client=SlackOAuthClient(SlackSettings(), transport=httpx.MockTransport(refuse)),
    )
    state = _state_from(service.build_authorization_link(account_id=5, client_id=registered_client.id))

    with pytest.raises(ProviderExchangeError):
        await service.complete_authorization(code="code-1", state=state)

    assert store.list_oauth_states()[0].redeemed is None


async def test_malformed_slack_body_is_rejected(service, store, slack, registered_client) -> None:
    state = _state_from(service.build_authorization_link(account_id=5, client_id=registered_client.id))
    slack.responses.append(httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(InvalidProviderResponseError):
        await service.complete_authorization(code="code-1", state=state)

    assert store.list_integrations(account_id=5) == []


async def test_slack_body_without_identity_is_rejected(service, slack, registered_client) -> None:
    state = _state_from(service.build_authorization_link(account_id=5, client_id=registered_client.id))
    slack.queue_json({"ok": True, "app_id": "A0001"})

    with pytest.raises(InvalidProviderResponseError):
        await service.complete_authorization(code="code-1", state=state)


async def test_second_install_for_same_team_updates_name(service, store, slack, registered_client) -> None:
    first_state = _state_from(service.build_authorization_link(account_id=5, client_id=registered_client.id))
    second_state = _state_from(service.build_authorization_link(account_id=5, client_id=registered_client.id))
    slack.queue_json(_token_payload(team_name="Acme"))
    slack.queue_json(_token_payload(team_name="Acme Corp", user_id="U456"))

    first = await service.complete_authorization(code="code-1", state=first_state)
    second = await service.complete_authorization(code="code-2", state=second_state)

    assert first.team_id == second.team_id
    assert store.get_team("T9").name == "Acme Corp"
    assert len(store.list_integrations(account_id=5)) == 2
