"""Tests for the Discord REST wrapper and error translation."""

import httpx
import pytest

from interaction_router import responses
from interaction_router.discord_client import DiscordApiError, DiscordClient
from interaction_router.errors import get_error_message


def _client(handler, application_id="1000"):
    transport = httpx.MockTransport(handler)
    return DiscordClient(
        application_id=application_id,
        client=httpx.Client(base_url="https://discord.test/api/v10", transport=transport),
    )


def test_requires_token_or_client():
    with pytest.raises(ValueError):
        DiscordClient()


def test_followup_posts_to_interaction_webhook():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"id": "55"})

    result = _client(handler).create_followup_message("tok", {"content": "hi"})

    assert result == {"id": "55"}
    assert requests[0].method == "POST"
    assert requests[0].url.path == "/api/v10/webhooks/1000/tok"


def test_delete_original_handles_no_content():
    def handler(request):
        assert request.url.path.endswith("/messages/@original")
        return httpx.Response(204)

    assert _client(handler).delete_original_response("tok") is None


def test_error_response_raises_discord_api_error():
    def handler(request):
        return httpx.Response(404, json={"code": 10015, "message": "Unknown Webhook"})

    with pytest.raises(DiscordApiError) as err:
        _client(handler).get_webhook("1")

    assert err.value.status == 404
    assert err.value.code == 10015
    assert err.value.raw["message"] == "Unknown Webhook"
    assert isinstance(err.value, DiscordApiError)


def test_non_json_error_body_is_kept_as_message():
    def handler(request):
        return httpx.Response(502, text="bad gateway")

    with pytest.raises(DiscordApiError) as err:
        _client(handler).create_message("1", {"content": "x"})

    assert err.value.code is None
    assert err.value.raw == {"message": "bad gateway"}


def test_bulk_overwrite_targets_guild_when_given():
    paths = []

    def handler(request):
        paths.append((request.method, request.url.path))
        return httpx.Response(200, json=[{"id": "1"}])

    client = _client(handler)
    client.bulk_overwrite_commands([{"name": "ping"}], guild_id="42")
    client.bulk_overwrite_commands([{"name": "ping"}])

    assert paths == [
        ("PUT", "/api/v10/applications/1000/guilds/42/commands"),
        ("PUT", "/api/v10/applications/1000/commands"),
    ]


def test_interaction_webhooks_need_application_id():
    client = _client(lambda request: httpx.Response(200, json={}), application_id=None)

    with pytest.raises(ValueError):
        client.edit_original_response("tok", {"content": "x"})


def test_error_message_for_known_code():
    reply = get_error_message(None, {"code": 50013, "message": "Missing Permissions"})

    assert reply["type"] == responses.InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE
    assert reply["data"]["flags"] == responses.EPHEMERAL_FLAG
    assert "missing permissions" in reply["data"]["content"]


@pytest.mark.parametrize("raw", [None, {}, {"code": 1}, {"code": "50013"}])
def test_error_message_absent_for_unknown_errors(raw):
    assert get_error_message(None, raw) is None
