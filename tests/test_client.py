"""Tests for the Help Scout API client and configuration."""

import base64
import json
from unittest.mock import patch

import httpx
import pytest


def _client(handler):
    from helpscout_metrics.client import HelpScoutClient

    return HelpScoutClient(api_key="abc123", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_list_conversations_request_and_parsing():
    """Pages are requested with Basic auth and parsed into models."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["page"] = request.url.params.get("page")
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={
            "page": 2,
            "pages": 3,
            "count": 101,
            "items": [{
                "id": 5,
                "status": "active",
                "createdAt": "2026-10-01T10:00:00Z",
                "userModifiedAt": "2026-10-02T10:00:00Z",
                "owner": {"id": 1, "firstName": "Alice", "lastName": "Smith"},
                "customer": {"id": 2},
            }],
        })

    page = await _client(handler).list_conversations(42, page=2)

    assert seen["path"] == "/v1/mailboxes/42/conversations.json"
    assert seen["page"] == "2"
    assert base64.b64decode(seen["auth"].replace("Basic ", "")).decode() == "abc123:X"
    assert (page.page, page.pages, page.count) == (2, 3, 101)
    convo = page.items[0]
    assert convo.status == "active"
    assert convo.owner.display_name == "Alice"
    assert convo.closed_at is None


@pytest.mark.asyncio
async def test_auth_failure_raises_api_error():
    """A 401 becomes a HelpScoutAPIError with a friendly message."""
    from helpscout_metrics.client import HelpScoutAPIError, TransportError

    client = _client(lambda request: httpx.Response(401, json={"error": "Invalid API key"}))
    with pytest.raises(TransportError) as exc:
        await client.list_conversations(1)

    assert exc.value.status_code == 401
    assert "API key" in str(exc.value)
    assert TransportError is HelpScoutAPIError


@pytest.mark.asyncio
async def test_network_error_raises_api_error():
    """Connection failures are wrapped."""
    from helpscout_metrics.client import HelpScoutAPIError

    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(HelpScoutAPIError, match="Request failed"):
        await _client(handler).list_conversations(1)


@pytest.mark.asyncio
async def test_malformed_page_raises_api_error():
    """A page that doesn't match the expected shape is a transport error."""
    from helpscout_metrics.client import HelpScoutAPIError

    client = _client(lambda request: httpx.Response(200, json={"page": "first", "items": []}))
    with pytest.raises(HelpScoutAPIError, match="Malformed"):
        await client.list_conversations(1)


@pytest.mark.asyncio
async def test_list_mailboxes():
    """Mailboxes are summarized to id, name and email."""
    client = _client(lambda request: httpx.Response(200, json={
        "items": [{"id": 1, "name": "Support", "email": "support@example.com", "slug": "x"}],
    }))
    assert await client.list_mailboxes() == [
        {"id": 1, "name": "Support", "email": "support@example.com"}
    ]


def test_api_key_from_env():
    """The API key falls back to HELPSCOUT_API_KEY."""
    from helpscout_metrics.client import HelpScoutClient

    with patch.dict("os.environ", {"HELPSCOUT_API_KEY": "from-env"}):
        assert HelpScoutClient().api_key == "from-env"


def test_missing_api_key_raises(tmp_path, monkeypatch):
    """No key anywhere raises HelpScoutAuthError with guidance."""
    from helpscout_metrics import client as client_module

    monkeypatch.delenv("HELPSCOUT_API_KEY", raising=False)
    monkeypatch.setattr(client_module, "CONFIG_PATH", tmp_path / "config.json")

    with pytest.raises(client_module.HelpScoutAuthError, match="HELPSCOUT_API_KEY"):
        client_module.HelpScoutClient()


def test_config_file_round_trip(tmp_path, monkeypatch):
    """Saved credentials and mailboxes are read back; Slack settings survive logout."""
    from helpscout_metrics import client as client_module

    config_path = tmp_path / "config.json"
    monkeypatch.setattr(client_module, "CONFIG_PATH", config_path)
    monkeypatch.delenv("HELPSCOUT_API_KEY", raising=False)
    monkeypatch.delenv("HELPSCOUT_MAILBOXES", raising=False)
    monkeypatch.delenv("SLACK_WEBHOOK_URL", raising=False)
    monkeypatch.delenv("SLACK_CHANNEL", raising=False)

    client_module.save_slack_config("https://hooks.slack.test/x", "#metrics")
    client_module.save_credentials("file-key", ["1", " 2 "])

    assert client_module.get_api_key() == "file-key"
    assert client_module.get_mailboxes() == ["1", "2"]
    assert client_module.get_auth_status()["source"] == "config"

    assert client_module.delete_credentials() is True
    assert json.loads(config_path.read_text()) == {
        "slack_webhook_url": "https://hooks.slack.test/x",
        "slack_channel": "#metrics",
    }
    assert client_module.get_slack_config() == ("https://hooks.slack.test/x", "#metrics")


def test_mailboxes_from_env():
    """HELPSCOUT_MAILBOXES is a comma-separated list."""
    from helpscout_metrics.client import get_mailboxes

    with patch.dict("os.environ", {"HELPSCOUT_MAILBOXES": "12, 34,,56"}):
        assert get_mailboxes() == ["12", "34", "56"]
