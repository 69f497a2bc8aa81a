"""Tests for the server, HTTP routes and MCP tools."""

import json
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest
import pytest_asyncio
from fastmcp import Client, FastMCP

from salesforce_handshake.context import get_oauth_helper, set_oauth_helper
from salesforce_handshake.models import HandshakeState
from salesforce_handshake.oauth.helper import SalesforceOAuthHelper
from salesforce_handshake.server import _mask_secret, create_server

from .conftest import CLIENT_ID, STATE_URL, RecordingTransport

REDIRECT_URI = "https://ah.example/actions/salesforce_campaigns/oauth_redirect"


@pytest.fixture
def notifications() -> RecordingTransport:
    return RecordingTransport(status_code=200)


@pytest_asyncio.fixture
async def helper(config, notifications):
    async with notifications.client() as client:
        yield SalesforceOAuthHelper(config, http_client=client)
    set_oauth_helper(None)


def _app_client(mcp: FastMCP) -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=mcp.http_app())
    return httpx.AsyncClient(transport=transport, base_url="https://ah.example")


class TestMaskSecret:
    """Tests for secret masking in the startup banner."""

    def test_unset(self):
        assert _mask_secret(None) == "(not set)"
        assert _mask_secret("") == "(not set)"

    def test_short(self):
        assert _mask_secret("abc") == "****"

    def test_long(self):
        assert _mask_secret("abcdefghijkl") == "abcd****ijkl"


class TestContext:
    """Tests for the module-level helper context."""

    def test_uninitialized(self):
        """Test that an unset helper raises RuntimeError."""
        set_oauth_helper(None)
        with pytest.raises(RuntimeError, match="not initialized"):
            get_oauth_helper()

    @pytest.mark.asyncio
    async def test_create_server_sets_helper(self, helper):
        """Test that create_server registers the helper."""
        mcp = create_server(helper)

        assert isinstance(mcp, FastMCP)
        assert get_oauth_helper() is helper


class TestHandshakeRoutes:
    """Tests for the browser-facing OAuth endpoints."""

    @pytest.mark.asyncio
    async def test_oauth_start_redirects_to_salesforce(self, helper, codec):
        """Test the first hop redirects to the authorize URL with the same state."""
        token = codec.encode_state(HandshakeState(state_url=STATE_URL, client_id=CLIENT_ID))

        async with _app_client(create_server(helper)) as client:
            response = await client.get(
                "/actions/salesforce_campaigns/oauth",
                params={"state": token},
            )

        assert response.status_code == 302
        location = urlsplit(response.headers["location"])
        query = parse_qs(location.query)
        assert location.netloc == "login.salesforce.com"
        assert query["client_id"] == [CLIENT_ID]
        assert query["redirect_uri"] == [REDIRECT_URI]
        assert query["state"] == [token]

    @pytest.mark.asyncio
    async def test_oauth_start_rejects_bad_state(self, helper):
        """Test that an undecryptable state yields 400."""
        async with _app_client(create_server(helper)) as client:
            response = await client.get(
                "/actions/salesforce_campaigns/oauth",
                params={"state": "garbage"},
            )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_oauth_redirect_notifies_state_url(self, helper, codec, notifications):
        """Test the callback posts the code to the state URL."""
        token = codec.encode_state(HandshakeState(state_url=STATE_URL, client_id=CLIENT_ID))

        async with _app_client(create_server(helper)) as client:
            response = await client.get(
                "/actions/salesforce_campaigns/oauth_redirect",
                params={"code": "AUTHCODE", "state": token},
            )

        assert response.status_code == 200
        assert len(notifications.requests) == 1
        assert json.loads(notifications.requests[0].content) == {
            "code": "AUTHCODE",
            "redirect": REDIRECT_URI,
        }

    @pytest.mark.asyncio
    async def test_oauth_redirect_missing_code(self, helper, codec, notifications):
        """Test that a callback without a code yields 400."""
        token = codec.encode_state(HandshakeState(state_url=STATE_URL, client_id=CLIENT_ID))

        async with _app_client(create_server(helper)) as client:
            response = await client.get(
                "/actions/salesforce_campaigns/oauth_redirect",
                params={"state": token, "error": "access_denied"},
            )

        assert response.status_code == 400
        assert notifications.requests == []

    @pytest.mark.asyncio
    async def test_oauth_redirect_delivery_failure(self, config, codec):
        """Test that a failed notification yields 502."""
        failing = RecordingTransport(status_code=500)
        token = codec.encode_state(HandshakeState(state_url=STATE_URL, client_id=CLIENT_ID))

        async with failing.client() as http_client:
            helper = SalesforceOAuthHelper(config, http_client=http_client)
            async with _app_client(create_server(helper)) as client:
                response = await client.get(
                    "/actions/salesforce_campaigns/oauth_redirect",
                    params={"code": "AUTHCODE", "state": token},
                )

        set_oauth_helper(None)
        assert response.status_code == 502
        assert len(failing.requests) == 1


class TestHandshakeTools:
    """Tests for the MCP tools."""

    @pytest.mark.asyncio
    async def test_login_form_tool(self, helper, codec):
        """Test the login form tool returns an oauth_link field."""
        mcp = create_server(helper)

        async with Client(mcp) as client:
            result = await client.call_tool(
                "salesforce_login_form",
                {"state_url": STATE_URL, "client_id": CLIENT_ID},
            )

        form = json.loads(result.content[0].text)
        field = form["fields"][0]
        assert form["state"] == {"data": "reset"}
        assert field["type"] == "oauth_link"

        token = parse_qs(urlsplit(field["oauth_url"]).query)["state"][0]
        assert codec.decode_state(token) == HandshakeState(state_url=STATE_URL, client_id=CLIENT_ID)

    @pytest.mark.asyncio
    async def test_exchange_code_tool(self, config):
        """Test the exchange tool returns the token pair from Salesforce."""
        salesforce = RecordingTransport(
            status_code=200,
            json={
                "access_token": "A",
                "refresh_token": "R",
                "instance_url": "https://i",
            },
        )

        async with salesforce.client() as http_client:
            mcp = create_server(SalesforceOAuthHelper(config, http_client=http_client))
            async with Client(mcp) as client:
                result = await client.call_tool(
                    "salesforce_exchange_code",
                    {
                        "client_id": CLIENT_ID,
                        "client_secret": "SECRET",
                        "code": "AUTHCODE",
                        "redirect": REDIRECT_URI,
                    },
                )

        set_oauth_helper(None)
        assert json.loads(result.content[0].text) == {
            "access_token": "A",
            "refresh_token": "R",
            "instance_url": "https://i",
        }
        assert len(salesforce.requests) == 1
        request = salesforce.requests[0]
        assert str(request.url) == f"{config.login_url}/services/oauth2/token"
        assert parse_qs(request.content.decode())["code"] == ["AUTHCODE"]

    @pytest.mark.asyncio
    async def test_exchange_code_tool_empty_code(self, config):
        """Test that an empty code is reported as a tool error without calling Salesforce."""
        salesforce = RecordingTransport(status_code=200)

        async with salesforce.client() as http_client:
            mcp = create_server(SalesforceOAuthHelper(config, http_client=http_client))
            async with Client(mcp) as client:
                result = await client.call_tool(
                    "salesforce_exchange_code",
                    {
                        "client_id": CLIENT_ID,
                        "client_secret": "SECRET",
                        "code": "",
                        "redirect": REDIRECT_URI,
                    },
                    raise_on_error=False,
                )

        set_oauth_helper(None)
        assert result.is_error is True
        assert salesforce.requests == []


class TestEndToEnd:
    """Full handshake through the helper."""

    @pytest.mark.asyncio
    async def test_full_handshake(self, config, codec):
        """Test login link, authorize URL, callback and token exchange in sequence."""
        callback_url = "https://ah.example/callback"
        tokens_json = {
            "access_token": "ACCESS",
            "refresh_token": "REFRESH",
            "instance_url": "https://acme.my.salesforce.com",
        }
        delivered: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            if str(request.url) == STATE_URL:
                delivered.update(json.loads(request.content))
                return httpx.Response(200)
            if request.url.path == "/services/oauth2/token":
                return httpx.Response(200, json=tokens_json)
            return httpx.Response(404)

        transport = RecordingTransport(handler=handler)
        async with transport.client() as http_client:
            helper = SalesforceOAuthHelper(config, http_client=http_client)

            form = helper.make_login_form(STATE_URL, CLIENT_ID)
            token = parse_qs(urlsplit(form.fields[0].oauth_url).query)["state"][0]

            authorize_url = helper.oauth_url(callback_url, token)
            assert parse_qs(urlsplit(authorize_url).query)["state"] == [token]

            await helper.oauth_fetch_info({"code": "AUTHCODE", "state": token}, callback_url)
            assert delivered == {"code": "AUTHCODE", "redirect": callback_url}

            tokens = await helper.get_access_tokens_from_auth_code("CID1", "SECRET", delivered)
            await helper.close()

        assert tokens.access_token == "ACCESS"
        assert tokens.refresh_token == "REFRESH"
        assert [r.method for r in transport.requests] == ["POST", "POST"]

        conn = helper.connection_factory.from_tokens(
            "CID1", "SECRET", tokens.instance_url, tokens
        )
        assert conn.is_authenticated is True
