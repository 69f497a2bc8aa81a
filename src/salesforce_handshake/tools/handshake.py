"""Handshake tools for Salesforce MCP."""

from typing import Any

import msgspec
from fastmcp import FastMCP

from ..context import get_oauth_helper
from ..logging_config import get_logger
from ..models import TokenExchangeState

logger = get_logger("tools.handshake")


def register_handshake_tools(mcp: FastMCP) -> None:
    """Register OAuth handshake tools with the MCP server."""

    @mcp.tool()
    async def salesforce_login_form(
        state_url: str,
        client_id: str,
    ) -> dict[str, Any]:
        """Build the login form that starts the Salesforce OAuth handshake.

        Args:
            state_url: One-time URL to notify with the authorization code
            client_id: Salesforce Connected App client ID

        Returns:
            Form description with a single oauth_link field:
            - fields: [{name, type, label, description, oauth_url}]
            - state: {data: "reset"}
        """
        helper = get_oauth_helper()
        form = helper.make_login_form(state_url, client_id)
        return msgspec.to_builtins(form)

    @mcp.tool()
    async def salesforce_exchange_code(
        client_id: str,
        client_secret: str,
        code: str,
        redirect: str,
    ) -> dict[str, Any]:
        """Exchange an authorization code for Salesforce tokens.

        Authorization codes are single-use; a failed exchange requires
        a new handshake.

        Args:
            client_id: Salesforce Connected App client ID
            client_secret: Salesforce Connected App client secret
            code: Authorization code delivered to the state URL
            redirect: Redirect URI delivered alongside the code

        Returns:
            Token pair:
            - access_token: Short-lived access token
            - refresh_token: Token for minting new access tokens
            - instance_url: Salesforce instance the tokens belong to
        """
        helper = get_oauth_helper()
        tokens = await helper.get_access_tokens_from_auth_code(
            client_id,
            client_secret,
            TokenExchangeState(code=code, redirect=redirect),
        )
        logger.debug("Issued token pair for instance_url=%s", tokens.instance_url)
        return msgspec.to_builtins(tokens)
