"""HTTP endpoints for the browser-facing hops of the handshake.

    GET {action_path}/oauth           -> 302 to Salesforce authorize
    GET {action_path}/oauth_redirect  -> deliver code to the state URL
"""

from __future__ import annotations

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response

from .errors import DecryptionError, MissingParameterError, NotificationDeliveryError
from .logging_config import get_logger
from .oauth.helper import SalesforceOAuthHelper

logger = get_logger("routes")

_SUCCESS_PAGE = """<!DOCTYPE html>
<html>
<head><title>Salesforce connected</title></head>
<body>
<p>You have logged in to Salesforce. You can close this window.</p>
</body>
</html>
"""


def register_handshake_routes(mcp: FastMCP, helper: SalesforceOAuthHelper) -> None:
    """Register the OAuth redirect endpoints on the server."""
    action_path = helper.config.action_path
    redirect_uri = helper.config.oauth_redirect_url

    @mcp.custom_route(f"{action_path}/oauth", methods=["GET"])
    async def oauth_start(request: Request) -> Response:
        """Send the user on to Salesforce to consent."""
        state = request.query_params.get("state", "")
        try:
            url = helper.oauth_url(redirect_uri, state)
        except (MissingParameterError, DecryptionError) as e:
            logger.warning("Rejecting OAuth start request: %s", e)
            return PlainTextResponse(f"Unable to start Salesforce login: {e}", status_code=400)

        return RedirectResponse(url, status_code=302)

    @mcp.custom_route(f"{action_path}/oauth_redirect", methods=["GET"])
    async def oauth_redirect(request: Request) -> Response:
        """Handle Salesforce's redirect back with the authorization code."""
        try:
            await helper.oauth_fetch_info(dict(request.query_params), redirect_uri)
        except (MissingParameterError, DecryptionError) as e:
            logger.warning("Rejecting OAuth callback: %s", e)
            return PlainTextResponse(f"Salesforce login failed: {e}", status_code=400)
        except NotificationDeliveryError as e:
            return PlainTextResponse(f"Salesforce login could not be completed: {e}", status_code=502)

        return HTMLResponse(_SUCCESS_PAGE)
