"""Final hop of the handshake: Salesforce redirects back with a code.

The authorization code cannot be returned to the calling system directly
because Salesforce only talks to this service. Instead the code and the
redirect URI are POSTed to the one-time state URL embedded in the
encrypted state.
"""

from __future__ import annotations

from collections.abc import Mapping

import httpx

from ..errors import MissingParameterError, NotificationDeliveryError
from ..logging_config import get_logger
from ..models import OAuthCallbackParams
from .state import StateCodec

logger = get_logger("oauth.callback")


def is_spurious_status_error(error: httpx.HTTPError) -> bool:
    """Return True for a status error carrying a nonsense (<100) status code.

    The state URL has been seen to apply the update correctly and still
    answer with such a status. Only this exact case is tolerated.

    Over a real HTTP/1.1 connection httpx rejects such a status line itself
    and raises RemoteProtocolError, which has no response attached, so that
    failure is not tolerated and stays fatal.
    """
    if not isinstance(error, httpx.HTTPStatusError):
        return False
    response = error.response
    return response is not None and response.status_code < 100


class CallbackProcessor:
    """Decrypts the returned state and notifies the state URL."""

    def __init__(self, codec: StateCodec, http_client: httpx.AsyncClient | None = None) -> None:
        """Initialize the processor.

        Args:
            codec: Codec holding the state encryption key
            http_client: Client for the outbound notification. When omitted a
                client is created for each callback.
        """
        self.codec = codec
        self._http_client = http_client

    async def oauth_fetch_info(self, url_params: Mapping[str, str], redirect_uri: str) -> None:
        """Handle Salesforce's redirect back to this service.

        Args:
            url_params: Query parameters of the redirect (``code``, ``state``)
            redirect_uri: The redirect URI used for this authorization

        Raises:
            MissingParameterError: If ``state`` or ``code`` is missing
            DecryptionError: If the state cannot be decrypted
            NotificationDeliveryError: If the state URL could not be notified
        """
        params = OAuthCallbackParams(
            code=url_params.get("code"),
            state=url_params.get("state"),
            error=url_params.get("error"),
            error_description=url_params.get("error_description"),
        )

        if not params.state:
            raise MissingParameterError("OAuth callback is missing the state parameter")
        if not params.code:
            if params.error:
                logger.warning(
                    "Salesforce returned an OAuth error: %s (%s)",
                    params.error,
                    params.error_description,
                )
                message = f"OAuth callback has no code: {params.error}"
                if params.error_description:
                    message += f" ({params.error_description})"
                raise MissingParameterError(message)
            raise MissingParameterError("OAuth callback is missing the code parameter")

        payload = self.codec.decode_state(params.state)

        await self._notify_state_url(payload.state_url, params.code, redirect_uri)

    async def _notify_state_url(self, state_url: str, code: str, redirect_uri: str) -> None:
        """POST the code and redirect URI to the caller's state URL."""
        body = {"code": code, "redirect": redirect_uri}

        try:
            if self._http_client is not None:
                await self._post(self._http_client, state_url, body)
            else:
                async with httpx.AsyncClient(timeout=30.0) as client:
                    await self._post(client, state_url, body)
        except httpx.HTTPError as e:
            if is_spurious_status_error(e):
                logger.debug("Ignoring state update response with response code <100")
                return

            status_code = e.response.status_code if isinstance(e, httpx.HTTPStatusError) else None
            logger.error("Error sending user state to %s: %r", state_url, e)
            raise NotificationDeliveryError(
                f"Failed to deliver OAuth result to state URL: {e}",
                status_code=status_code,
            ) from e

        logger.info("Delivered OAuth result to state URL")

    @staticmethod
    async def _post(client: httpx.AsyncClient, url: str, body: dict[str, str]) -> None:
        response = await client.post(url, json=body)
        response.raise_for_status()
