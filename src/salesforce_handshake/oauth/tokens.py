"""Authorization code to token exchange."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx
import msgspec

from ..config import HandshakeConfig
from ..errors import InvalidStateError, SalesforceOAuthError, TokenExchangeError
from ..logging_config import get_logger
from ..models import TokenExchangeState, TokenPair
from ..salesforce.client import SalesforceConnection, SalesforceOAuth2

logger = get_logger("oauth.tokens")


def parse_exchange_state(state: TokenExchangeState | Mapping[str, Any] | str | bytes | None) -> TokenExchangeState:
    """Normalize the exchange state supplied by the calling system.

    Accepts a TokenExchangeState, a mapping, or the JSON the calling system
    stored after the callback.

    Raises:
        InvalidStateError: If the state is unreadable or lacks code/redirect
    """
    try:
        if isinstance(state, TokenExchangeState):
            parsed = state
        elif isinstance(state, (str, bytes)):
            parsed = msgspec.json.decode(state, type=TokenExchangeState) if state else TokenExchangeState()
        elif state is None:
            parsed = TokenExchangeState()
        else:
            parsed = msgspec.convert(dict(state), type=TokenExchangeState)
    except (msgspec.DecodeError, msgspec.ValidationError) as e:
        raise InvalidStateError(f"Request state is not valid: {e}") from e

    if not parsed.code or not parsed.redirect:
        raise InvalidStateError("Request state is missing code and redirect")
    return parsed


class TokenExchanger:
    """Exchanges a single-use authorization code for an access/refresh token pair.

    Codes are single-use, so failures are never retried.
    """

    def __init__(self, config: HandshakeConfig, http_client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._http_client = http_client

    async def exchange(
        self,
        client_id: str,
        client_secret: str,
        state: TokenExchangeState | Mapping[str, Any] | str | bytes | None,
    ) -> TokenPair:
        """Exchange the code carried by ``state`` for tokens.

        Args:
            client_id: Salesforce Connected App client ID
            client_secret: Salesforce Connected App client secret
            state: Code and redirect URI delivered by the callback

        Returns:
            TokenPair with access token, refresh token and instance URL

        Raises:
            InvalidStateError: If code or redirect is missing (no network call is made)
            TokenExchangeError: If Salesforce rejects the exchange
        """
        exchange_state = parse_exchange_state(state)

        oauth2 = SalesforceOAuth2(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=exchange_state.redirect,
            login_url=self.config.login_url,
        )
        connection = SalesforceConnection(oauth2=oauth2, http_client=self._http_client)

        try:
            await connection.authorize(exchange_state.code)
        except (SalesforceOAuthError, httpx.HTTPError, msgspec.DecodeError) as e:
            logger.error("Salesforce token exchange failed: %s", e)
            raise TokenExchangeError(f"Salesforce token exchange failed: {e}") from e
        finally:
            await connection.close()

        if not connection.access_token or not connection.refresh_token:
            logger.error("Salesforce token response did not include a refresh token")
            raise TokenExchangeError(
                "Salesforce did not return a refresh token; "
                "check that the Connected App grants the refresh_token scope"
            )

        logger.info("Exchanged authorization code: instance_url=%s", connection.instance_url)
        return TokenPair(
            access_token=connection.access_token,
            refresh_token=connection.refresh_token,
            instance_url=connection.instance_url,
        )
