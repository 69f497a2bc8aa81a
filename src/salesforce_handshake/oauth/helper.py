"""Salesforce OAuth handshake helper.

This module wires the handshake components together behind a single
object. The handshake carries all of its state in an encrypted token
instead of a session, so it spans three independent HTTP round trips:

    Calling system → login link (this service, ?state=<token>)
                   → Salesforce authorize (state forwarded unchanged)
                   → callback (this service) → POST {code, redirect} to state URL
    Calling system → token exchange → {access_token, refresh_token}

Nothing is kept between requests; the helper can serve any number of
concurrent handshakes.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from ..config import HandshakeConfig
from ..logging_config import get_logger
from ..models import LoginForm, TokenExchangeState, TokenPair
from ..salesforce.connection import ConnectionFactory
from .callback import CallbackProcessor
from .handshake import AuthorizationRedirectBuilder, HandshakeInitiator
from .state import StateCodec
from .tokens import TokenExchanger

logger = get_logger("oauth.helper")


class SalesforceOAuthHelper:
    """Entry point for the encrypted-state OAuth handshake.

    Environment variables (via :meth:`from_env`):
        ACTION_HUB_BASE_URL: Public URL of this service
        CIPHER_MASTER: Encryption key(s) for the state token
        SALESFORCE_LOGIN_URL: Login URL (default: https://login.salesforce.com)

    Example:
        >>> helper = SalesforceOAuthHelper(HandshakeConfig(cipher_master="..."))
        >>> form = helper.make_login_form("https://looker.example/state/abc", "CID1")
        >>> form.fields[0].oauth_url
        'http://localhost:8000/actions/salesforce_campaigns/oauth?state=...'
    """

    def __init__(
        self,
        config: HandshakeConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the helper.

        Args:
            config: Handshake configuration
            http_client: Optional shared HTTP client for outbound calls. When
                omitted one is created on first use and closed by :meth:`close`.
        """
        self.config = config
        self.codec = StateCodec(config.cipher_master)
        self._http_client = http_client
        self._owns_http_client = http_client is None

        self._initiator = HandshakeInitiator(config, self.codec)
        self._redirect_builder = AuthorizationRedirectBuilder(config, self.codec)
        self._connection_factory = ConnectionFactory(config)

        logger.info(
            "SalesforceOAuthHelper initialized: action_url=%s, login_url=%s, encryption=%s",
            config.action_url,
            config.login_url,
            "enabled" if self.codec.is_configured else "NOT CONFIGURED",
        )

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared async HTTP client."""
        if self._http_client is None:
            logger.debug("Creating async HTTP client for outbound handshake calls")
            self._http_client = httpx.AsyncClient(timeout=30.0)
        return self._http_client

    @property
    def connection_factory(self) -> ConnectionFactory:
        return self._connection_factory

    def make_login_form(self, state_url: str, client_id: str) -> LoginForm:
        """Step 0: build the login form linking to this service."""
        return self._initiator.make_login_form(state_url, client_id)

    def oauth_url(self, redirect_uri: str, encrypted_state: str) -> str:
        """Step 1: build the Salesforce authorize URL."""
        return self._redirect_builder.oauth_url(redirect_uri, encrypted_state)

    async def oauth_fetch_info(self, url_params: Mapping[str, str], redirect_uri: str) -> None:
        """Step 2: deliver the code from Salesforce's redirect to the state URL."""
        processor = CallbackProcessor(self.codec, self._get_client())
        await processor.oauth_fetch_info(url_params, redirect_uri)

    async def get_access_tokens_from_auth_code(
        self,
        client_id: str,
        client_secret: str,
        state: TokenExchangeState | Mapping[str, Any] | str | bytes | None,
    ) -> TokenPair:
        """Exchange the delivered code for an access/refresh token pair."""
        exchanger = TokenExchanger(self.config, self._get_client())
        return await exchanger.exchange(client_id, client_secret, state)

    @classmethod
    def from_env(cls) -> "SalesforceOAuthHelper":
        """Create a SalesforceOAuthHelper from environment variables."""
        return cls(HandshakeConfig.from_env())

    async def close(self) -> None:
        """Clean up resources."""
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
