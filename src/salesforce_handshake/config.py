"""Handshake configuration.

Components receive a :class:`HandshakeConfig` explicitly instead of
reading the environment themselves; only :meth:`HandshakeConfig.from_env`
touches ``os.environ``.
"""

from __future__ import annotations

import os

import msgspec

from .logging_config import get_logger

logger = get_logger("config")

DEFAULT_LOGIN_URL = "https://login.salesforce.com"
DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_ACTION_NAME = "salesforce_campaigns"


class HandshakeConfig(msgspec.Struct, kw_only=True):
    """Configuration shared by all handshake components.

    Attributes:
        action_hub_base_url: Public URL of this service, used to build the
            first-hop login link. Treated as an opaque string.
        action_name: Action segment of the handshake endpoints.
        cipher_master: Comma-separated encryption key(s) for the state token.
            The first key encrypts; every key may decrypt.
        login_url: Salesforce login URL (login or test.salesforce.com).
        redirect_url: Fixed OAuth redirect URI registered on the Connected
            App. Defaults to this service's ``oauth_redirect`` endpoint.
    """

    action_hub_base_url: str = DEFAULT_BASE_URL
    action_name: str = DEFAULT_ACTION_NAME
    cipher_master: str | None = None
    login_url: str = DEFAULT_LOGIN_URL
    redirect_url: str | None = None

    def __post_init__(self) -> None:
        self.action_hub_base_url = self.action_hub_base_url.rstrip("/")
        self.login_url = self.login_url.rstrip("/")

    @property
    def action_path(self) -> str:
        """Path prefix of the handshake endpoints."""
        return f"/actions/{self.action_name}"

    @property
    def action_url(self) -> str:
        return f"{self.action_hub_base_url}{self.action_path}"

    @property
    def start_auth_url(self) -> str:
        """First-hop endpoint the login link points at."""
        return f"{self.action_url}/oauth"

    @property
    def oauth_redirect_url(self) -> str:
        """Endpoint Salesforce redirects back to with the authorization code."""
        return self.redirect_url or f"{self.action_url}/oauth_redirect"

    @property
    def authorization_endpoint(self) -> str:
        return f"{self.login_url}/services/oauth2/authorize"

    @classmethod
    def from_env(cls) -> "HandshakeConfig":
        """Create a HandshakeConfig from environment variables.

        Environment variables:
            ACTION_HUB_BASE_URL: Public URL of this service
            ACTION_NAME: Action name (default: salesforce_campaigns)
            CIPHER_MASTER: Encryption key(s) for the state token
            SALESFORCE_LOGIN_URL: Login URL (default: https://login.salesforce.com)
            SALESFORCE_REDIRECT_URL: Fixed redirect URI of the Connected App
        """
        config = cls(
            action_hub_base_url=os.getenv("ACTION_HUB_BASE_URL", DEFAULT_BASE_URL),
            action_name=os.getenv("ACTION_NAME", DEFAULT_ACTION_NAME),
            cipher_master=os.getenv("CIPHER_MASTER") or None,
            login_url=os.getenv("SALESFORCE_LOGIN_URL", DEFAULT_LOGIN_URL),
            redirect_url=os.getenv("SALESFORCE_REDIRECT_URL") or None,
        )

        logger.debug(
            "Loaded config: base_url=%s, action=%s, login_url=%s, cipher_configured=%s",
            config.action_hub_base_url,
            config.action_name,
            config.login_url,
            config.cipher_master is not None,
        )
        return config
