"""Factory for authenticated Salesforce connections."""

from __future__ import annotations

import warnings

from simple_salesforce.exceptions import SalesforceAuthenticationFailed

from ..config import HandshakeConfig
from ..errors import LoginError
from ..logging_config import get_logger
from ..models import TokenPair
from .client import SalesforceConnection, SalesforceOAuth2

logger = get_logger("salesforce.connection")


class ConnectionFactory:
    """Builds SalesforceConnection instances for the rest of the integration."""

    def __init__(self, config: HandshakeConfig) -> None:
        self.config = config

    def from_tokens(
        self,
        client_id: str,
        client_secret: str,
        instance_url: str,
        tokens: TokenPair,
    ) -> SalesforceConnection:
        """Build a connection from previously issued OAuth tokens.

        No network call is made; the tokens are validated on first use.
        """
        oauth2 = SalesforceOAuth2(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=self.config.oauth_redirect_url,
            login_url=self.config.login_url,
        )
        return SalesforceConnection(
            oauth2=oauth2,
            instance_url=instance_url,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        )

    async def from_credentials(
        self,
        login_url: str,
        username: str,
        password: str,
        security_token: str,
    ) -> SalesforceConnection:
        """Log in with username, password and security token.

        Deprecated: the OAuth handshake should be used instead.

        Raises:
            LoginError: If Salesforce rejects the credentials or the login URL
                is not a salesforce.com host
        """
        warnings.warn(
            "Username/password login is deprecated; use the OAuth handshake instead",
            DeprecationWarning,
            stacklevel=2,
        )

        connection = SalesforceConnection(login_url=login_url)
        try:
            await connection.login(username, password + security_token)
        except SalesforceAuthenticationFailed as e:
            logger.error("Salesforce login failed for %s: %s", username, e)
            raise LoginError(f"Salesforce login failed: {e}") from e

        return connection
