"""First two hops of the Salesforce OAuth handshake.

Flow:
    0. HandshakeInitiator builds a login link pointing at this service,
       carrying the encrypted state.
    1. The user follows the link; AuthorizationRedirectBuilder turns the
       request into a redirect to Salesforce's authorize endpoint. The
       encrypted state is forwarded unchanged so the callback can decrypt
       it again without any server-side storage.
    2. Salesforce sends the user back to the callback (see callback.py).
"""

from __future__ import annotations

from urllib.parse import urlencode

from ..config import HandshakeConfig
from ..errors import MissingParameterError
from ..logging_config import get_logger
from ..models import FormField, FormState, HandshakeState, LoginForm
from .state import StateCodec

logger = get_logger("oauth.handshake")

LOGIN_FIELD_LABEL = "Log in"
LOGIN_FIELD_DESCRIPTION = (
    "In order to send to this destination, you will need to log in"
    " once to your Salesforce account."
)


class HandshakeInitiator:
    """Builds the login form that starts the handshake."""

    def __init__(self, config: HandshakeConfig, codec: StateCodec) -> None:
        self.config = config
        self.codec = codec

    def start_auth_url(self, state_url: str, client_id: str) -> str:
        """Build the first-hop URL with the encrypted state attached.

        Args:
            state_url: URL the calling system wants notified with the code
            client_id: Salesforce Connected App client ID

        Raises:
            MissingParameterError: If either argument is empty
            EncryptionConfigError: If the state cannot be encrypted
        """
        if not state_url:
            raise MissingParameterError("state_url is required to start the OAuth handshake")
        if not client_id:
            raise MissingParameterError("client_id is required to start the OAuth handshake")

        encrypted_payload = self.codec.encode_state(
            HandshakeState(state_url=state_url, client_id=client_id)
        )
        # Fernet tokens are URL-safe base64 and are appended as is
        start_auth_url = f"{self.config.start_auth_url}?state={encrypted_payload}"

        logger.debug("Login form has start_auth_url=%s", start_auth_url)
        return start_auth_url

    def make_login_form(self, state_url: str, client_id: str) -> LoginForm:
        """Build the login form with a single OAuth link field."""
        start_auth_url = self.start_auth_url(state_url, client_id)

        return LoginForm(
            state=FormState(data="reset"),
            fields=[
                FormField(
                    name="login",
                    type="oauth_link",
                    label=LOGIN_FIELD_LABEL,
                    description=LOGIN_FIELD_DESCRIPTION,
                    oauth_url=start_auth_url,
                )
            ],
        )


class AuthorizationRedirectBuilder:
    """Builds the Salesforce authorization URL for step two."""

    def __init__(self, config: HandshakeConfig, codec: StateCodec) -> None:
        self.config = config
        self.codec = codec

    def oauth_url(self, redirect_uri: str, encrypted_state: str) -> str:
        """Compute the Salesforce authorize URL.

        Args:
            redirect_uri: URL Salesforce should send the user back to
            encrypted_state: State token from the login link, forwarded as is

        Returns:
            e.g. https://login.salesforce.com/services/oauth2/authorize?response_type=code&...

        Raises:
            MissingParameterError: If no state token was supplied
            DecryptionError: If the state token cannot be decrypted
        """
        if not encrypted_state:
            raise MissingParameterError("state is required to build the authorization URL")

        logger.debug("Beginning oauth flow with redirect url: %s", redirect_uri)

        payload = self.codec.decode_state(encrypted_state)

        query = urlencode(
            {
                "response_type": "code",
                "client_id": payload.client_id,
                "redirect_uri": redirect_uri,
                "state": encrypted_state,
            }
        )
        url = f"{self.config.authorization_endpoint}?{query}"

        logger.debug("Generated Salesforce auth url: %s", url)
        return url
