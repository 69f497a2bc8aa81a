"""OAuth handshake for Salesforce.

The handshake connects a data-destination action to Salesforce without
any server-side session: everything that has to survive the redirects
rides inside an encrypted ``state`` token.

Components:
    - StateCodec: Encrypts/decrypts the opaque state token
    - HandshakeInitiator: Builds the login form with the first-hop link
    - AuthorizationRedirectBuilder: Builds the Salesforce authorize URL
    - CallbackProcessor: Delivers the authorization code to the state URL
    - TokenExchanger: Exchanges the code for access/refresh tokens
    - SalesforceOAuthHelper: Wires all of the above together
"""

from .callback import CallbackProcessor
from .handshake import AuthorizationRedirectBuilder, HandshakeInitiator
from .helper import SalesforceOAuthHelper
from .state import StateCodec
from .tokens import TokenExchanger

__all__ = [
    # State encryption
    "StateCodec",
    # Handshake steps
    "HandshakeInitiator",
    "AuthorizationRedirectBuilder",
    "CallbackProcessor",
    "TokenExchanger",
    # Facade
    "SalesforceOAuthHelper",
]
