"""Encrypted-state OAuth handshake for Salesforce data-destination actions."""

from .config import HandshakeConfig
from .errors import (
    DecryptionError,
    EncryptionConfigError,
    HandshakeError,
    InvalidStateError,
    LoginError,
    MissingParameterError,
    NotificationDeliveryError,
    SalesforceOAuthError,
    TokenExchangeError,
)
from .models import HandshakeState, LoginForm, TokenExchangeState, TokenPair

__all__ = [
    "HandshakeConfig",
    # Data
    "HandshakeState",
    "LoginForm",
    "TokenExchangeState",
    "TokenPair",
    # Errors
    "HandshakeError",
    "EncryptionConfigError",
    "DecryptionError",
    "MissingParameterError",
    "InvalidStateError",
    "NotificationDeliveryError",
    "SalesforceOAuthError",
    "TokenExchangeError",
    "LoginError",
]
