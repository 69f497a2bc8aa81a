"""Error types raised by the Salesforce handshake.

One type per failure kind so callers can tell configuration problems,
tampered state, caller mistakes and upstream rejections apart. None of
them are retried: a failed handshake has to be restarted with a fresh
state and authorization code.
"""

from __future__ import annotations


class HandshakeError(Exception):
    """Base class for all handshake failures."""


class EncryptionConfigError(HandshakeError):
    """The state could not be encrypted (no key, or an unusable key)."""


class DecryptionError(HandshakeError):
    """The state token could not be decrypted.

    Raised for malformed or tampered tokens, tokens encrypted under a
    different key, and when no key is configured at all.
    """


class MissingParameterError(HandshakeError, ValueError):
    """A required request parameter was empty or absent."""


class InvalidStateError(HandshakeError, ValueError):
    """The token exchange state lacks a code or redirect URI."""


class NotificationDeliveryError(HandshakeError):
    """The callback notification to the state URL failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SalesforceOAuthError(HandshakeError):
    """Salesforce answered an OAuth request with an error payload."""

    def __init__(self, error: str, description: str = "", status_code: int | None = None) -> None:
        message = f"{error}: {description}" if description else error
        super().__init__(message)
        self.error = error
        self.description = description
        self.status_code = status_code


class TokenExchangeError(HandshakeError):
    """Salesforce rejected the authorization code exchange."""


class LoginError(HandshakeError):
    """Username/password login to Salesforce failed."""
