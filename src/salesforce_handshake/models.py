"""Data carried through the Salesforce OAuth handshake."""

from __future__ import annotations

import msgspec


class HandshakeState(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """State that must survive the round trip through Salesforce.

    Only ever transmitted encrypted. The JSON form uses camelCase keys
    (``stateUrl``, ``clientId``) in declaration order.
    """

    state_url: str
    client_id: str


class TokenExchangeState(msgspec.Struct, kw_only=True, frozen=True):
    """Authorization code and redirect URI handed back to the calling system.

    Both fields are required for a token exchange; they default to empty
    strings so that a missing field reaches validation instead of failing
    to decode.
    """

    code: str = ""
    redirect: str = ""


class TokenPair(msgspec.Struct, kw_only=True, frozen=True):
    """Result of a successful code exchange. The caller owns persistence."""

    access_token: str
    refresh_token: str
    instance_url: str | None = None


class FormState(msgspec.Struct, kw_only=True):
    data: str = "reset"


class FormField(msgspec.Struct, kw_only=True):
    """A single field of an action form."""

    name: str
    type: str
    label: str
    description: str = ""
    oauth_url: str | None = None


class LoginForm(msgspec.Struct, kw_only=True):
    """Login form presented to the end user to start the handshake."""

    fields: list[FormField] = msgspec.field(default_factory=list)
    state: FormState = msgspec.field(default_factory=FormState)


class OAuthCallbackParams(msgspec.Struct, kw_only=True, frozen=True):
    """Query parameters of Salesforce's redirect back to this service."""

    code: str | None = None
    state: str | None = None
    error: str | None = None
    error_description: str | None = None


class SalesforceTokenResponse(msgspec.Struct, kw_only=True):
    """Token endpoint response. Unknown fields are ignored."""

    access_token: str
    instance_url: str | None = None
    refresh_token: str | None = None
    id: str | None = None
    token_type: str | None = None
    issued_at: str | None = None
    scope: str | None = None


class SalesforceErrorResponse(msgspec.Struct, kw_only=True):
    error: str = "unknown_error"
    error_description: str = ""
