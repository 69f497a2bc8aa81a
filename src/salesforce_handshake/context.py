"""Module-level context management for application-wide singletons.

This module provides a decoupled way to access the SalesforceOAuthHelper
from MCP tools without passing it through function parameters.

Note: We use a simple module-level variable instead of ContextVar because
the helper is an application-wide singleton, not request-scoped data.
All per-handshake state travels in the encrypted token.

Usage:
    # In server.py:
    from .context import set_oauth_helper
    set_oauth_helper(helper)

    # In tools:
    from .context import get_oauth_helper
    helper = get_oauth_helper()
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .oauth.helper import SalesforceOAuthHelper

_oauth_helper: "SalesforceOAuthHelper | None" = None


def set_oauth_helper(helper: "SalesforceOAuthHelper | None") -> None:
    """Set the OAuth helper for global access.

    Args:
        helper: The SalesforceOAuthHelper instance to store, or None to reset
    """
    global _oauth_helper
    _oauth_helper = helper


def get_oauth_helper() -> "SalesforceOAuthHelper":
    """Get the OAuth helper.

    Raises:
        RuntimeError: If the helper has not been initialized
    """
    if _oauth_helper is None:
        raise RuntimeError("OAuth helper not initialized")
    return _oauth_helper
