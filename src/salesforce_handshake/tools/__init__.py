"""MCP tools for the Salesforce handshake."""

from .handshake import register_handshake_tools

__all__ = ["register_handshake_tools"]
