"""Salesforce connection handling."""

from .client import SalesforceConnection, SalesforceOAuth2
from .connection import ConnectionFactory

__all__ = [
    "ConnectionFactory",
    "SalesforceConnection",
    "SalesforceOAuth2",
]
