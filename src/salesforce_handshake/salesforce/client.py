"""Thin Salesforce client used by the handshake.

- SalesforceOAuth2: Connected App credentials and OAuth endpoints
- SalesforceConnection: an authenticated (or authenticatable) handle,
  either from OAuth tokens or from a username/password login

The authorization code exchange is a plain form POST against the token
endpoint. The legacy username/password login and all downstream data
calls go through simple-salesforce.
"""

from __future__ import annotations

import asyncio
from urllib.parse import urlparse

import httpx
import msgspec
from simple_salesforce import Salesforce, SalesforceLogin

from ..config import DEFAULT_LOGIN_URL
from ..errors import LoginError, SalesforceOAuthError
from ..logging_config import get_logger
from ..models import SalesforceErrorResponse, SalesforceTokenResponse

logger = get_logger("salesforce.client")


def _login_domain(login_url: str) -> str:
    """Turn a login URL into the domain prefix simple-salesforce expects.

    https://login.salesforce.com -> login
    https://acme.my.salesforce.com -> acme.my

    simple-salesforce always appends ".salesforce.com", so other hosts
    (lightning.force.com, government clouds) cannot be used for SOAP login.

    Raises:
        LoginError: If the host is not under salesforce.com
    """
    host = urlparse(login_url).netloc or login_url.split("/")[0]
    if not host.endswith(".salesforce.com"):
        raise LoginError(f"Unsupported Salesforce login URL for username/password login: {login_url}")
    return host.removesuffix(".salesforce.com")


class SalesforceOAuth2(msgspec.Struct, kw_only=True):
    """Salesforce Connected App OAuth2 settings."""

    client_id: str
    client_secret: str = ""
    redirect_uri: str | None = None
    login_url: str = DEFAULT_LOGIN_URL

    def __post_init__(self) -> None:
        self.login_url = self.login_url.rstrip("/")

    @property
    def authorization_endpoint(self) -> str:
        return f"{self.login_url}/services/oauth2/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.login_url}/services/oauth2/token"

    @property
    def revocation_endpoint(self) -> str:
        return f"{self.login_url}/services/oauth2/revoke"


class SalesforceConnection:
    """Authenticated handle to a Salesforce org.

    Built either from OAuth tokens::

        SalesforceConnection(oauth2=oauth2, instance_url=..., access_token=..., refresh_token=...)

    or from a login URL, followed by :meth:`login`::

        conn = SalesforceConnection(login_url="https://login.salesforce.com")
        await conn.login(username, password + security_token)

    Token validity is only established on first use. The caller owns the
    connection lifecycle and should call :meth:`close` when done.
    """

    def __init__(
        self,
        *,
        oauth2: SalesforceOAuth2 | None = None,
        instance_url: str | None = None,
        access_token: str | None = None,
        refresh_token: str | None = None,
        login_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.oauth2 = oauth2
        self.login_url = (login_url or (oauth2.login_url if oauth2 else DEFAULT_LOGIN_URL)).rstrip("/")
        self.instance_url = instance_url.rstrip("/") if instance_url else None
        self.access_token = access_token
        self.refresh_token = refresh_token
        self._http_client = http_client
        self._owns_http_client = False
        self._sf: Salesforce | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token and self.instance_url)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._http_client is None:
            logger.debug("Creating async HTTP client for Salesforce OAuth")
            self._http_client = httpx.AsyncClient(timeout=30.0)
            self._owns_http_client = True
        return self._http_client

    async def authorize(self, code: str) -> SalesforceTokenResponse:
        """Exchange an authorization code for tokens.

        On success the connection holds the access token, refresh token and
        instance URL returned by Salesforce.

        Raises:
            SalesforceOAuthError: If Salesforce rejects the code
            httpx.HTTPError: On transport failures
            msgspec.DecodeError: If the token response cannot be decoded
        """
        if self.oauth2 is None:
            raise SalesforceOAuthError("invalid_client", "No OAuth2 client configured for this connection")

        client = await self._get_client()
        response = await client.post(
            self.oauth2.token_endpoint,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "client_id": self.oauth2.client_id,
                "client_secret": self.oauth2.client_secret,
                "redirect_uri": self.oauth2.redirect_uri or "",
            },
            headers={"Accept": "application/json"},
        )

        if response.status_code != 200:
            try:
                error = msgspec.json.decode(response.content, type=SalesforceErrorResponse)
            except msgspec.DecodeError:
                error = SalesforceErrorResponse(
                    error=f"http_{response.status_code}",
                    error_description=response.text[:200],
                )
            raise SalesforceOAuthError(
                error.error,
                error.error_description,
                status_code=response.status_code,
            )

        token = msgspec.json.decode(response.content, type=SalesforceTokenResponse)

        self.access_token = token.access_token
        self.refresh_token = token.refresh_token
        if token.instance_url:
            self.instance_url = token.instance_url.rstrip("/")
        self._sf = None

        logger.info("Authorized Salesforce connection: instance_url=%s", self.instance_url)
        return token

    async def login(self, username: str, password: str) -> None:
        """Log in with username and password (SOAP login).

        ``password`` is expected to already carry the security token
        appended, per Salesforce's legacy convention.

        Raises:
            LoginError: If the login URL is not a salesforce.com host
            simple_salesforce.exceptions.SalesforceAuthenticationFailed: On bad credentials
        """
        domain = _login_domain(self.login_url)
        logger.debug("Logging in to Salesforce: domain=%s, username=%s", domain, username)

        session_id, sf_instance = await asyncio.to_thread(
            SalesforceLogin,
            username=username,
            password=password,
            security_token="",
            domain=domain,
        )

        self.access_token = session_id
        self.instance_url = f"https://{sf_instance}"
        self._sf = None

        logger.info("Logged in to Salesforce: instance_url=%s", self.instance_url)

    @property
    def client(self) -> Salesforce:
        """simple-salesforce client bound to the current session.

        Raises:
            RuntimeError: If the connection has no access token or instance URL
        """
        if not self.is_authenticated:
            raise RuntimeError("Salesforce connection is not authenticated")
        if self._sf is None:
            self._sf = Salesforce(instance_url=self.instance_url, session_id=self.access_token)
        return self._sf

    async def close(self) -> None:
        """Close the HTTP client if this connection created it."""
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
        self._http_client = None
        self._owns_http_client = False
