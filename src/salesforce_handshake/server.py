"""FastMCP server setup and lifecycle management for the Salesforce handshake."""

from __future__ import annotations

import asyncio
import os
import signal
from contextlib import asynccontextmanager
from typing import Annotated, AsyncIterator

import msgspec
import typer
from dotenv import load_dotenv
from fastmcp import FastMCP

from .config import HandshakeConfig
from .context import get_oauth_helper, set_oauth_helper
from .logging_config import get_logger, setup_logging
from .oauth.helper import SalesforceOAuthHelper
from .routes import register_handshake_routes
from .tools import register_handshake_tools

load_dotenv()
setup_logging()

logger = get_logger("server")


class ServerConfig(msgspec.Struct, kw_only=True):
    """Server configuration."""

    # HTTP server settings
    port: int = 8000


class AppContext(msgspec.Struct, kw_only=True):
    """Application context shared across requests."""

    oauth_helper: SalesforceOAuthHelper
    config: ServerConfig


def _default_port() -> int:
    # Cloud platform standard: PORT first, then FASTMCP_PORT, then default
    return int(os.getenv("PORT") or os.getenv("FASTMCP_PORT") or "8000")


def get_config() -> ServerConfig:
    """Load configuration from environment variables."""
    port = _default_port()
    logger.debug("Loaded server config: port=%d", port)
    return ServerConfig(port=port)


@asynccontextmanager
async def app_lifespan(mcp: FastMCP) -> AsyncIterator[AppContext]:
    """Manage application lifecycle and shared resources.

    The OAuth helper is created with the server; the lifespan only makes
    sure its HTTP client is released on shutdown.
    """
    logger.info("Starting Salesforce handshake server")
    helper = get_oauth_helper()

    ctx = AppContext(
        oauth_helper=helper,
        config=get_config(),
    )

    try:
        logger.info("Server initialization complete")
        yield ctx
    finally:
        logger.info("Shutting down Salesforce handshake server")
        await helper.close()
        logger.info("Server shutdown complete")


def _mask_secret(value: str | None) -> str:
    """Mask sensitive values for display."""
    if not value:
        return "(not set)"
    if len(value) <= 8:
        return "****"
    return value[:4] + "****" + value[-4:]


def _print_config(transport: str, port: int, config: HandshakeConfig) -> None:
    """Print server configuration at startup."""
    sections: list[tuple[str, list[tuple[str, str]]]] = [
        (
            "Server",
            [
                ("Transport", transport),
                ("Port", str(port)),
                ("Log Level", os.getenv("LOG_LEVEL", "INFO")),
            ],
        ),
        (
            "Handshake",
            [
                ("Base URL", config.action_hub_base_url),
                ("Login Link", config.start_auth_url),
                ("Redirect URI", config.oauth_redirect_url),
                ("Cipher Key", _mask_secret(config.cipher_master)),
            ],
        ),
        (
            "Salesforce",
            [
                ("Login URL", config.login_url),
                ("Authorize URL", config.authorization_endpoint),
            ],
        ),
    ]

    logger.info("")
    logger.info("=" * 55)
    logger.info("  Salesforce Handshake Server Configuration")
    logger.info("=" * 55)

    for section_name, items in sections:
        logger.info("")
        logger.info("  [%s]", section_name)
        for key, value in items:
            logger.info("    %-20s %s", key, value)

    logger.info("")
    logger.info("=" * 55)

    # Print warnings for missing required values
    warnings: list[str] = []

    if not config.cipher_master:
        warnings.append("CIPHER_MASTER is required to encrypt handshake state")
    if transport == "http" and not os.getenv("ACTION_HUB_BASE_URL"):
        warnings.append("ACTION_HUB_BASE_URL should be set for OAuth redirects")

    for warning in warnings:
        logger.warning("  ! %s", warning)

    if warnings:
        logger.info("")


def create_server(helper: SalesforceOAuthHelper | None = None) -> FastMCP:
    """Create and configure the FastMCP server.

    Args:
        helper: OAuth helper to serve. Defaults to one built from the environment.

    Returns:
        Configured FastMCP server instance
    """
    logger.debug("Creating FastMCP server instance")

    helper = helper or SalesforceOAuthHelper.from_env()
    set_oauth_helper(helper)

    mcp = FastMCP(
        "Salesforce Handshake Server",
        lifespan=app_lifespan,
    )

    logger.debug("Registering handshake tools")
    register_handshake_tools(mcp)
    logger.debug("Registering handshake routes under %s", helper.config.action_path)
    register_handshake_routes(mcp, helper)

    logger.debug("Server creation complete")
    return mcp


async def run_server_async(transport: str, port: int) -> None:
    """Run the server with graceful shutdown support.

    Args:
        transport: Transport mode ('stdio' or 'http')
        port: Port number for HTTP transport
    """
    helper = SalesforceOAuthHelper.from_env()
    _print_config(transport, port, helper.config)
    server = create_server(helper)

    def handle_shutdown(sig: signal.Signals) -> None:
        logger.info("Received signal %s, initiating shutdown...", sig.name)

    # Set up signal handlers
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, handle_shutdown, sig)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler for SIGTERM
            pass

    logger.info("Starting server with transport: %s", transport)

    try:
        if transport == "http":
            await server.run_async(transport="http", port=port)
        else:
            await server.run_async(transport="stdio")
    except asyncio.CancelledError:
        logger.info("Server task cancelled")


app = typer.Typer(
    name="salesforce-handshake",
    help="Salesforce Handshake Server - encrypted-state OAuth handshake for Salesforce.",
    add_completion=False,
)


@app.command()
def main(
    transport: Annotated[
        str,
        typer.Option(
            "--transport",
            "-t",
            help="Transport mode: stdio, http",
        ),
    ] = "http",
    port: Annotated[
        int | None,
        typer.Option(
            "--port",
            "-p",
            help="Port for HTTP transport (default: from PORT env or 8000)",
        ),
    ] = None,
) -> None:
    """Run the Salesforce Handshake Server."""
    actual_port = port or _default_port()

    try:
        asyncio.run(run_server_async(transport, actual_port))
    except KeyboardInterrupt:
        # Fallback for platforms where signal handlers don't work
        logger.info("Server stopped by user")


if __name__ == "__main__":
    app()
