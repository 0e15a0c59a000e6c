"""Main application entry point for the restaurant menu console.

This module provides the FastAPI application factory and configuration
for running the console locally or in production.
"""

import logging
import os

from fastapi import FastAPI

from menu_console.auth.identity_client import IdentityProviderClient
from menu_console.auth.session_cookie import SessionCookieSigner
from menu_console.auth.session_gate import SessionGate
from menu_console.handlers.web_handler import create_app
from menu_console.observability import configure_logging, setup_observability
from menu_console.services.menu_api_client import MenuApiClient
from menu_console.services.table_menu_service import TableMenuService

logger = logging.getLogger(__name__)


def create_menu_api_client() -> MenuApiClient:
    """Create the Menu API client from environment variables.

    Returns:
        MenuApiClient pointed at MENU_API_BASE_URL

    Raises:
        ValueError: If MENU_API_BASE_URL is not set
    """
    base_url = os.getenv("MENU_API_BASE_URL")
    if not base_url:
        raise ValueError("MENU_API_BASE_URL must be set in environment")

    timeout = float(os.getenv("MENU_API_TIMEOUT_SECONDS", "5"))
    logger.info(f"Menu API client configured - URL: {base_url}")
    return MenuApiClient(base_url=base_url, timeout=timeout)


def create_session_gate() -> SessionGate:
    """Create the session gate backed by the identity provider.

    Returns:
        SessionGate using IDENTITY_PROVIDER_URL and IDENTITY_PROVIDER_API_KEY

    Raises:
        ValueError: If the identity provider configuration is missing
    """
    provider_url = os.getenv("IDENTITY_PROVIDER_URL")
    provider_key = os.getenv("IDENTITY_PROVIDER_API_KEY")

    if not provider_url or not provider_key:
        raise ValueError(
            "IDENTITY_PROVIDER_URL and IDENTITY_PROVIDER_API_KEY must be set in environment"
        )

    logger.info(f"Identity provider configured - URL: {provider_url}")
    return SessionGate(IdentityProviderClient(base_url=provider_url, api_key=provider_key))


def create_session_signer() -> SessionCookieSigner:
    """Create the session cookie signer.

    Every instance serving the console must share SESSION_SECRET_KEY so that
    a browser stays signed in whichever instance handles its request.

    Raises:
        ValueError: If SESSION_SECRET_KEY is not set
    """
    secret_key = os.getenv("SESSION_SECRET_KEY")
    if not secret_key:
        raise ValueError("SESSION_SECRET_KEY must be set in environment")
    return SessionCookieSigner(secret_key=secret_key)


def create_application() -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    Returns:
        Configured FastAPI application instance
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Initializing restaurant menu console...")

    menu_api_client = create_menu_api_client()
    session_gate = create_session_gate()
    table_menu_service = TableMenuService(menu_api_client=menu_api_client)

    app = create_app(
        menu_api_client=menu_api_client,
        session_gate=session_gate,
        table_menu_service=table_menu_service,
        session_signer=create_session_signer(),
        currency_symbol=os.getenv("CURRENCY_SYMBOL", "₹"),
        secure_cookies=os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true",
    )

    setup_observability(app)

    logger.info("Restaurant menu console initialized successfully")
    return app


# Skip building the app during test collection; tests call create_application() directly.
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    app = FastAPI()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting development server on {host}:{port}")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
