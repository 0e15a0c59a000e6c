"""Session gate for the admin console.

Decides whether an admin browser session is authenticated. The identity
provider owns the session lifecycle; the gate only asks it.
"""

import logging

from menu_console.auth.identity_client import IdentityProviderClient, IdentityProviderError
from menu_console.models.session_models import Session
from menu_console.observability.metrics import record_login_attempt

logger = logging.getLogger(__name__)


class LoginValidationError(ValueError):
    """Raised before any provider call when credentials are missing."""


class SessionGate:
    """Checks, opens and closes admin sessions against the identity provider.

    A single failed attempt is reported to the caller and never retried.
    """

    def __init__(self, identity_client: IdentityProviderClient) -> None:
        """Initialize the SessionGate.

        Args:
            identity_client: Client for the external identity provider
        """
        self.identity_client = identity_client

    async def check_session(self, session: Session | None) -> Session | None:
        """Confirm that a stored session is still accepted by the provider.

        Args:
            session: Session held for this browser, if any

        Returns:
            The session if still valid, None otherwise

        Raises:
            IdentityProviderError: If the provider cannot be reached
        """
        if session is None:
            return None

        user = await self.identity_client.get_user(session.access_token)
        if user is None:
            logger.info("Stored admin session is no longer valid")
            return None

        return session

    async def login(self, email: str, password: str) -> Session:
        """Open a session with email and password.

        Args:
            email: Admin email
            password: Admin password

        Returns:
            The new session

        Raises:
            LoginValidationError: If email or password is empty
            IdentityProviderError: If the provider rejects the credentials
        """
        if not email.strip() or not password:
            raise LoginValidationError("Email and password are required")

        try:
            session = await self.identity_client.sign_in_with_password(email.strip(), password)
        except IdentityProviderError:
            record_login_attempt(success=False)
            raise

        record_login_attempt(success=True)
        logger.info("Admin signed in")
        return session

    async def logout(self, session: Session | None) -> None:
        """Close a session at the provider.

        The caller discards its local session regardless; a provider failure
        is only logged.

        Args:
            session: Session to close, if any
        """
        if session is None:
            return

        try:
            await self.identity_client.sign_out(session.access_token)
            logger.info("Admin signed out")
        except IdentityProviderError as e:
            logger.warning(f"Identity provider sign-out failed, discarding local session: {e}")
