"""Client for the external identity provider.

The provider speaks the GoTrue REST dialect (as hosted by Supabase): a
password grant on the token endpoint, a user lookup to validate a bearer
token, and a logout endpoint that revokes it.
"""

import logging
from typing import Any

import httpx

from menu_console.models.session_models import Session
from menu_console.observability.decorators import traced

logger = logging.getLogger(__name__)


class IdentityProviderError(Exception):
    """Raised when the identity provider rejects a call or cannot be reached.

    Attributes:
        status_code: HTTP status of a rejected call, None for network errors
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class IdentityProviderClient:
    """HTTP client for the identity provider's session API."""

    def __init__(self, base_url: str, api_key: str, timeout: float = 5.0) -> None:
        """Initialize the identity provider client.

        Args:
            base_url: Provider project URL (e.g., "https://xyz.supabase.co")
            api_key: Public (anon) key sent as the apikey header
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"apikey": self.api_key}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Prefer the provider's own description over the bare status."""
        try:
            body: Any = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            for key in ("error_description", "msg", "message", "error"):
                if body.get(key):
                    return str(body[key])
        return f"HTTP {response.status_code}"

    @traced("identity.sign_in_with_password", service_name="menu-console")
    async def sign_in_with_password(self, email: str, password: str) -> Session:
        """Exchange email and password for a session.

        Args:
            email: Admin email
            password: Admin password

        Returns:
            Session issued by the provider

        Raises:
            IdentityProviderError: If the credentials are rejected or the call fails
        """
        url = f"{self.base_url}/auth/v1/token"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    url,
                    params={"grant_type": "password"},
                    json={"email": email, "password": password},
                    headers=self._headers(),
                )
        except httpx.RequestError as e:
            logger.error(f"Identity provider unreachable during sign-in: {e}")
            raise IdentityProviderError(str(e) or type(e).__name__) from e

        if response.status_code != 200:
            logger.warning(f"Sign-in rejected with HTTP {response.status_code}")
            raise IdentityProviderError(self._error_message(response), response.status_code)

        try:
            return Session.from_token_response(response.json())
        except (ValueError, KeyError, TypeError) as e:
            raise IdentityProviderError(f"Invalid token response: {e}") from e

    @traced("identity.get_user", service_name="menu-console")
    async def get_user(self, access_token: str) -> dict[str, Any] | None:
        """Look up the user behind a bearer token.

        Args:
            access_token: Token from a previously issued session

        Returns:
            User payload if the token is still valid, None if the provider rejects it

        Raises:
            IdentityProviderError: If the provider cannot be reached
        """
        url = f"{self.base_url}/auth/v1/user"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, headers=self._headers(access_token))
        except httpx.RequestError as e:
            logger.error(f"Identity provider unreachable during session check: {e}")
            raise IdentityProviderError(str(e) or type(e).__name__) from e

        if response.status_code in (401, 403):
            return None
        if response.status_code != 200:
            raise IdentityProviderError(self._error_message(response), response.status_code)

        try:
            user = response.json()
        except ValueError as e:
            raise IdentityProviderError(f"Invalid user response: {e}") from e
        if not isinstance(user, dict):
            raise IdentityProviderError("Invalid user response: expected an object")
        return user

    @traced("identity.sign_out", service_name="menu-console")
    async def sign_out(self, access_token: str) -> None:
        """Revoke a session at the provider.

        Args:
            access_token: Token of the session to revoke

        Raises:
            IdentityProviderError: If the provider rejects the call or cannot be reached
        """
        url = f"{self.base_url}/auth/v1/logout"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, headers=self._headers(access_token))
        except httpx.RequestError as e:
            raise IdentityProviderError(str(e) or type(e).__name__) from e

        # An already-expired token is as good as signed out.
        if response.status_code not in (200, 204, 401):
            raise IdentityProviderError(self._error_message(response), response.status_code)
