"""Identity provider session model.

The session is issued and validated by the external identity provider. The
console never inspects the token; it only threads it back to the provider.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


class Session(BaseModel):
    """Authenticated admin session."""

    access_token: str = Field(..., description="Bearer token issued by the identity provider")
    refresh_token: str | None = Field(None, description="Refresh token, if issued")
    user_email: str | None = Field(None, description="Email of the signed-in admin")
    expires_at: datetime | None = Field(None, description="Token expiry time")

    @classmethod
    def from_token_response(cls, data: dict[str, Any]) -> "Session":
        """Create a Session from the provider's password-grant response.

        Args:
            data: Token endpoint JSON payload

        Returns:
            Session: Parsed session
        """
        expires_at = None
        if data.get("expires_at") is not None:
            expires_at = datetime.fromtimestamp(int(data["expires_at"]), tz=UTC)

        user = data.get("user") or {}
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            user_email=user.get("email"),
            expires_at=expires_at,
        )
