"""Signed browser session cookie.

The cookie carries the browser's console id and, once signed in, the
identity provider's session. Any process holding the secret key can rebuild
the login from it, so the in-memory console store is only a cache of the
menu snapshot.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from jose import JWTError, jwt

from menu_console.models.session_models import Session

logger = logging.getLogger(__name__)


@dataclass
class SessionCookie:
    """Decoded cookie contents.

    Attributes:
        session_id: Key of this browser's console in the store
        session: Identity provider session, None until signed in
    """

    session_id: str
    session: Session | None = None

    @classmethod
    def new(cls) -> "SessionCookie":
        return cls(session_id=secrets.token_urlsafe(32))


class SessionCookieSigner:
    """Encodes SessionCookie values as HMAC-signed JWTs."""

    def __init__(self, secret_key: str, algorithm: str = "HS256") -> None:
        """Initialize the signer.

        Args:
            secret_key: Key used to sign and verify cookies
            algorithm: JWT signing algorithm
        """
        self.secret_key = secret_key
        self.algorithm = algorithm

    def dumps(self, cookie: SessionCookie) -> str:
        claims: dict[str, Any] = {"sid": cookie.session_id}
        session = cookie.session
        if session is not None:
            claims["access_token"] = session.access_token
            claims["refresh_token"] = session.refresh_token
            claims["email"] = session.user_email
            if session.expires_at is not None:
                claims["expires_at"] = int(session.expires_at.timestamp())
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def loads(self, value: str | None) -> SessionCookie | None:
        """Decode a cookie value.

        Args:
            value: Raw cookie value, if the browser sent one

        Returns:
            SessionCookie, or None if the value is missing, tampered with or malformed
        """
        if not value:
            return None
        try:
            claims = jwt.decode(value, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.warning(f"Rejected session cookie: {e}")
            return None

        session_id = claims.get("sid")
        if not isinstance(session_id, str) or not session_id:
            return None

        session = None
        if claims.get("access_token"):
            expires_at = None
            if claims.get("expires_at") is not None:
                expires_at = datetime.fromtimestamp(int(claims["expires_at"]), tz=UTC)
            session = Session(
                access_token=claims["access_token"],
                refresh_token=claims.get("refresh_token"),
                user_email=claims.get("email"),
                expires_at=expires_at,
            )
        return SessionCookie(session_id=session_id, session=session)
