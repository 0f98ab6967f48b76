# accounts/app/security/jwt.py
"""
JWT issuing and verification.

Two token kinds are minted, each with its own secret and lifetime:

- access token:  {_id, email, username}, short-lived, ACCESS_TOKEN_SECRET
- refresh token: {_id, jti},             long-lived,  REFRESH_TOKEN_SECRET

Nothing outside this module reads or builds token contents; everyone else
treats tokens as opaque strings.
"""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import jwt, JWTError

from accounts.app.core.config import Settings
from accounts.app.core.exceptions import InvalidTokenError


def create_token(
    data: Dict[str, Any],
    secret: str,
    expires_delta: timedelta,
    algorithm: str = "HS256",
) -> str:
    """
    Sign ``data`` with ``secret``; the token expires after ``expires_delta``.

    Args:
        data: Claims to embed in the token
        secret: Signing key
        expires_delta: Lifetime of the token
        algorithm: JWS algorithm

    Returns:
        str: The encoded JWT
    """
    to_encode = data.copy()
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Dict[str, Any]:
    """
    Verify signature and expiry, and return the token claims.

    Raises:
        InvalidTokenError: If the token is malformed, forged or expired
    """
    try:
        return jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError as e:
        raise InvalidTokenError(f"Invalid token: {e}") from e


class TokenIssuer:
    """Mints and checks access/refresh tokens from an explicit settings object."""

    def __init__(self, settings: Settings):
        self.algorithm = settings.ALGORITHM
        self.access_secret = settings.ACCESS_TOKEN_SECRET
        self.refresh_secret = settings.REFRESH_TOKEN_SECRET
        self.access_ttl = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        self.refresh_ttl = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

    def issue_access_token(self, user) -> str:
        return create_token(
            {"_id": user.id, "email": user.email, "username": user.username},
            self.access_secret,
            self.access_ttl,
            self.algorithm,
        )

    def issue_refresh_token(self, user) -> str:
        # jti keeps two refresh tokens minted in the same second distinct,
        # otherwise a rotation could hand back the token it replaced
        return create_token(
            {"_id": user.id, "jti": uuid.uuid4().hex},
            self.refresh_secret,
            self.refresh_ttl,
            self.algorithm,
        )

    def verify_access_token(self, token: str) -> Dict[str, Any]:
        return self._verify(token, self.access_secret)

    def verify_refresh_token(self, token: str) -> Dict[str, Any]:
        return self._verify(token, self.refresh_secret)

    def _verify(self, token: str, secret: str) -> Dict[str, Any]:
        payload = decode_token(token, secret, self.algorithm)
        if not payload.get("_id"):
            raise InvalidTokenError("Token has no subject")
        return payload
