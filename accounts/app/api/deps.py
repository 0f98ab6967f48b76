# accounts/app/api/deps.py
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from accounts.app.core.config import Settings, get_settings
from accounts.app.core.exceptions import InvalidTokenError, UnauthorizedError
from accounts.app.db.base import get_db
from accounts.app.models.user import User
from accounts.app.security.jwt import TokenIssuer
from accounts.app.services.auth_service import AuthService
from accounts.app.services.credential_store import CredentialStore
from accounts.app.services.media import MediaUploader

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"

# auto_error=False: the token may come from the cookie instead
bearer_scheme = HTTPBearer(auto_error=False)


def get_token_issuer(settings: Settings = Depends(get_settings)) -> TokenIssuer:
    return TokenIssuer(settings)


def get_media_uploader(settings: Settings = Depends(get_settings)) -> MediaUploader:
    return MediaUploader(settings)


def get_credential_store(db: AsyncSession = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db)


def get_auth_service(
        store: CredentialStore = Depends(get_credential_store),
        issuer: TokenIssuer = Depends(get_token_issuer),
        uploader: MediaUploader = Depends(get_media_uploader),
) -> AuthService:
    return AuthService(store, issuer, uploader)


async def get_current_user(
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
        store: CredentialStore = Depends(get_credential_store),
        issuer: TokenIssuer = Depends(get_token_issuer),
) -> User:
    """
    Resolve the caller from the access token.

    The token is read from the accessToken cookie first, then from an
    ``Authorization: Bearer`` header.
    """
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token and credentials is not None:
        token = credentials.credentials

    if not token:
        raise UnauthorizedError("Unauthorized request")

    try:
        claims = issuer.verify_access_token(token)
    except InvalidTokenError as e:
        raise UnauthorizedError("Invalid access token") from e

    user = await store.find_by_id(str(claims["_id"]))
    if user is None:
        raise UnauthorizedError("Invalid access token")

    return user
