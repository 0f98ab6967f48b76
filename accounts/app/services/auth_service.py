# accounts/app/services/auth_service.py
"""
Registration, login, logout and refresh-token rotation.

A session is Anonymous until login hands out an access/refresh pair, and
goes back to Anonymous on logout or when its refresh token is superseded.
Each user has a single refresh-token slot: every login or refresh
overwrites it, so a refresh token that has been rotated out can never be
used again.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from jose import JWTError
from passlib.exc import MissingBackendError
from sqlalchemy.exc import SQLAlchemyError

from accounts.app.core.exceptions import (
    AccountError,
    ConflictError,
    InternalError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidTokenError,
    NotFoundError,
    UnauthorizedError,
)
from accounts.app.models.user import User
from accounts.app.schemas.user import UserResponse
from accounts.app.security.jwt import TokenIssuer
from accounts.app.services.credential_store import CredentialStore, DUPLICATE_USER_MESSAGE
from accounts.app.services.media import MediaUploader, discard_local_file

logger = logging.getLogger(__name__)

# Errors from the store, the hasher or the signer that callers must not see
COLLABORATOR_ERRORS = (SQLAlchemyError, MissingBackendError, JWTError, ValueError)


@dataclass
class RegistrationForm:
    full_name: Optional[str]
    email: Optional[str]
    password: Optional[str]
    username: Optional[str]
    avatar_path: Optional[Path] = None
    cover_image_path: Optional[Path] = None


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass
class LoginResult:
    user: UserResponse
    tokens: TokenPair


class AuthService:
    """Session lifecycle on top of the credential store and token issuer."""

    def __init__(self, store: CredentialStore, issuer: TokenIssuer, uploader: MediaUploader):
        self.store = store
        self.issuer = issuer
        self.uploader = uploader

    # -------------------------------------- helpers --------------------------------------
    async def _issue_tokens(self, user: User) -> TokenPair:
        """Mint a fresh pair and store the refresh token in the user's slot."""
        try:
            tokens = TokenPair(
                access_token=self.issuer.issue_access_token(user),
                refresh_token=self.issuer.issue_refresh_token(user),
            )
            await self.store.set_refresh_token(user.id, tokens.refresh_token)
        except COLLABORATOR_ERRORS as e:
            logger.exception("Token generation failed for user %s", user.id)
            raise InternalError("Something went wrong while generating tokens") from e
        return tokens

    # -------------------------------------- register --------------------------------------
    async def register(self, form: RegistrationForm) -> UserResponse:
        """
        Create an account.

        Raises:
            InvalidInputError: Blank field or missing/failed avatar
            ConflictError: Username or email already taken
            InternalError: The new record could not be read back
        """
        try:
            return await self._register(form)
        except AccountError:
            raise
        except COLLABORATOR_ERRORS as e:
            logger.exception("Registration failed")
            raise InternalError("Something went wrong while registering the user") from e
        finally:
            # No-op for files the uploader already removed
            discard_local_file(form.avatar_path)
            discard_local_file(form.cover_image_path)

    async def _register(self, form: RegistrationForm) -> UserResponse:
        fields = (form.full_name, form.email, form.password, form.username)
        if any(not (field or "").strip() for field in fields):
            raise InvalidInputError("All fields are required")

        if await self.store.identity_taken(form.username, form.email):
            raise ConflictError(DUPLICATE_USER_MESSAGE)

        if form.avatar_path is None:
            raise InvalidInputError("Avatar file is required")

        avatar = await self.uploader.upload(form.avatar_path)
        cover_image = await self.uploader.upload(form.cover_image_path)
        if avatar is None:
            raise InvalidInputError("Avatar file is required")

        user = await self.store.create(
            full_name=form.full_name,
            email=form.email,
            username=form.username,
            password=form.password,
            avatar=avatar.url,
            cover_image=cover_image.url if cover_image else "",
        )

        created_user = await self.store.find_by_id(user.id)
        if created_user is None:
            raise InternalError("Something went wrong while registering the user")

        logger.info("Registered user %s", created_user.id)
        return self.store.public_view(created_user)

    # -------------------------------------- login --------------------------------------
    async def login(
        self,
        password: Optional[str],
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> LoginResult:
        """
        Check credentials and start a session.

        The "does not exist" and "invalid credentials" messages differ; that
        is how clients have always seen it and is kept as is.
        """
        if not ((username or "").strip() or (email or "").strip()):
            raise InvalidInputError("Username or email is required")

        try:
            user = await self.store.find_by_identity(username=username, email=email)
            if user is None:
                logger.info("Login failed: unknown user")
                raise NotFoundError("User does not exist")

            if not await self.store.verify_password(user, password or ""):
                logger.info("Login failed: bad password for user %s", user.id)
                raise InvalidCredentialsError("Invalid user credentials")
        except COLLABORATOR_ERRORS as e:
            logger.exception("Login lookup failed")
            raise InternalError("Something went wrong while logging in") from e

        public_user = self.store.public_view(user)
        tokens = await self._issue_tokens(user)

        logger.info("User %s logged in", user.id)
        return LoginResult(user=public_user, tokens=tokens)

    # -------------------------------------- logout --------------------------------------
    async def logout(self, user: User) -> None:
        """Clear the caller's refresh slot. Clearing an empty slot is fine."""
        try:
            await self.store.set_refresh_token(user.id, None)
        except SQLAlchemyError as e:
            logger.exception("Logout failed for user %s", user.id)
            raise InternalError("Something went wrong while logging out") from e
        logger.info("User %s logged out", user.id)

    # -------------------------------------- refresh --------------------------------------
    async def refresh_access_token(self, incoming_refresh_token: Optional[str]) -> TokenPair:
        """
        Rotate the refresh token and mint a new access token.

        Only the value currently in the user's slot is accepted; a token that
        was already rotated out fails even if its signature is still valid.
        """
        if not incoming_refresh_token:
            raise UnauthorizedError("Unauthorized request")

        try:
            claims = self.issuer.verify_refresh_token(incoming_refresh_token)
        except InvalidTokenError as e:
            raise UnauthorizedError("Invalid refresh token") from e

        try:
            user = await self.store.find_by_id(str(claims["_id"]))
        except SQLAlchemyError as e:
            logger.exception("Refresh lookup failed")
            raise InternalError("Something went wrong while refreshing the token") from e

        if user is None:
            raise UnauthorizedError("Invalid refresh token")

        if incoming_refresh_token != user.refresh_token:
            logger.warning("Rejected stale refresh token for user %s", user.id)
            raise UnauthorizedError("Refresh token is expired or used")

        tokens = await self._issue_tokens(user)
        logger.info("Rotated refresh token for user %s", user.id)
        return tokens
