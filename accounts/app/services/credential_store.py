# accounts/app/services/credential_store.py
"""
Persistence of user records and their refresh-token slot.

Uniqueness of username/email is checked before writing and enforced again
by the unique constraints, so a racing duplicate still ends in a
ConflictError and no row is left behind.
"""
import logging
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select, update, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from accounts.app.core.exceptions import ConflictError, InvalidInputError
from accounts.app.models.user import User
from accounts.app.schemas.user import UserResponse
from accounts.app.security import hashing

logger = logging.getLogger(__name__)

DUPLICATE_USER_MESSAGE = "User with username or email already exists"


def _normalize(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    return value or None


class CredentialStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.id == user_id).execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def find_by_identity(
        self,
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Optional[User]:
        """Find a user matching either the username or the email given."""
        conditions = []
        username = _normalize(username)
        email = _normalize(email)
        if username:
            conditions.append(User.username == username)
        if email:
            conditions.append(User.email == email)
        if not conditions:
            return None

        result = await self.db.execute(select(User).where(or_(*conditions)))
        return result.scalars().first()

    async def identity_taken(self, username: str, email: str) -> bool:
        return await self.find_by_identity(username=username, email=email) is not None

    async def create(
        self,
        full_name: str,
        email: str,
        username: str,
        password: str,
        avatar: str,
        cover_image: str = "",
    ) -> User:
        """
        Insert a new user with a hashed password.

        Raises:
            InvalidInputError: A required field is blank after trimming
            ConflictError: Username or email is already taken
        """
        required = (full_name, email, username, password, avatar)
        if any(not (field or "").strip() for field in required):
            raise InvalidInputError("All fields are required")

        username = _normalize(username)
        email = _normalize(email)
        if await self.identity_taken(username, email):
            raise ConflictError(DUPLICATE_USER_MESSAGE)

        password_hash = await run_in_threadpool(hashing.get_password_hash, password)

        user = User(
            full_name=full_name.strip(),
            email=email,
            username=username,
            password=password_hash,
            avatar=avatar,
            cover_image=cover_image or "",
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError(DUPLICATE_USER_MESSAGE) from e
        await self.db.refresh(user)

        logger.info("Created user %s (%s)", user.id, username)
        return user

    async def verify_password(self, user: User, plaintext: str) -> bool:
        return await run_in_threadpool(hashing.verify_password, plaintext, user.password)

    async def set_refresh_token(self, user_id: str, token: Optional[str]) -> None:
        """
        Overwrite the refresh-token slot; None clears it.

        A single UPDATE of one column: concurrent writers race and the
        last one wins, other fields are left as they are.
        """
        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(refresh_token=token or None)
        )
        await self.db.commit()

    @staticmethod
    def public_view(user: User) -> UserResponse:
        return UserResponse.model_validate(user)
