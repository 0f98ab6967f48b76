# accounts/app/models/user.py
import uuid

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from accounts.app.db.base import Base


def _new_user_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=_new_user_id)

    # Stored lowercase; uniqueness is case-insensitive in practice
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), index=True, nullable=False)

    # Hosted media URLs (Cloudinary)
    avatar = Column(String(1024), nullable=False)
    cover_image = Column(String(1024), nullable=False, default="")

    # bcrypt hash, never the plaintext
    password = Column(String(255), nullable=False)

    # The one refresh token currently allowed for this user (NULL = none)
    refresh_token = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )
