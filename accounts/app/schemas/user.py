# accounts/app/schemas/user.py
"""
Request/response schemas for the user endpoints.

JSON keys are camelCase on the wire (fullName, accessToken, ...) while the
Python side keeps snake_case attribute names.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Public view of a user: NEVER includes password or refresh_token
class UserResponse(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: str
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    username: Optional[str] = None
    password: str = ""


class RefreshTokenRequest(CamelModel):
    refresh_token: Optional[str] = None


class MessageResponse(CamelModel):
    status: int
    message: str


class RegisterResponse(MessageResponse):
    created_user: UserResponse


class LoginResponse(MessageResponse):
    user: UserResponse
    access_token: str
    refresh_token: str


class RefreshResponse(MessageResponse):
    access_token: str
    refresh_token: str
