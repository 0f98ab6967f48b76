# accounts/app/api/v1/endpoints/users.py
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Form, Request, Response, UploadFile, status

from accounts.app.api import deps
from accounts.app.core.config import Settings, get_settings
from accounts.app.models.user import User
from accounts.app.schemas.user import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshResponse,
    RefreshTokenRequest,
    RegisterResponse,
)
from accounts.app.services.auth_service import AuthService, RegistrationForm, TokenPair
from accounts.app.services.media import discard_local_file, save_upload

router = APIRouter()


def _set_token_cookies(response: Response, tokens: TokenPair, settings: Settings) -> None:
    response.set_cookie(
        deps.ACCESS_TOKEN_COOKIE,
        tokens.access_token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    response.set_cookie(
        deps.REFRESH_TOKEN_COOKIE,
        tokens.refresh_token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 86400,
    )


def _clear_token_cookies(response: Response, settings: Settings) -> None:
    for name in (deps.ACCESS_TOKEN_COOKIE, deps.REFRESH_TOKEN_COOKIE):
        response.delete_cookie(name, httponly=True, secure=settings.COOKIE_SECURE)


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
        full_name: Optional[str] = Form(None, alias="fullName"),
        email: Optional[str] = Form(None),
        password: Optional[str] = Form(None),
        username: Optional[str] = Form(None),
        avatar: Optional[UploadFile] = File(None),
        cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
        service: AuthService = Depends(deps.get_auth_service),
        settings: Settings = Depends(get_settings),
):
    avatar_path = await save_upload(avatar, settings.UPLOAD_TEMP_DIR)
    try:
        cover_image_path = await save_upload(cover_image, settings.UPLOAD_TEMP_DIR)
    except Exception:
        discard_local_file(avatar_path)
        raise

    form = RegistrationForm(
        full_name=full_name,
        email=email,
        password=password,
        username=username,
        avatar_path=avatar_path,
        cover_image_path=cover_image_path,
    )
    # register() removes both temp files once it is done
    created_user = await service.register(form)

    return RegisterResponse(
        status=status.HTTP_201_CREATED,
        message="User registered successfully",
        created_user=created_user,
    )


@router.post("/login", response_model=LoginResponse)
async def login(
        credentials: LoginRequest,
        response: Response,
        service: AuthService = Depends(deps.get_auth_service),
        settings: Settings = Depends(get_settings),
):
    result = await service.login(
        password=credentials.password,
        username=credentials.username,
        email=credentials.email,
    )
    _set_token_cookies(response, result.tokens, settings)

    return LoginResponse(
        status=status.HTTP_200_OK,
        message="Logged in successfully",
        user=result.user,
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
        response: Response,
        current_user: User = Depends(deps.get_current_user),
        service: AuthService = Depends(deps.get_auth_service),
        settings: Settings = Depends(get_settings),
):
    await service.logout(current_user)
    _clear_token_cookies(response, settings)
    return MessageResponse(status=status.HTTP_200_OK, message="User logged out successfully")


@router.post("/refresh-token", response_model=RefreshResponse)
async def refresh_access_token(
        request: Request,
        response: Response,
        payload: Optional[RefreshTokenRequest] = Body(None),
        service: AuthService = Depends(deps.get_auth_service),
        settings: Settings = Depends(get_settings),
):
    incoming = request.cookies.get(deps.REFRESH_TOKEN_COOKIE)
    if not incoming and payload is not None:
        incoming = payload.refresh_token

    tokens = await service.refresh_access_token(incoming)
    _set_token_cookies(response, tokens, settings)

    return RefreshResponse(
        status=status.HTTP_200_OK,
        message="Access token refreshed",
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )
