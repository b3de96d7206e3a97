from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status
from fastapi.responses import JSONResponse

from app.accounts.core.config import Settings, get_settings
from app.accounts.core.errors import Unauthorized
from app.accounts.core.tokens import REFRESH_COOKIE_NAME, clear_auth_cookies, set_auth_cookies
from app.accounts.dependencies.auth import get_auth_service, get_current_user, get_media_store
from app.accounts.models.user import User
from app.accounts.schemas.user import (
    ChangePasswordRequest,
    LoginData,
    LoginRequest,
    RefreshRequest,
    TokenPairData,
    UpdateAccountRequest,
    UserPublic,
    api_error,
    api_response,
    public_user,
)
from app.accounts.services.auth_service import AuthService
from app.accounts.services.media import LocalMediaStore

user_router = APIRouter(prefix="/api/v1/users", tags=["users"])


# ──────────────────────────────────────────────────────────────────────────────
# 회원가입 / 로그인 / 로그아웃 / RT 회전
# ──────────────────────────────────────────────────────────────────────────────
@user_router.post("/register", status_code=status.HTTP_201_CREATED)
def register_user(
    full_name: Optional[str] = Form(None, alias="fullName"),
    email: Optional[str] = Form(None),
    username: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    auth: AuthService = Depends(get_auth_service),
    media: LocalMediaStore = Depends(get_media_store),
):
    # 검증/중복 검사를 먼저 해서 거절될 요청의 파일은 업로드하지 않음
    auth.ensure_registrable(full_name=full_name, email=email, username=username, password=password)

    avatar_ref = media.save(avatar)
    cover_ref = None
    try:
        cover_ref = media.save(cover_image)
        user = auth.register(
            full_name=full_name,
            email=email,
            username=username,
            password=password,
            avatar_ref=avatar_ref,
            cover_image_ref=cover_ref,
        )
    except Exception:
        # 실패한 가입은 업로드 파일을 남기지 않는다
        media.delete(avatar_ref)
        media.delete(cover_ref)
        raise

    return api_response(status.HTTP_201_CREATED, public_user(user), "User registered successfully")


@user_router.post("/login")
def login_user(
    body: LoginRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    result = auth.login(username=body.username, email=body.email, password=body.password)
    set_auth_cookies(response, result.access_token, result.refresh_token, settings)
    data = LoginData(
        user=UserPublic.model_validate(result.user),
        access_token=result.access_token,
        refresh_token=result.refresh_token,
    )
    return api_response(status.HTTP_200_OK, data.model_dump(by_alias=True, mode="json"), "User logged in successfully")


@user_router.post("/logout")
def logout_user(
    response: Response,
    user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    auth.logout(user.id)
    clear_auth_cookies(response, settings)
    return api_response(status.HTTP_200_OK, {}, "User logged out")


@user_router.post("/refresh-token")
def refresh_access_token(
    request: Request,
    response: Response,
    body: Optional[RefreshRequest] = None,
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    incoming = request.cookies.get(REFRESH_COOKIE_NAME) or (body.refresh_token if body else None)
    try:
        pair = auth.refresh(incoming)
    except Unauthorized as exc:
        # 예외로 던지면 response 쿠키 변경이 버려지므로 직접 응답을 만든다
        failed = JSONResponse(
            status_code=exc.status_code,
            content=api_error(exc.status_code, exc.message, exc.errors),
            headers={"WWW-Authenticate": "Bearer"},
        )
        clear_auth_cookies(failed, settings)
        return failed

    set_auth_cookies(response, pair.access_token, pair.refresh_token, settings)
    data = TokenPairData(access_token=pair.access_token, refresh_token=pair.refresh_token)
    return api_response(status.HTTP_200_OK, data.model_dump(by_alias=True, mode="json"), "Access token refreshed")


# ──────────────────────────────────────────────────────────────────────────────
# 계정 / 프로필
# ──────────────────────────────────────────────────────────────────────────────
@user_router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    auth.change_password(user.id, body.old_password, body.new_password)
    return api_response(status.HTTP_200_OK, {}, "Password changed successfully")


@user_router.get("/current-user")
def get_current_user_profile(user: User = Depends(get_current_user)):
    return api_response(status.HTTP_200_OK, public_user(user), "User fetched successfully")


@user_router.patch("/update-account")
def update_account_details(
    body: UpdateAccountRequest,
    user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    updated = auth.update_account(user.id, full_name=body.full_name, email=body.email)
    return api_response(status.HTTP_200_OK, public_user(updated), "Account details updated successfully")


@user_router.patch("/avatar")
def update_user_avatar(
    avatar: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
    media: LocalMediaStore = Depends(get_media_store),
):
    previous = user.avatar
    ref = media.save(avatar)
    try:
        updated = auth.update_avatar(user.id, ref)
    except Exception:
        media.delete(ref)
        raise
    media.delete(previous)
    return api_response(status.HTTP_200_OK, public_user(updated), "Avatar updated successfully")


@user_router.patch("/cover-image")
def update_user_cover_image(
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
    media: LocalMediaStore = Depends(get_media_store),
):
    previous = user.cover_image
    ref = media.save(cover_image)
    try:
        updated = auth.update_cover_image(user.id, ref)
    except Exception:
        media.delete(ref)
        raise
    media.delete(previous)
    return api_response(status.HTTP_200_OK, public_user(updated), "Cover image updated successfully")
