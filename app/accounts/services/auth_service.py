from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from app.accounts.core.errors import (
    Conflict,
    ExpiredToken,
    NotFound,
    TokenError,
    Unauthorized,
    ValidationError,
)
from app.accounts.core.security import password_too_long
from app.accounts.core.tokens import TokenService
from app.accounts.models.user import User
from app.accounts.services.user_store import UserStore

log = logging.getLogger(__name__)


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass
class LoginResult:
    user: User
    access_token: str
    refresh_token: str


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class AuthService:
    """
    로그인/로그아웃/RT 회전/비밀번호 변경 오케스트레이션.

    사용자당 유효한 RT는 하나: 새 RT를 발급할 때마다 레코드의 다이제스트를
    덮어써서 이전 RT를 무효화한다(last-write-wins, 락 없음).
    """

    def __init__(self, store: UserStore, tokens: TokenService):
        self.store = store
        self.tokens = tokens

    # ---- 내부 헬퍼 ----
    def _issue_pair(self, user: User) -> TokenPair:
        access_token = self.tokens.issue_access_token(user)
        refresh_token = self.tokens.issue_refresh_token(user)
        # 이 저장이 이전 세션의 폐기 지점
        self.store.set_refresh_token(user.id, self.tokens.refresh_digest(refresh_token))
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    def _require_user(self, user_id: UUID | str) -> User:
        user = self.store.get(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    # ---- 회원가입 ----
    def ensure_registrable(
        self,
        *,
        full_name: Optional[str],
        email: Optional[str],
        username: Optional[str],
        password: Optional[str],
    ) -> None:
        """필수값 검사 + 중복 사전 검사 (미디어 업로드 전에 호출)."""
        fields = {
            "fullName": full_name,
            "email": email,
            "username": username,
            "password": password,
        }
        missing = [name for name, value in fields.items() if _blank(value)]
        if missing:
            raise ValidationError("All fields are required", errors=missing)
        if password_too_long(password):
            raise ValidationError("Password is too long", errors=["password"])
        if self.store.find_by_username_or_email(username, email) is not None:
            raise Conflict("User with email or username already exists")

    def register(
        self,
        *,
        full_name: Optional[str],
        email: Optional[str],
        username: Optional[str],
        password: Optional[str],
        avatar_ref: Optional[str],
        cover_image_ref: Optional[str] = None,
    ) -> User:
        self.ensure_registrable(
            full_name=full_name, email=email, username=username, password=password
        )
        if _blank(avatar_ref):
            raise ValidationError("Avatar file is required", errors=["avatar"])

        user = self.store.create(
            full_name=full_name,
            email=email,
            username=username,
            password=password,
            avatar=avatar_ref,
            cover_image=cover_image_ref,
        )
        log.info("registered user id=%s", user.id)
        return user

    # ---- 로그인 ----
    def login(
        self,
        *,
        username: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> LoginResult:
        if _blank(username) and _blank(email):
            raise ValidationError("Username or email is required")
        if not password:
            raise ValidationError("Password is required", errors=["password"])

        user = self.store.find_by_username_or_email(username, email)
        if user is None:
            raise NotFound("User does not exist")

        if not self.store.verify_password(password, user.password_hash):
            log.warning("login rejected: bad password for user id=%s", user.id)
            raise Unauthorized("Invalid user credentials")

        pair = self._issue_pair(user)
        log.info("login ok user id=%s", user.id)
        return LoginResult(user=user, access_token=pair.access_token, refresh_token=pair.refresh_token)

    # ---- 로그아웃 (멱등) ----
    def logout(self, user_id: UUID | str) -> None:
        user = self.store.get(user_id)
        if user is None or user.refresh_token is None:
            return
        self.store.set_refresh_token(user.id, None)
        log.info("logout user id=%s", user.id)

    # ---- RT 회전 ----
    def refresh(self, incoming_refresh_token: Optional[str]) -> TokenPair:
        if not incoming_refresh_token:
            raise Unauthorized("Unauthorized request")

        try:
            payload = self.tokens.verify_refresh_token(incoming_refresh_token)
        except ExpiredToken:
            raise Unauthorized("Refresh token is expired")
        except TokenError:
            raise Unauthorized("Invalid refresh token")

        user = self.store.get(payload["sub"])
        if user is None:
            raise Unauthorized("Invalid refresh token")

        # 저장된 값과 정확히 일치해야 함: 대체된(아직 미만료) RT 재사용 차단
        if not self.tokens.digest_matches(incoming_refresh_token, user.refresh_token):
            log.warning("refresh rejected: token superseded or revoked for user id=%s", user.id)
            raise Unauthorized("Refresh token is expired or used")

        pair = self._issue_pair(user)
        log.info("refresh ok user id=%s", user.id)
        return pair

    # ---- 비밀번호 변경 ----
    def change_password(
        self, user_id: UUID | str, old_password: Optional[str], new_password: Optional[str]
    ) -> None:
        if _blank(new_password):
            raise ValidationError("New password is required", errors=["newPassword"])
        if password_too_long(new_password):
            raise ValidationError("Password is too long", errors=["newPassword"])

        user = self._require_user(user_id)
        if not self.store.verify_password(old_password or "", user.password_hash):
            raise Unauthorized("Invalid old password")

        # RT 상태는 건드리지 않음 (기존 세션 유지)
        self.store.set_password(user.id, new_password)
        log.info("password changed user id=%s", user.id)

    # ---- 프로필 ----
    def current_user(self, user_id: UUID | str) -> User:
        return self._require_user(user_id)

    def update_account(
        self,
        user_id: UUID | str,
        *,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> User:
        if _blank(full_name) and _blank(email):
            raise ValidationError("At least one of fullName or email is required")
        return self.store.update_profile_fields(
            user_id,
            full_name=None if _blank(full_name) else full_name,
            email=None if _blank(email) else email,
        )

    def update_avatar(self, user_id: UUID | str, avatar_ref: Optional[str]) -> User:
        if _blank(avatar_ref):
            raise ValidationError("Avatar file is missing", errors=["avatar"])
        return self.store.update_avatar(user_id, avatar_ref)

    def update_cover_image(self, user_id: UUID | str, cover_image_ref: Optional[str]) -> User:
        if _blank(cover_image_ref):
            raise ValidationError("Cover image file is missing", errors=["coverImage"])
        return self.store.update_cover_image(user_id, cover_image_ref)
