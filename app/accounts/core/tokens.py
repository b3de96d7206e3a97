from __future__ import annotations

import hashlib
import hmac
from datetime import datetime, timedelta, timezone
from typing import Any, Dict
from uuid import uuid4

from jose import jwt, JWTError
from jose.exceptions import ExpiredSignatureError

from app.accounts.core.config import Settings
from app.accounts.core.errors import ExpiredToken, InvalidToken, MalformedToken

ACCESS_COOKIE_NAME = "accessToken"
REFRESH_COOKIE_NAME = "refreshToken"

ACCESS_TYPE = "access"
REFRESH_TYPE = "refresh"


# ---- 공통 ----
def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def sha256_hex(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()


class TokenService:
    """
    Access/Refresh JWT 발급·검증. 순수 함수적(I/O 없음).
    설정(secret, 만료)은 생성 시 Settings로 주입받는다.
    """

    def __init__(self, settings: Settings):
        self.algorithm = settings.jwt_algorithm
        self.access_secret = settings.access_token_secret
        self.refresh_secret = settings.refresh_token_secret
        self.access_ttl = timedelta(minutes=settings.access_token_expire_minutes)
        self.refresh_ttl = timedelta(days=settings.refresh_token_expire_days)

    def _make_jwt(self, payload: Dict[str, Any], secret: str, ttl: timedelta) -> str:
        now = _utcnow()
        to_encode = payload.copy()
        to_encode["iat"] = int(now.timestamp())
        to_encode["exp"] = int((now + ttl).timestamp())
        return jwt.encode(to_encode, secret, algorithm=self.algorithm)

    # ---- Access Token ----
    def issue_access_token(self, user) -> str:
        payload = {
            "sub": str(user.id),
            "username": user.username,
            "email": user.email,
            "fullName": user.full_name,
            "typ": ACCESS_TYPE,
        }
        return self._make_jwt(payload, self.access_secret, self.access_ttl)

    # ---- Refresh Token (회전 전제) ----
    def issue_refresh_token(self, user) -> str:
        # jti: 같은 초에 발급된 두 RT도 서로 다르게
        payload = {"sub": str(user.id), "jti": str(uuid4()), "typ": REFRESH_TYPE}
        return self._make_jwt(payload, self.refresh_secret, self.refresh_ttl)

    # ---- 검증 ----
    def verify(self, token: str, secret: str) -> Dict[str, Any]:
        """
        서명·만료 검증 후 payload 반환.
        - 파싱 불가: MalformedToken
        - 만료: ExpiredToken
        - 서명/클레임 오류: InvalidToken
        """
        if not token or not isinstance(token, str):
            raise MalformedToken("Token is empty")
        try:
            jwt.get_unverified_header(token)
            claims = jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise MalformedToken(str(exc)) from exc
        if not isinstance(claims, dict):
            raise MalformedToken("Token claims are not an object")

        try:
            return jwt.decode(token, secret, algorithms=[self.algorithm])
        except ExpiredSignatureError as exc:
            raise ExpiredToken(str(exc)) from exc
        except JWTError as exc:
            raise InvalidToken(str(exc)) from exc

    def _verify_typed(self, token: str, secret: str, typ: str) -> Dict[str, Any]:
        payload = self.verify(token, secret)
        if payload.get("typ") != typ:
            raise InvalidToken("Invalid token type")
        if not payload.get("sub"):
            raise InvalidToken("Missing sub")
        return payload

    def verify_access_token(self, token: str) -> Dict[str, Any]:
        return self._verify_typed(token, self.access_secret, ACCESS_TYPE)

    def verify_refresh_token(self, token: str) -> Dict[str, Any]:
        payload = self._verify_typed(token, self.refresh_secret, REFRESH_TYPE)
        if "jti" not in payload:
            raise InvalidToken("Missing jti")
        return payload

    # ---- 저장용 다이제스트 ----
    @staticmethod
    def refresh_digest(token: str) -> str:
        """DB에는 RT 원문 대신 sha256만 저장."""
        return sha256_hex(token)

    @staticmethod
    def digest_matches(token: str, stored_digest: str | None) -> bool:
        if not stored_digest:
            return False
        return hmac.compare_digest(sha256_hex(token), stored_digest)


# ---- 쿠키 ----
def set_auth_cookies(response, access_token: str, refresh_token: str, settings: Settings) -> None:
    # 개발에서 http라면 .env에서 COOKIE_SECURE=false 설정 필요
    response.set_cookie(
        key=ACCESS_COOKIE_NAME,
        value=access_token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.access_token_max_age,
        path="/",
    )
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=refresh_token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.refresh_token_max_age,
        path="/",
    )


def clear_auth_cookies(response, settings: Settings) -> None:
    for key in (ACCESS_COOKIE_NAME, REFRESH_COOKIE_NAME):
        response.delete_cookie(
            key=key,
            path="/",
            secure=settings.cookie_secure,
            httponly=True,
            samesite="lax",
        )
