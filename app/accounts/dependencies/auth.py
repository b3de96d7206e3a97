from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from app.accounts.core.config import Settings, get_settings
from app.accounts.core.errors import ExpiredToken, TokenError, Unauthorized
from app.accounts.core.tokens import ACCESS_COOKIE_NAME, TokenService
from app.accounts.models.user import User
from app.accounts.services.auth_service import AuthService
from app.accounts.services.media import LocalMediaStore
from app.accounts.services.user_store import UserStore
from app.db.session import get_session

# 헤더가 없을 때 쿠키로 폴백하므로 auto_error=False
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/users/login", auto_error=False)


# ---- 서비스 조립 ----
def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService(settings)


def get_user_store(
    db: Session = Depends(get_session), settings: Settings = Depends(get_settings)
) -> UserStore:
    return UserStore(db, bcrypt_rounds=settings.bcrypt_rounds)


def get_auth_service(
    store: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(store, tokens)


def get_media_store(settings: Settings = Depends(get_settings)) -> LocalMediaStore:
    return LocalMediaStore(settings.media_root, settings.media_base_url)


# ---- 요청 인증 ----
def _extract_jwt(request: Request, token: str | None) -> str | None:
    return token or request.cookies.get(ACCESS_COOKIE_NAME)


def _resolve_user(
    request: Request, jwt_token: str, tokens: TokenService, store: UserStore
) -> User:
    try:
        payload = tokens.verify_access_token(jwt_token)
    except ExpiredToken:
        raise Unauthorized("Access token is expired")
    except TokenError:
        raise Unauthorized("Invalid access token")

    user = store.get(payload["sub"])
    if user is None:
        # 토큰은 유효하지만 사용자가 사라진 경우도 401
        raise Unauthorized("Invalid access token")
    request.state.user = user
    return user


def get_current_user(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
    tokens: TokenService = Depends(get_token_service),
    store: UserStore = Depends(get_user_store),
) -> User:
    """Strict auth dependency; raises Unauthorized when no/invalid token."""
    jwt_token = _extract_jwt(request, token)
    if not jwt_token:
        raise Unauthorized("Unauthorized request")
    return _resolve_user(request, jwt_token, tokens, store)

