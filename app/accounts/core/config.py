# app/accounts/core/config.py
from functools import lru_cache
from typing import List

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # 앱
    app_version: str = Field("0.1.0", alias="APP_VERSION")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    cors_origin: str = Field("http://localhost:3000", alias="CORS_ORIGIN")

    # JWT
    access_token_secret: str = Field(..., alias="ACCESS_TOKEN_SECRET")
    refresh_token_secret: str = Field(..., alias="REFRESH_TOKEN_SECRET")
    access_token_expire_minutes: int = Field(15, alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    refresh_token_expire_days: int = Field(10, alias="REFRESH_TOKEN_EXPIRE_DAYS")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")

    # 비밀번호 해시 비용
    bcrypt_rounds: int = Field(10, alias="BCRYPT_ROUNDS")

    # 쿠키 (로컬 http 개발 시 COOKIE_SECURE=false)
    cookie_secure: bool = Field(True, alias="COOKIE_SECURE")

    # 미디어 저장소
    media_root: str = Field("public/uploads", alias="MEDIA_ROOT")
    media_base_url: str = Field("/static/uploads", alias="MEDIA_BASE_URL")

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True

    @model_validator(mode="after")
    def _distinct_secrets(self) -> "Settings":
        if self.access_token_secret == self.refresh_token_secret:
            raise ValueError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must differ")
        return self

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.cors_origin.split(",") if o.strip()]

    @property
    def access_token_max_age(self) -> int:
        return self.access_token_expire_minutes * 60

    @property
    def refresh_token_max_age(self) -> int:
        return self.refresh_token_expire_days * 24 * 60 * 60


@lru_cache
def get_settings() -> Settings:
    """Settings loaded once per process (.env + environment)."""
    return Settings()
