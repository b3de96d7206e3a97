from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---- 응답 ----
class UserPublic(_CamelModel):
    """password_hash / refresh_token 은 절대 포함하지 않는다."""
    id: UUID
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class LoginData(_CamelModel):
    user: UserPublic
    access_token: str
    refresh_token: str


class TokenPairData(_CamelModel):
    access_token: str
    refresh_token: str


class ApiResponse(_CamelModel):
    status_code: int
    data: Any = None
    message: str = "Success"
    success: bool = True
    errors: Optional[List[Any]] = None


def api_response(status_code: int, data: Any = None, message: str = "Success") -> dict:
    body = ApiResponse(
        status_code=status_code,
        data=data,
        message=message,
        success=status_code < 400,
    )
    return body.model_dump(by_alias=True, mode="json", exclude_none=False, exclude={"errors"})


def api_error(status_code: int, message: str, errors: Optional[List[Any]] = None) -> dict:
    body = ApiResponse(
        status_code=status_code,
        data=None,
        message=message,
        success=False,
        errors=errors or [],
    )
    return body.model_dump(by_alias=True, mode="json")


def public_user(user) -> dict:
    return UserPublic.model_validate(user).model_dump(by_alias=True, mode="json")


# ---- 요청 ----
class LoginRequest(_CamelModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshRequest(_CamelModel):
    refresh_token: Optional[str] = None


class ChangePasswordRequest(_CamelModel):
    old_password: Optional[str] = None
    new_password: Optional[str] = None


class UpdateAccountRequest(_CamelModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
