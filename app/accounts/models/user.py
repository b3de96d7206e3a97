from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class User(SQLModel, table=True):
    """
    계정 레코드.
    - username/email: 소문자·trim 후 저장 (대소문자 무시 unique)
    - password_hash: bcrypt 해시만 저장
    - refresh_token: 마지막으로 발급한 RT의 sha256 (로그아웃 시 None)
    """
    __tablename__ = "user"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    username: str = Field(index=True, unique=True)
    email: str = Field(index=True, unique=True)
    full_name: str = Field(index=True)
    password_hash: str = Field(nullable=False)

    avatar: str
    cover_image: Optional[str] = None

    refresh_token: Optional[str] = None

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
