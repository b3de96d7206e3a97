from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from app.accounts.core import security
from app.accounts.core.errors import Conflict, InternalError, NotFound
from app.accounts.models.user import User

log = logging.getLogger(__name__)


def normalize_identity(value: Optional[str]) -> Optional[str]:
    """username/email 정규화: trim + lowercase. 빈 값은 None."""
    if value is None:
        return None
    value = value.strip().lower()
    return value or None


class UserStore:
    """
    User 레코드 저장소. 요청당 하나의 Session에 바인딩된다.
    모든 갱신은 단일 레코드 + 단일 커밋.
    """

    def __init__(self, db: Session, bcrypt_rounds: int = security.DEFAULT_ROUNDS):
        self.db = db
        self.bcrypt_rounds = bcrypt_rounds

    # ---- 비밀번호 ----
    def hash_password(self, plaintext: str) -> str:
        return security.hash_password(plaintext, rounds=self.bcrypt_rounds)

    def verify_password(self, plaintext: str, password_hash: str | None) -> bool:
        return security.verify_password(plaintext, password_hash)

    # ---- 조회 ----
    def get(self, user_id: UUID | str) -> Optional[User]:
        if not isinstance(user_id, UUID):
            try:
                user_id = UUID(str(user_id))
            except ValueError:
                return None
        return self.db.get(User, user_id)

    def find_by_username_or_email(
        self, username: Optional[str] = None, email: Optional[str] = None
    ) -> Optional[User]:
        username = normalize_identity(username)
        email = normalize_identity(email)
        conds = []
        if username:
            conds.append(func.lower(User.username) == username)
        if email:
            conds.append(func.lower(User.email) == email)
        if not conds:
            return None
        return self.db.exec(select(User).where(or_(*conds))).first()

    # ---- 생성 ----
    def create(
        self,
        *,
        full_name: str,
        email: str,
        username: str,
        password: str,
        avatar: str,
        cover_image: Optional[str] = None,
    ) -> User:
        username = normalize_identity(username)
        email = normalize_identity(email)
        if self.find_by_username_or_email(username, email) is not None:
            raise Conflict("User with email or username already exists")

        user = User(
            username=username,
            email=email,
            full_name=full_name.strip(),
            password_hash=self.hash_password(password),
            avatar=avatar,
            cover_image=cover_image or None,
        )
        self.db.add(user)
        self._commit()
        self.db.refresh(user)
        log.info("user created id=%s username=%s", user.id, user.username)
        return user

    # ---- 단일 레코드 갱신 ----
    def _load(self, user_id: UUID | str) -> User:
        user = self.get(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def _save(self, user: User) -> User:
        user.updated_at = datetime.now(tz=timezone.utc)
        self.db.add(user)
        self._commit()
        self.db.refresh(user)
        return user

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            # 사전 검사와 insert 사이 경쟁은 unique 인덱스가 잡는다
            raise Conflict("User with email or username already exists") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            log.exception("user store commit failed")
            raise InternalError("Database operation failed") from exc

    def set_refresh_token(self, user_id: UUID | str, token: Optional[str]) -> User:
        """token은 이미 다이제스트된 값(또는 None). last-write-wins."""
        user = self._load(user_id)
        user.refresh_token = token or None
        return self._save(user)

    def set_password(self, user_id: UUID | str, plaintext: str) -> User:
        user = self._load(user_id)
        user.password_hash = self.hash_password(plaintext)
        return self._save(user)

    def update_profile_fields(
        self,
        user_id: UUID | str,
        *,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> User:
        user = self._load(user_id)
        email = normalize_identity(email)
        # 충돌 검사를 먼저: 실패 시 세션에 변경분이 남지 않도록
        if email is not None and email != user.email:
            other = self.find_by_username_or_email(email=email)
            if other is not None and other.id != user.id:
                raise Conflict("Email is already in use")
            user.email = email
        if full_name is not None:
            user.full_name = full_name.strip()
        return self._save(user)

    def update_avatar(self, user_id: UUID | str, avatar: str) -> User:
        user = self._load(user_id)
        user.avatar = avatar
        return self._save(user)

    def update_cover_image(self, user_id: UUID | str, cover_image: str) -> User:
        user = self._load(user_id)
        user.cover_image = cover_image
        return self._save(user)
