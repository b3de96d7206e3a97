from __future__ import annotations

import bcrypt

DEFAULT_ROUNDS = 10
# bcrypt는 72바이트 이후를 무시(신규 버전은 ValueError)
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """bcrypt 해시 (salt 포함). 원문은 복원 불가."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    """해시 비교는 bcrypt.checkpw에 위임. 손상된 해시는 False."""
    if not password or not password_hash:
        return False
    # 72바이트 초과분은 bcrypt 4.x가 잘라서 비교하므로 여기서 거절
    if password_too_long(password):
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES
