import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# DB 세션 모듈이 import 시점에 엔진을 만들기 때문에 app import 전에 설정
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret")
os.environ.setdefault("COOKIE_SECURE", "false")

from app.accounts.core.config import Settings, get_settings  # noqa: E402
from app.accounts.core.tokens import TokenService  # noqa: E402
from app.accounts.dependencies import auth as auth_deps  # noqa: E402
from app.accounts.services.auth_service import AuthService  # noqa: E402
from app.accounts.services.user_store import UserStore  # noqa: E402
from app.db import base as _db_base  # noqa: E402,F401

AVATAR_REF = "/static/uploads/avatar.png"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        access_token_secret="test-access-secret",
        refresh_token_secret="test-refresh-secret",
        access_token_expire_minutes=15,
        refresh_token_expire_days=10,
        bcrypt_rounds=4,
        cookie_secure=False,
        media_root=str(tmp_path / "uploads"),
        media_base_url="/static/uploads",
    )


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def store(db, settings):
    return UserStore(db, bcrypt_rounds=settings.bcrypt_rounds)


@pytest.fixture
def tokens(settings):
    return TokenService(settings)


@pytest.fixture
def auth(store, tokens):
    return AuthService(store, tokens)


@pytest.fixture
def registered_user(auth):
    return auth.register(
        full_name="Ana Lee",
        email="ana@x.com",
        username="anaL",
        password="secret123",
        avatar_ref=AVATAR_REF,
    )


@pytest.fixture
def app(engine, settings):
    from app.accounts.main import app as fastapi_app

    def _session_override():
        with Session(engine) as s:
            yield s

    fastapi_app.dependency_overrides[auth_deps.get_session] = _session_override
    fastapi_app.dependency_overrides[get_settings] = lambda: settings
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
