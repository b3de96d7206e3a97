from uuid import uuid4

import pytest
from jose import jwt

from app.accounts.core.errors import ExpiredToken, InvalidToken, MalformedToken
from app.accounts.core.tokens import TokenService
from app.accounts.models.user import User


@pytest.fixture
def user():
    return User(
        id=uuid4(),
        username="anal",
        email="ana@x.com",
        full_name="Ana Lee",
        password_hash="x",
        avatar="/static/uploads/a.png",
    )


def test_access_token_carries_identity_fields(tokens, user):
    payload = tokens.verify_access_token(tokens.issue_access_token(user))

    assert payload["sub"] == str(user.id)
    assert payload["username"] == "anal"
    assert payload["email"] == "ana@x.com"
    assert payload["fullName"] == "Ana Lee"
    assert payload["exp"] - payload["iat"] == 15 * 60


def test_refresh_token_carries_only_id(tokens, user):
    payload = tokens.verify_refresh_token(tokens.issue_refresh_token(user))

    assert payload["sub"] == str(user.id)
    assert "username" not in payload
    assert "email" not in payload
    assert payload["exp"] - payload["iat"] == 10 * 24 * 60 * 60


def test_refresh_tokens_issued_back_to_back_differ(tokens, user):
    assert tokens.issue_refresh_token(user) != tokens.issue_refresh_token(user)


def test_access_and_refresh_use_distinct_secrets(tokens, user):
    access = tokens.issue_access_token(user)
    refresh = tokens.issue_refresh_token(user)

    with pytest.raises(InvalidToken):
        tokens.verify_refresh_token(access)
    with pytest.raises(InvalidToken):
        tokens.verify_access_token(refresh)


def test_verify_wrong_secret_is_invalid(tokens, user):
    token = tokens.issue_access_token(user)

    with pytest.raises(InvalidToken):
        tokens.verify(token, "some-other-secret")


def test_verify_expired_token(settings, user):
    expired = TokenService(settings.model_copy(update={"access_token_expire_minutes": -1}))
    token = expired.issue_access_token(user)

    with pytest.raises(ExpiredToken):
        expired.verify_access_token(token)


@pytest.mark.parametrize("raw", ["", "not-a-token", "a.b.c"])
def test_verify_malformed_token(tokens, raw):
    with pytest.raises(MalformedToken):
        tokens.verify(raw, tokens.access_secret)


def test_wrong_type_claim_is_invalid(tokens, settings, user):
    forged = jwt.encode(
        {"sub": str(user.id), "typ": "refresh", "exp": 4102444800},
        settings.access_token_secret,
        algorithm="HS256",
    )

    with pytest.raises(InvalidToken):
        tokens.verify_access_token(forged)


def test_digest_matches_only_the_same_token(tokens, user):
    token = tokens.issue_refresh_token(user)
    digest = tokens.refresh_digest(token)

    assert digest != token
    assert tokens.digest_matches(token, digest)
    assert not tokens.digest_matches(tokens.issue_refresh_token(user), digest)
    assert not tokens.digest_matches(token, None)
