"""Password hashing and JWT helpers."""

import jwt as pyjwt
import pytest

from messagely.auth.jwt import TokenError, create_token, verify_token
from messagely.auth.password import hash_password, verify_password
from messagely.config import settings


def test_hash_is_salted():
    h1 = hash_password("secret")
    h2 = hash_password("secret")
    assert h1 != h2
    assert verify_password("secret", h1)
    assert verify_password("secret", h2)


def test_verify_wrong_password():
    assert not verify_password("nope", hash_password("secret"))


def test_verify_malformed_hash():
    assert not verify_password("secret", "not-a-bcrypt-hash")


def test_default_work_factor():
    assert hash_password("secret", rounds=12).startswith("$2b$12$")


def test_token_round_trip():
    payload = verify_token(create_token("alice"))
    assert payload["username"] == "alice"
    assert "exp" not in payload


def test_token_with_expiry():
    payload = verify_token(create_token("alice", expires_minutes=5))
    assert "exp" in payload


def test_expired_token():
    token = pyjwt.encode(
        {"username": "alice", "exp": 1}, settings.jwt_secret, algorithm="HS256"
    )
    with pytest.raises(TokenError, match="expired"):
        verify_token(token)


def test_token_missing_username():
    token = pyjwt.encode({"sub": "alice"}, settings.jwt_secret, algorithm="HS256")
    with pytest.raises(TokenError):
        verify_token(token)


def test_tampered_token():
    token = create_token("alice")
    header, payload, sig = token.split(".")
    forged = create_token("mallory").split(".")[1]
    with pytest.raises(TokenError):
        verify_token(f"{header}.{forged}.{sig}")
