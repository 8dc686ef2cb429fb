"""Tests for password hashing, tokens and the sliding session cookie."""

from datetime import datetime, timedelta, timezone

import pytest
from jose import JWTError, jwt

from loginpage.core.config import settings
from loginpage.core.security import (
    create_session_token,
    decode_session_token,
    generate_verification_token,
    hash_password,
    verification_expiry,
    verify_password,
)


def test_hash_and_verify_password():
    hashed = hash_password("abcdef")

    assert hashed != "abcdef"
    assert hashed.startswith("$argon2")
    assert verify_password("abcdef", hashed) is True
    assert verify_password("abcdeg", hashed) is False


def test_verify_password_with_malformed_hash_is_false():
    assert verify_password("abcdef", "not-a-hash") is False


def test_verification_tokens_are_random_and_url_safe():
    tokens = {generate_verification_token() for _ in range(20)}

    assert len(tokens) == 20
    for token in tokens:
        assert len(token) >= 32
        assert set(token) <= set("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_")


def test_verification_expiry_is_24_hours_ahead():
    now = datetime(2030, 1, 1, tzinfo=timezone.utc)
    assert verification_expiry(now) == now + timedelta(hours=24)


def test_session_token_round_trip():
    payload = decode_session_token(create_session_token("user-1"))

    assert payload["sub"] == "user-1"
    assert payload["exp"] - payload["iat"] == settings.SESSION_EXPIRE_MINUTES * 60
    assert "persistent" not in payload


def test_expired_session_token_is_rejected():
    token = create_session_token("user-1", expires_delta=timedelta(seconds=-1))

    with pytest.raises(JWTError):
        decode_session_token(token)


def test_session_token_with_other_secret_is_rejected():
    token = jwt.encode({"sub": "user-1"}, "someone-else", algorithm="HS256")

    with pytest.raises(JWTError):
        decode_session_token(token)


def _aged_token(minutes_old: int, lifetime: int = 30, **extra) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": "user-1",
        "iat": now - timedelta(minutes=minutes_old),
        "exp": now - timedelta(minutes=minutes_old) + timedelta(minutes=lifetime),
        **extra,
    }
    return jwt.encode(payload, settings.SESSION_SECRET, algorithm=settings.SESSION_ALG)


class TestSlidingSession:
    def test_fresh_session_is_left_alone(self, client):
        client.cookies.set(settings.SESSION_COOKIE_NAME, _aged_token(1))

        response = client.get("/")

        assert response.status_code == 200
        assert "set-cookie" not in response.headers

    def test_session_past_half_life_is_reissued(self, client):
        client.cookies.set(settings.SESSION_COOKIE_NAME, _aged_token(20))

        response = client.get("/")

        assert response.status_code == 200
        new_token = response.cookies.get(settings.SESSION_COOKIE_NAME)
        assert new_token
        payload = decode_session_token(new_token)
        assert payload["sub"] == "user-1"
        assert payload["exp"] - datetime.now(timezone.utc).timestamp() > 25 * 60

    def test_persistent_flag_survives_refresh(self, client):
        client.cookies.set(settings.SESSION_COOKIE_NAME, _aged_token(20, persistent=True))

        response = client.get("/")

        assert "max-age" in response.headers["set-cookie"].lower()
        assert decode_session_token(response.cookies[settings.SESSION_COOKIE_NAME])["persistent"] is True

    def test_expired_or_forged_session_is_ignored(self, client):
        client.cookies.set(settings.SESSION_COOKIE_NAME, _aged_token(40))
        assert "set-cookie" not in client.get("/").headers

        client.cookies.set(settings.SESSION_COOKIE_NAME, "garbage")
        assert "set-cookie" not in client.get("/").headers
