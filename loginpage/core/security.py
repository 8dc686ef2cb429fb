import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt
from passlib.hash import argon2

from loginpage.core.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def hash_password(plain: str) -> str:
    return argon2.using(time_cost=2, memory_cost=102400, parallelism=8).hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return argon2.verify(plain, hashed)
    except (ValueError, TypeError):
        # not an argon2 hash at all
        return False


def generate_verification_token() -> str:
    return secrets.token_urlsafe(32)


def verification_expiry(now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()) + timedelta(hours=settings.VERIFICATION_TOKEN_EXPIRE_HOURS)


def create_session_token(
    sub: str, expires_delta: Optional[timedelta] = None, persistent: bool = False
) -> str:
    now = utcnow()
    exp = now + (expires_delta or timedelta(minutes=settings.SESSION_EXPIRE_MINUTES))
    payload = {"sub": str(sub), "iat": now, "exp": exp}
    if persistent:
        payload["persistent"] = True
    return jwt.encode(payload, settings.SESSION_SECRET, algorithm=settings.SESSION_ALG)


def decode_session_token(token: str) -> dict:
    """Return the session payload; raises jose.JWTError when invalid or expired."""
    return jwt.decode(token, settings.SESSION_SECRET, algorithms=[settings.SESSION_ALG])
