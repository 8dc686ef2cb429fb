import logging
import secrets
from datetime import datetime, timezone
from typing import Mapping, NamedTuple, Optional

from fastapi import Request
from fastapi.responses import PlainTextResponse
from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware

from loginpage.core.config import settings
from loginpage.core.security import create_session_token, decode_session_token

logger = logging.getLogger(__name__)

# matched against the lower-cased request path
PUBLIC_PATH_PREFIXES = (
    "/account/verify-email",
    "/account/login",
    "/account/register",
)
ROOT_PATH = "/"

UNAUTHORIZED_BODY = "Bearer token is required!"


class GateDecision(NamedTuple):
    allowed: bool
    reason: str


def is_public_path(path: str) -> bool:
    current = (path or "").lower()
    if current == ROOT_PATH:
        return True
    return any(current.startswith(p) for p in PUBLIC_PATH_PREFIXES)


def extract_bearer_token(headers: Mapping[str, str]) -> Optional[str]:
    """Last whitespace-separated piece of the Authorization header, if any."""
    raw = headers.get("authorization")
    if not raw:
        return None
    parts = raw.split()
    return parts[-1] if parts else None


def check_bearer(path: str, headers: Mapping[str, str], expected: str) -> GateDecision:
    if is_public_path(path):
        return GateDecision(True, "public_path")
    token = extract_bearer_token(headers)
    if not token:
        return GateDecision(False, "missing_token")
    if not expected or not secrets.compare_digest(token.encode(), expected.encode()):
        return GateDecision(False, "invalid_token")
    return GateDecision(True, "token_ok")


class BearerTokenMiddleware(BaseHTTPMiddleware):
    """Shared-secret gate in front of every non-public route."""

    def __init__(self, app, expected_token: Optional[str] = None):
        super().__init__(app)
        self.expected_token = settings.BEARER_TOKEN if expected_token is None else expected_token

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        decision = check_bearer(path, request.headers, self.expected_token)
        logger.debug("gate %s %s -> %s", request.method, path, decision.reason)
        if not decision.allowed:
            return PlainTextResponse(UNAUTHORIZED_BODY, status_code=401)
        return await call_next(request)


class SessionRefreshMiddleware(BaseHTTPMiddleware):
    """Sliding expiration for the login session cookie.

    A valid session past half of its lifetime is re-issued on the way out,
    unless the handler already set or cleared the cookie itself.
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        token = request.cookies.get(settings.SESSION_COOKIE_NAME)
        if not token:
            return response
        cookie_prefix = f"{settings.SESSION_COOKIE_NAME}=".encode("latin-1")
        if any(
            k == b"set-cookie" and v.startswith(cookie_prefix)
            for k, v in response.raw_headers
        ):
            return response

        try:
            payload = decode_session_token(token)
        except JWTError:
            return response

        sub = payload.get("sub")
        exp = payload.get("exp")
        iat = payload.get("iat")
        if not sub or exp is None or iat is None:
            return response

        now = datetime.now(timezone.utc).timestamp()
        if exp - now > (exp - iat) / 2:
            return response

        persistent = bool(payload.get("persistent"))
        set_session_cookie(response, create_session_token(sub, persistent=persistent), persistent=persistent)
        logger.debug("session refreshed for %s", sub)
        return response


def set_session_cookie(response, token: str, persistent: bool = False) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        max_age=settings.SESSION_EXPIRE_MINUTES * 60 if persistent else None,
        path="/",
    )


def clear_session_cookie(response) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        path="/",
    )
