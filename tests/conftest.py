"""Shared pytest fixtures for the API tests."""

import os

# settings are read once at import time, so the environment goes first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["COSMOS_CONNECTION_STRING"] = ""
os.environ["BEARER_TOKEN"] = "test-secret"
os.environ["SMTP_PASSWORD"] = "smtp-secret"
os.environ["APP_URL"] = "https://app.example.com/"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["SESSION_COOKIE_SECURE"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from loginpage.core.db import Base, SessionLocal, engine  # noqa: E402
from loginpage.core.security import hash_password, verification_expiry  # noqa: E402
from loginpage.main import app  # noqa: E402
from loginpage.models.user import User  # noqa: E402
from loginpage.schemas.user import UserDocument  # noqa: E402
from loginpage.services.email_service import get_email_service  # noqa: E402
from loginpage.services.users import SqlUserRepository  # noqa: E402

BEARER = {"Authorization": "Bearer test-secret"}


class RecordingMailer:
    """Stands in for the SMTP sender; remembers every call."""

    def __init__(self):
        self.sent = []
        self.error = None

    def send_verification_email(self, email: str, verification_token: str) -> None:
        self.sent.append((email, verification_token))
        if self.error is not None:
            raise self.error


@pytest.fixture(autouse=True)
def clean_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def db_session():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def repo(db_session) -> SqlUserRepository:
    return SqlUserRepository(db_session)


@pytest.fixture()
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture()
def client(mailer):
    app.dependency_overrides[get_email_service] = lambda: mailer
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.pop(get_email_service, None)


@pytest.fixture()
def make_user(repo):
    """Persist a user directly, bypassing the register endpoint."""

    def _make(email="user@example.com", password="abcdef", verified=False, token="tok-123", expiry=None):
        user = UserDocument.new_unverified(
            email=email,
            password_hash=hash_password(password),
            token=token,
            expiry=expiry or verification_expiry(),
        )
        if verified:
            user.mark_verified()
        return repo.create(user)

    return _make


@pytest.fixture()
def bearer() -> dict:
    return dict(BEARER)


@pytest.fixture()
def fetch_user(db_session):
    """Reload a users row as the API last wrote it."""

    def _fetch(email="user@example.com"):
        db_session.expire_all()
        return db_session.query(User).filter(User.email == email).first()

    return _fetch
