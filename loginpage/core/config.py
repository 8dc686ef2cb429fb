# loginpage/core/config.py
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # relational backend, used when no Cosmos connection string is given
    DATABASE_URL: str = "sqlite:///./app.db"

    COSMOS_CONNECTION_STRING: str = ""
    COSMOS_DATABASE: str = "loginDB"
    COSMOS_CONTAINER: str = "Users"
    COSMOS_REQUEST_TIMEOUT_SECONDS: int = 30
    COSMOS_MAX_RETRY_ATTEMPTS: int = 9
    COSMOS_MAX_RETRY_WAIT_SECONDS: int = 30

    # shared secret for the bearer gate; empty never matches
    BEARER_TOKEN: str = ""

    SMTP_SERVER: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM_ADDRESS: str = "no-reply@localhost"
    SMTP_FROM_NAME: str = "LoginPage"
    SMTP_TIMEOUT_SECONDS: int = 30

    APP_URL: str = "http://localhost:5173"
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "https://localhost:5173",
    ]

    SESSION_SECRET: str = "change-this-secret"
    SESSION_ALG: str = "HS256"
    SESSION_EXPIRE_MINUTES: int = 30
    SESSION_COOKIE_NAME: str = "loginpage_session"
    SESSION_COOKIE_SECURE: bool = True

    VERIFICATION_TOKEN_EXPIRE_HOURS: int = 24

    FORCE_HTTPS: bool = False
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
