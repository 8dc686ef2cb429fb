# loginpage/schemas/user.py
import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import field_validator

from .base import BaseSchema

USER_TYPE = "User"


class UserDocument(BaseSchema):
    """A user record as stored in the document container.

    Dumped with ``by_alias=True`` this is exactly the persisted JSON shape
    (``passwordHash``, ``emailVerified``, ``verificationToken`` ...).
    """

    id: str
    username: str
    password_hash: str
    email: str
    type: str = USER_TYPE
    email_verified: bool = False
    verification_token: Optional[str] = None
    verification_token_expiry: Optional[datetime] = None

    @field_validator("verification_token_expiry")
    @classmethod
    def _assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # sqlite hands back naive datetimes
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @classmethod
    def new_unverified(cls, email: str, password_hash: str, token: str, expiry: datetime) -> "UserDocument":
        return cls(
            id=str(uuid.uuid4()),
            username=email,
            email=email,
            password_hash=password_hash,
            type=USER_TYPE,
            email_verified=False,
            verification_token=token,
            verification_token_expiry=expiry,
        )

    def token_expired(self, now: Optional[datetime] = None) -> bool:
        if self.verification_token_expiry is None:
            return True
        return self.verification_token_expiry < (now or datetime.now(timezone.utc))

    def mark_verified(self) -> None:
        self.email_verified = True
        self.verification_token = None
        self.verification_token_expiry = None

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
