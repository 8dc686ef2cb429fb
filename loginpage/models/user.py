from sqlalchemy import Boolean, Column, DateTime, String

from loginpage.core.db import Base


class User(Base):
    __tablename__ = "users"

    # column names follow the stored document fields
    id = Column(String(36), primary_key=True)
    username = Column(String(255), nullable=False)
    password_hash = Column("passwordHash", String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    type = Column(String(32), nullable=False, default="User")
    email_verified = Column("emailVerified", Boolean, nullable=False, default=False)
    verification_token = Column("verificationToken", String(255), nullable=True, index=True)
    verification_token_expiry = Column("verificationTokenExpiry", DateTime(timezone=True), nullable=True)
