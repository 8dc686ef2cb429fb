from typing import Dict, List

from pydantic import ConfigDict, EmailStr, Field, ValidationInfo, field_validator

from .base import BaseSchema


class RegisterIn(BaseSchema):
    # passwords are taken as typed
    model_config = ConfigDict(str_strip_whitespace=False)

    email: EmailStr
    password: str = Field(..., min_length=6)
    confirm_password: str

    @field_validator("confirm_password")
    @classmethod
    def _matches_password(cls, v: str, info: ValidationInfo) -> str:
        password = info.data.get("password")
        if password is not None and v != password:
            raise ValueError("The password and confirmation password do not match.")
        return v


class LoginIn(BaseSchema):
    model_config = ConfigDict(str_strip_whitespace=False)

    email: EmailStr
    password: str = Field(..., min_length=1)
    remember_me: bool = False


class MessageOut(BaseSchema):
    message: str


class ValidationErrorOut(BaseSchema):
    message: str
    errors: Dict[str, List[str]]
