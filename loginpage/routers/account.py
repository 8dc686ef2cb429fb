import logging
from typing import Optional
from urllib.parse import unquote

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from loginpage.core.auth import clear_session_cookie, set_session_cookie
from loginpage.core.security import (
    create_session_token,
    generate_verification_token,
    hash_password,
    verification_expiry,
    verify_password,
)
from loginpage.schemas.account import LoginIn, MessageOut, RegisterIn, ValidationErrorOut
from loginpage.schemas.user import UserDocument
from loginpage.services.email_service import Mailer, get_email_service
from loginpage.services.users import UserRepository, get_user_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/account", tags=["account"])

MSG_LOGIN_PAGE = "Please log in with your email and password."
MSG_LOGIN_OK = "Login successful"
MSG_LOGIN_INVALID = "Invalid login attempt."
MSG_LOGIN_UNVERIFIED = "Please verify your email before logging in."
MSG_LOGIN_ERROR = "An error occurred during login."
MSG_VERIFY_OK = "Email verified successfully. You can now log in."
MSG_VERIFY_INVALID = "Invalid or expired verification token."
MSG_VERIFY_ERROR = "An error occurred while verifying email."
MSG_REGISTER_OK = "Registration successful! Please check your email to verify your account."
MSG_LOGOUT_OK = "Logged out successfully"

VALIDATION_RESPONSES = {400: {"model": ValidationErrorOut}}


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


@router.get("/login", response_model=MessageOut)
def login_page():
    return {"message": MSG_LOGIN_PAGE}


@router.post("/login", response_model=MessageOut, responses=VALIDATION_RESPONSES)
def login(payload: LoginIn, users: UserRepository = Depends(get_user_repository)):
    try:
        user = users.get_by_email(payload.email)
        if user is None:
            return _message(status.HTTP_400_BAD_REQUEST, MSG_LOGIN_INVALID)
        if not user.email_verified:
            return _message(status.HTTP_400_BAD_REQUEST, MSG_LOGIN_UNVERIFIED)
        if not verify_password(payload.password, user.password_hash):
            return _message(status.HTTP_400_BAD_REQUEST, MSG_LOGIN_INVALID)

        response = _message(status.HTTP_200_OK, MSG_LOGIN_OK)
        token = create_session_token(user.id, persistent=payload.remember_me)
        set_session_cookie(response, token, persistent=payload.remember_me)
        logger.info("User %s logged in", user.id)
        return response
    except Exception:
        logger.exception("Login error")
        return _message(status.HTTP_500_INTERNAL_SERVER_ERROR, MSG_LOGIN_ERROR)


@router.get("/verify-email", response_model=MessageOut)
def verify_email(
    token: Optional[str] = None,
    users: UserRepository = Depends(get_user_repository),
):
    try:
        token = unquote(token) if token else token
        logger.debug("Received verification token")
        user = users.get_by_token(token) if token else None
        if user is None or user.token_expired():
            return _message(status.HTTP_400_BAD_REQUEST, MSG_VERIFY_INVALID)

        user.mark_verified()
        users.replace(user)
        logger.info("User %s verified their email", user.id)
        return {"message": MSG_VERIFY_OK}
    except Exception:
        logger.exception("Verification error")
        return _message(status.HTTP_500_INTERNAL_SERVER_ERROR, MSG_VERIFY_ERROR)


@router.post("/register", response_model=MessageOut, responses=VALIDATION_RESPONSES)
def register(
    payload: RegisterIn,
    users: UserRepository = Depends(get_user_repository),
    mailer: Mailer = Depends(get_email_service),
):
    try:
        token = generate_verification_token()
        user = UserDocument.new_unverified(
            email=payload.email,
            password_hash=hash_password(payload.password),
            token=token,
            expiry=verification_expiry(),
        )
        users.create(user)
        logger.info("User %s saved, sending verification email", user.id)

        # the record stays even if the email can't be sent
        mailer.send_verification_email(user.email, token)
        return {"message": MSG_REGISTER_OK}
    except Exception as e:
        logger.exception("Error during registration")
        return _message(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))


@router.get("/logout", response_model=MessageOut)
def logout():
    response = _message(status.HTTP_200_OK, MSG_LOGOUT_OK)
    clear_session_cookie(response)
    return response
