"""
Email Service

Sends the account verification email over SMTP (STARTTLS + login).
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Protocol
from urllib.parse import quote

from loginpage.core.config import settings

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = "Verify your email address"


class Mailer(Protocol):
    def send_verification_email(self, email: str, verification_token: str) -> None: ...


def build_verification_url(app_url: str, verification_token: str) -> str:
    base = (app_url or "").rstrip("/")
    return f"{base}/verify-email?token={quote(verification_token, safe='')}"


def render_verification_html(verification_url: str, expire_hours: int) -> str:
    return f"""
<h2>Welcome!</h2>
<p>Please verify your email address by clicking the link below:</p>
<p><a href='{verification_url}'>Verify Email Address</a></p>
<p>This link will expire in {expire_hours} hours.</p>
"""


class EmailService:
    def __init__(
        self,
        smtp_server: str,
        smtp_port: int,
        username: str,
        password: str,
        from_address: str,
        from_name: str = "",
        app_url: str = "",
        timeout: int = 30,
    ):
        self.smtp_server = smtp_server
        self.smtp_port = smtp_port
        self.username = username
        self.password = password
        self.from_address = from_address
        self.from_name = from_name
        self.app_url = app_url
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "EmailService":
        return cls(
            smtp_server=settings.SMTP_SERVER,
            smtp_port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            from_address=settings.SMTP_FROM_ADDRESS,
            from_name=settings.SMTP_FROM_NAME,
            app_url=settings.APP_URL,
            timeout=settings.SMTP_TIMEOUT_SECONDS,
        )

    def build_message(self, email: str, verification_token: str) -> MIMEMultipart:
        verification_url = build_verification_url(self.app_url, verification_token)

        message = MIMEMultipart("alternative")
        message["From"] = formataddr((self.from_name, self.from_address))
        message["To"] = email
        message["Subject"] = VERIFICATION_SUBJECT
        message.attach(
            MIMEText(
                render_verification_html(verification_url, settings.VERIFICATION_TOKEN_EXPIRE_HOURS),
                "html",
            )
        )
        return message

    def send_verification_email(self, email: str, verification_token: str) -> None:
        """
        Send the verification link to a newly registered address.

        Raises:
            RuntimeError: SMTP password is not configured
            smtplib.SMTPException / OSError: connect, TLS, auth or send failed
        """
        if not self.password:
            raise RuntimeError("SMTP password not configured")

        message = self.build_message(email, verification_token)
        logger.info("Sending verification email to %s via %s:%s", email, self.smtp_server, self.smtp_port)

        try:
            with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.username, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Email sending to %s failed: %s", email, e)
            raise

        logger.info("Verification email sent to %s", email)


def get_email_service() -> Mailer:
    return EmailService.from_settings()
