"""
Outbound mail for password reset links.

When no SMTP host is configured the message is logged instead of sent
(development mode).  Delivery failures are logged, never raised: callers
dispatch mail fire-and-forget.
"""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from app.core.config import settings

logger = logging.getLogger(__name__)


class MailService:
    def __init__(
        self,
        *,
        smtp_host: str | None = None,
        smtp_port: int = 587,
        smtp_user: str | None = None,
        smtp_password: str | None = None,
        smtp_use_tls: bool = True,
        from_email: str | None = None,
        frontend_url: str = "http://localhost:3000",
    ) -> None:
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.smtp_use_tls = smtp_use_tls
        self.from_email = from_email or smtp_user
        self.frontend_url = frontend_url.rstrip("/")

    @classmethod
    def from_settings(cls) -> "MailService":
        return cls(
            smtp_host=settings.SMTP_HOST,
            smtp_port=settings.SMTP_PORT,
            smtp_user=settings.SMTP_USER,
            smtp_password=settings.SMTP_PASSWORD,
            smtp_use_tls=settings.SMTP_USE_TLS,
            from_email=settings.MAIL_FROM,
            frontend_url=settings.FRONTEND_URL,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    @staticmethod
    def _redact(email: str) -> str:
        if "@" not in email:
            return "redacted"
        local, domain = email.split("@", 1)
        return f"{local[:2]}***@{domain}"

    def _send(self, to_email: str, subject: str, text_body: str, html_body: str) -> bool:
        if not self.is_configured:
            logger.info("Mail (dev mode) to %s: %s", self._redact(to_email), subject)
            return True

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        context = ssl.create_default_context()
        try:
            if self.smtp_use_tls:
                with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
                    server.starttls(context=context)
                    if self.smtp_user and self.smtp_password:
                        server.login(self.smtp_user, self.smtp_password)
                    server.sendmail(self.from_email, to_email, msg.as_string())
            else:
                with smtplib.SMTP_SSL(
                    self.smtp_host, self.smtp_port, context=context, timeout=30
                ) as server:
                    if self.smtp_user and self.smtp_password:
                        server.login(self.smtp_user, self.smtp_password)
                    server.sendmail(self.from_email, to_email, msg.as_string())
        except (smtplib.SMTPException, ssl.SSLError, OSError) as e:
            logger.error(
                "Mail to %s failed: %s: %s", self._redact(to_email), type(e).__name__, e
            )
            return False

        logger.info("Mail sent to %s: %s", self._redact(to_email), subject)
        return True

    def send_password_reset_email(self, to_email: str, token: str) -> bool:
        reset_link = f"{self.frontend_url}/reset-password?token={token}"
        text_body = (
            "You requested a password reset.\n\n"
            f"Reset your password here (valid for {settings.RESET_TOKEN_EXPIRE_HOURS} hour): "
            f"{reset_link}\n\nIf you did not request this, ignore this email."
        )
        html_body = (
            "<p>You requested a password reset. Click the link below to reset your password:</p>"
            f'<p><a href="{reset_link}">Reset Password</a></p>'
            "<p>If you did not request this, ignore this email.</p>"
        )
        return self._send(to_email, "Password Reset Request", text_body, html_body)
