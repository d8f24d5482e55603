"""
Email service - async SMTP delivery for password reset mails.
Sending is skipped (and logged) when SMTP credentials are not configured.
"""

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

from exam_manager.config import Settings

logger = logging.getLogger(__name__)


class EmailService:
    """Async email service using SMTP."""

    def __init__(self, settings: Settings):
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_user = settings.smtp_user
        self.smtp_password = settings.smtp_password
        self.from_email = settings.email_from
        self.from_name = settings.email_from_name

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_user and self.smtp_password)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: str | None = None,
    ) -> bool:
        """Send an email. Returns True if successful, False otherwise."""
        if not self.is_configured:
            logger.warning("Email service not configured, skipping send to %s", to_email)
            return False

        message = MIMEMultipart("alternative")
        message["From"] = f"{self.from_name} <{self.from_email}>"
        message["To"] = to_email
        message["Subject"] = subject
        if text_content:
            message.attach(MIMEText(text_content, "plain"))
        message.attach(MIMEText(html_content, "html"))

        try:
            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=True,
            )
        except aiosmtplib.SMTPException:
            logger.exception("Failed to send email to %s: %s", to_email, subject)
            return False
        logger.info("Sent email to %s: %s", to_email, subject)
        return True

    async def send_password_reset(self, to_email: str, user_name: str, token: str, valid_minutes: int) -> bool:
        html = f"""
        <h2>Password reset</h2>
        <p>Hello {user_name},</p>
        <p>Your password reset code is:</p>
        <p style="font-size: 24px; font-weight: bold; letter-spacing: 4px;">{token}</p>
        <p>The code is valid for {valid_minutes} minutes. If you did not request a reset, ignore this email.</p>
        """
        text = f"Your Exam Manager password reset code is {token}. It is valid for {valid_minutes} minutes."
        return await self.send_email(to_email, "Exam Manager password reset", html, text)
