"""
Email Service

Delivers transactional email (sign-in links) over SMTP.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from config.settings import settings

logger = logging.getLogger(__name__)


class SmtpMailer:
    """Blocking SMTP sender; callers on the event loop run it in a thread."""

    def __init__(
        self,
        host: Optional[str],
        port: int = 587,
        user: Optional[str] = None,
        password: Optional[str] = None,
        sender: str = "no-reply@localhost",
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender

    @classmethod
    def from_settings(cls) -> "SmtpMailer":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.smtp_user,
            password=settings.smtp_password,
            sender=settings.email_from,
        )

    def send(self, to: str, subject: str, body: str) -> bool:
        """
        Send a plain-text email.

        Args:
            to: Recipient address
            subject: Subject line
            body: Plain-text body

        Returns:
            bool: True if the SMTP server accepted the message, False otherwise
        """
        if not self.host:
            logger.error("SMTP_HOST is not configured. Cannot send email.")
            return False

        message = MIMEMultipart()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.attach(MIMEText(body, "plain"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=10) as server:
                server.starttls()
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.send_message(message)
            logger.info(f"Email sent to {to}: {subject}")
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to}: {e}")
            return False


def render_magic_link_email(link: str) -> str:
    return f"""Welcome to SlimPath!

Your 30-day plan is ready. Use the link below to sign in and finish your onboarding:

{link}

The link expires in {settings.magic_link_expiry_minutes} minutes and can only be used from this email.

---
This is an automated message. Please do not reply to this email.
"""
