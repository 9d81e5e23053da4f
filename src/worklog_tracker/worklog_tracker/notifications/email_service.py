"""
Email Service

Sends invitation and password-reset emails over SMTP.
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SMTPConfig:
    host: str
    port: int = 587
    user: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    sender: Optional[str] = None


class EmailService:
    """Thin smtplib wrapper. Every send returns True/False and never raises."""

    def __init__(self, config: SMTPConfig, *, company_name: str = "Worklog Tracker"):
        self._config = config
        self._company_name = company_name

    @property
    def company_name(self) -> str:
        return self._company_name

    def _send(self, *, to: str, subject: str, text: str, html: Optional[str] = None) -> bool:
        sender = self._config.sender or self._config.user
        if not self._config.host or not sender:
            logger.error("SMTP is not configured. Set SMTP_HOST and SMTP_USER (or EMAIL_FROM).")
            return False

        message = MIMEMultipart("alternative")
        message["From"] = sender
        message["To"] = to
        message["Subject"] = subject
        message.attach(MIMEText(text, "plain"))
        if html:
            message.attach(MIMEText(html, "html"))

        try:
            with smtplib.SMTP(self._config.host, self._config.port, timeout=30) as server:
                if self._config.use_tls:
                    server.starttls()
                if self._config.user and self._config.password:
                    server.login(self._config.user, self._config.password)
                server.send_message(message)

            logger.info("Email '%s' sent to %s", subject, to)
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP error sending email to %s: %s", to, e)
            return False

    def send_invitation(
        self,
        *,
        to: str,
        first_name: str,
        inviter_name: str,
        set_password_url: str,
        accept_url: str,
    ) -> bool:
        """
        Invite a developer to finish account setup.

        The email carries two links: one to choose a password, and one to
        sign up with Atlassian instead.
        """
        subject = f"Welcome to {self._company_name} - Complete Your Account Setup"
        text = f"""Hi {first_name},

{inviter_name} has invited you to join {self._company_name}.

Set your password to activate your account:
{set_password_url}

Or connect your Atlassian account instead:
{accept_url}

The password link expires in 24 hours.

---
This is an automated message. Please do not reply to this email.
"""
        html = f"""<p>Hi {first_name},</p>
<p>{inviter_name} has invited you to join <strong>{self._company_name}</strong>.</p>
<p><a href="{set_password_url}">Set your password</a> to activate your account,
or <a href="{accept_url}">continue with Atlassian</a>.</p>
<p>The password link expires in 24 hours.</p>
"""
        return self._send(to=to, subject=subject, text=text, html=html)

    def send_password_reset(self, *, to: str, first_name: str, reset_url: str) -> bool:
        subject = f"{self._company_name} - Reset Your Password"
        text = f"""Hi {first_name},

We received a request to reset your password. Use the link below within one hour:
{reset_url}

If you did not ask for this, you can ignore this email.
"""
        return self._send(to=to, subject=subject, text=text)
