"""Outbound mail for password-reset OTPs."""

import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

from taskdesk.core.config import Settings
from taskdesk.core.errors import EmailDeliveryError

logger = logging.getLogger(__name__)

OTP_SUBJECT = "Password Reset OTP - TaskDesk"


class EmailSender(Protocol):
    def send_otp_email(self, to_address: str, otp: str, user_name: str, expires_minutes: int) -> None:
        ...


def build_otp_message(
    from_address: str,
    to_address: str,
    otp: str,
    user_name: str,
    expires_minutes: int,
) -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = OTP_SUBJECT
    message["From"] = from_address
    message["To"] = to_address
    message.set_content(
        f"Hello {user_name},\n\n"
        f"Your password reset code is {otp}.\n"
        f"It expires in {expires_minutes} minutes.\n\n"
        "If you did not request a password reset, ignore this email.\n"
    )
    message.add_alternative(
        f"""\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">Password Reset OTP</h2>
  <p>Hello {user_name},</p>
  <p>You requested to reset your TaskDesk password. Your one-time password is:</p>
  <div style="text-align: center; margin: 30px 0;">
    <h1 style="color: #007bff; margin: 0; font-size: 36px; letter-spacing: 8px;">{otp}</h1>
  </div>
  <p><strong>This OTP will expire in {expires_minutes} minutes.</strong></p>
  <p>If you did not request this password reset, please ignore this email.</p>
</div>
""",
        subtype="html",
    )
    return message


class SmtpEmailSender:
    """Send mail through the SMTP server configured in Settings."""

    def __init__(self, settings: Settings) -> None:
        self.host = settings.EMAIL_HOST
        self.port = settings.EMAIL_PORT
        self.secure = settings.EMAIL_SECURE
        self.username = settings.EMAIL_USER
        self.password = settings.EMAIL_PASS
        self.from_address = settings.EMAIL_FROM
        self.timeout = settings.EMAIL_TIMEOUT_SECONDS

    def _connect(self) -> smtplib.SMTP:
        if self.secure:
            return smtplib.SMTP_SSL(host=self.host, port=self.port, timeout=self.timeout)
        return smtplib.SMTP(host=self.host, port=self.port, timeout=self.timeout)

    def send(self, message: EmailMessage) -> None:
        with self._connect() as s:
            s.ehlo()
            if not self.secure and s.has_extn("starttls"):
                s.starttls()
                s.ehlo()
            if self.username and self.password:
                s.login(self.username, self.password)
            s.send_message(message)

    def send_otp_email(self, to_address: str, otp: str, user_name: str, expires_minutes: int) -> None:
        message = build_otp_message(self.from_address, to_address, otp, user_name, expires_minutes)
        try:
            self.send(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send OTP email to %s: %s", to_address, exc)
            raise EmailDeliveryError("Failed to send OTP email") from exc
