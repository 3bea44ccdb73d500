# ============================================================================
# services/email.py - Email Service (SendGrid)
# ============================================================================

import logging

import sendgrid
from sendgrid.helpers.mail import Mail

from fashionx.core.config import settings

logger = logging.getLogger(__name__)


def _layout(title: str, body: str) -> str:
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #1a1a1a;">{title}</h2>
        {body}
        <p><small>If you did not request this, you can safely ignore this email.</small></p>
        <p><small>The FashionX Team</small></p>
    </div>
    """


class EmailService:
    """Sends account emails. Runs from BackgroundTasks, so failures are logged, not raised."""

    def __init__(self):
        self.api_key = settings.SENDGRID_API_KEY
        self.sg = sendgrid.SendGridAPIClient(api_key=self.api_key) if self.api_key else None

    def is_configured(self) -> bool:
        return bool(self.sg and settings.FROM_EMAIL)

    def _send(self, email: str, subject: str, html_content: str) -> bool:
        if not self.is_configured():
            logger.warning(f"SendGrid is not configured; skipping '{subject}' to {email}")
            return False

        message = Mail(
            from_email=settings.FROM_EMAIL,
            to_emails=email,
            subject=subject,
            html_content=html_content,
        )
        try:
            response = self.sg.send(message)
        except Exception as e:
            logger.error(f"❌ Error sending '{subject}' to {email}: {e}")
            return False

        logger.info(f"✅ Sent '{subject}' to {email} (status {response.status_code})")
        return True

    def send_otp_email(self, email: str, first_name: str, otp: str) -> bool:
        body = f"""
        <p>Hi {first_name or 'there'},</p>
        <p>Use the code below to verify your email address:</p>
        <p style="font-size: 28px; letter-spacing: 6px; font-weight: bold;">{otp}</p>
        <p><small>This code expires in {settings.OTP_EXPIRE_MINUTES} minutes.</small></p>
        """
        return self._send(email, "Verify Your Email - FashionX", _layout("Welcome to FashionX!", body))

    def send_password_reset_email(self, email: str, first_name: str, reset_token: str) -> bool:
        reset_url = f"{settings.FRONTEND_URL}/reset-password?token={reset_token}"
        body = f"""
        <p>Hi {first_name or 'there'},</p>
        <p>Click the link below to choose a new password:</p>
        <a href="{reset_url}" style="display: inline-block; padding: 12px 24px;
           background-color: #1a1a1a; color: white; text-decoration: none;
           border-radius: 8px; margin: 20px 0;">Reset Password</a>
        <p><small>This link expires in {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes.</small></p>
        """
        return self._send(email, "Password Reset - FashionX", _layout("Reset your password", body))
