"""
Outbound email for account verification and admin decisions.

Delivery is best effort: failures are logged and reported as ``False``,
never raised, so the state change that triggered the email stands.
"""

import logging
import smtplib
from email.message import EmailMessage
from functools import lru_cache
from typing import Optional

from app.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class EmailService:
    """Renders and sends transactional emails over SMTP."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

    def verification_url(self, token: str) -> str:
        return f"{self.settings.base_url.rstrip('/')}/api/verify?token={token}"

    def login_url(self) -> str:
        return f"{self.settings.base_url.rstrip('/')}/auth"

    def build_message(
        self,
        to_email: str,
        subject: str,
        body: str,
        html: Optional[str] = None,
    ) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.settings.email_from
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content(body)
        if html:
            msg.add_alternative(html, subtype="html")
        return msg

    def send(self, to_email: str, subject: str, body: str, html: Optional[str] = None) -> bool:
        """
        Send one email.

        Returns:
            True when the message was handed to the SMTP server (or logged
            because SMTP is not configured), False on any delivery failure
        """
        if not self.settings.smtp_configured:
            logger.info("SMTP not configured; email to %s not sent (subject=%r)", to_email, subject)
            logger.debug("Email body:\n%s", body)
            return True

        msg = self.build_message(to_email, subject, body, html)
        try:
            with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=30) as server:
                if self.settings.smtp_use_tls:
                    server.starttls()
                server.login(self.settings.smtp_username, self.settings.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send email to %s (subject=%r)", to_email, subject)
            return False

        logger.info("Sent email to %s (subject=%r)", to_email, subject)
        return True

    def send_verification_email(self, to_email: str, token: str) -> bool:
        """Welcome email with the link that moves a new account to ``verified``."""
        url = self.verification_url(token)
        hours = self.settings.verification_token_ttl_hours
        body = (
            "Welcome to LogisticsHub!\n\n"
            "Thank you for registering with us. To activate your account, "
            "please click or copy the link below:\n\n"
            f"{url}\n\n"
            f"This link will expire in {hours} hours.\n\n"
            "If you did not register for an account, please ignore this email."
        )
        html = (
            "<html><body>"
            "<h1>Welcome to LogisticsHub!</h1>"
            "<p>Thank you for registering with us. To activate your account, "
            "please follow the link below:</p>"
            f'<p><a href="{url}">Verify My Account</a></p>'
            f"<p>This link will expire in {hours} hours.</p>"
            "</body></html>"
        )
        return self.send(to_email, "Verify Your Account", body, html)

    def send_approval_email(
        self,
        to_email: str,
        approved: bool,
        message: Optional[str] = None,
        token: Optional[str] = None,
    ) -> bool:
        """Notify a user of the admin decision on their registration.

        Approvals carry a fresh verification link when ``token`` is given.
        """
        if approved:
            subject = "Your Account Has Been Approved"
            lines = [
                "Account Approved!",
                "",
                "Your account has been approved. You can now log in and start using our platform.",
                "",
            ]
            if token:
                lines += ["Please confirm your email address first:", self.verification_url(token), ""]
            lines.append(f"Log in at: {self.login_url()}")
        else:
            subject = "Account Registration Status"
            lines = [
                "Account Status Update",
                "",
                "We have reviewed your registration and we're sorry to inform you "
                "that your account has not been approved at this time.",
                "",
            ]
            if message:
                lines += [f"Reason: {message}", ""]
            lines.append("If you have any questions, please contact our support team.")

        return self.send(to_email, subject, "\n".join(lines))


@lru_cache()
def get_email_service() -> EmailService:
    """Get the shared email service instance."""
    return EmailService()
