"""
Core email sending utilities using Brevo SMTP.
"""

import smtplib
from email.message import EmailMessage
from typing import Optional

from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


def _get_smtp_password() -> str:
    """BREVO_KEY takes priority over SMTP_PASSWORD."""
    settings = get_settings()
    return settings.BREVO_KEY or settings.SMTP_PASSWORD


def email_configured() -> bool:
    """True when SMTP credentials are present."""
    return bool(_get_smtp_password() and get_settings().SMTP_USERNAME)


async def send_email(
    to_email: str,
    subject: str,
    body: str,
    html_body: Optional[str] = None,
) -> bool:
    """
    Send an email using Brevo SMTP.

    Returns:
        True if the email was handed to the SMTP relay, False when email is
        not configured or sending failed.
    """
    settings = get_settings()

    if not email_configured():
        logger.info("SMTP not configured - would have sent email to %s: %s", to_email, subject)
        return False

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = f"{settings.DEFAULT_FROM_NAME} <{settings.DEFAULT_FROM_EMAIL}>"
    msg["To"] = to_email
    msg.set_content(body)
    if html_body:
        msg.add_alternative(html_body, subtype="html")

    try:
        logger.info("Sending email to %s: %s", to_email, subject)
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
            server.starttls()
            server.login(settings.SMTP_USERNAME, _get_smtp_password())
            server.send_message(msg)
        logger.info("Email sent successfully to %s", to_email)
        return True

    except smtplib.SMTPAuthenticationError as e:
        logger.error("SMTP authentication failed: %s", e)
        return False
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send email to %s: %s: %s", to_email, type(e).__name__, e)
        return False
