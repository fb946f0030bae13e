# backend/tutorhub/services/email.py
"""
Email Service for the TutorHub platform

Sends email through the Resend API. When EMAIL_PROVIDER is "console" (the
default outside production) messages are written to the log instead.
"""

import logging
import re
from typing import Any, Dict, Optional, Union

import resend
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ServiceException
from .base import BaseService

logger = logging.getLogger(__name__)


def html_to_text(html_content: str) -> str:
    """Convert HTML content to plain text for better deliverability"""
    text = re.sub(r"<[^>]+>", "", html_content)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


class EmailService(BaseService):
    """
    Service for sending emails using Resend API.

    Extends BaseService for consistent architecture, metrics collection,
    and standardized error handling.
    """

    def __init__(self, db: Optional[Session] = None):
        super().__init__(db)

        api_key = settings.resend_api_key
        if not api_key:
            raise ServiceException("Resend API key not configured")

        resend.api_key = api_key
        self.from_email = settings.from_email
        self.logger.info("EmailService initialized successfully")

    @BaseService.measure_operation("send_email")
    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send an email using Resend.

        Raises:
            ServiceException: If email sending fails
        """
        try:
            email_data = {
                "from": self.from_email,
                "to": to_email,
                "subject": subject,
                "html": html_content,
                "text": text_content or html_to_text(html_content),
            }
            response = resend.Emails.send(email_data)

            self.logger.info(f"Email sent successfully to {to_email} - Subject: {subject}")
            self.log_operation("email_sent", to_email=to_email, subject=subject)
            return response
        except Exception as e:
            error_msg = str(e) if e else "Unknown error"
            self.logger.error(f"Failed to send email to {to_email}: {error_msg}")
            self.log_operation("email_failed", to_email=to_email, subject=subject, error=error_msg)
            raise ServiceException(f"Email sending failed: {error_msg}")


class ConsoleEmailService:
    """Email service that logs messages instead of sending them."""

    def __init__(self, *_: Any, **__: Any) -> None:
        self.from_email = settings.from_email

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> Dict[str, Any]:
        logger.info(
            "[console email] to=%s subject=%s\n%s",
            to_email,
            subject,
            text_content or html_to_text(html_content),
        )
        return {"id": "console"}


def get_email_service(db: Optional[Session] = None) -> Union[EmailService, ConsoleEmailService]:
    """Return the email backend selected by EMAIL_PROVIDER."""
    if settings.email_provider == "resend":
        return EmailService(db)
    return ConsoleEmailService()
