# backend/tutorhub/services/notification_service.py
"""
Notification Service for the TutorHub platform

Sends appointment emails (confirmation, cancellation, reminders) to the
tutor and every attending student using Jinja2 templates. Each recipient
is retried with exponential backoff; the methods return True only when
every recipient was reached.
"""

import asyncio
from enum import Enum
from functools import wraps
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, ParamSpec, TypeVar, Union

from jinja2.exceptions import TemplateNotFound
from sqlalchemy.orm import Session

from ..core.constants import BRAND_NAME
from ..core.exceptions import ServiceException
from ..models.appointment import Appointment
from ..models.user import User
from .base import BaseService
from .email import ConsoleEmailService, EmailService, get_email_service
from .template_service import TemplateService

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


class ReminderKind(str, Enum):
    ONE_HOUR = "one_hour"
    DAY_BEFORE = "day_before"


def retry(
    max_attempts: int = 3, backoff_seconds: float = 1.0
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """
    Decorator for retrying failed operations with exponential backoff.

    Args:
        max_attempts: Maximum number of retry attempts
        backoff_seconds: Initial backoff time in seconds

    Returns:
        Decorated function with retry logic
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            last_exception: Exception | None = None

            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except TemplateNotFound:
                    raise
                except Exception as e:
                    last_exception = e
                    if attempt < max_attempts - 1:
                        wait_time = backoff_seconds * (2**attempt)
                        logger.warning(
                            f"Attempt {attempt + 1}/{max_attempts} failed for {func.__name__}: {str(e)}. "
                            f"Retrying in {wait_time}s..."
                        )
                        await asyncio.sleep(wait_time)
                    else:
                        logger.error(
                            f"All {max_attempts} attempts failed for {func.__name__}: {str(e)}"
                        )

            if last_exception is not None:
                raise last_exception
            raise RuntimeError("Retry failed without capturing exception")

        return wrapper

    return decorator


class NotificationService(BaseService):
    """
    Central notification service for appointment emails.

    Inherits from BaseService for consistent architecture and metrics
    collection. Template and email backends are injectable.
    """

    def __init__(
        self,
        db: Optional[Session] = None,
        template_service: Optional[TemplateService] = None,
        email_service: Optional[Union[EmailService, ConsoleEmailService]] = None,
        retry_backoff_seconds: float = 1.0,
    ) -> None:
        super().__init__(db)
        self.template_service = template_service or TemplateService()
        self.email_service = email_service or get_email_service(db)
        self.retry_backoff_seconds = retry_backoff_seconds

    @staticmethod
    def _recipients(appointment: Appointment) -> List[User]:
        recipients: List[User] = list(appointment.students or [])
        if appointment.tutor is not None:
            recipients.append(appointment.tutor)
        return [user for user in recipients if user.email]

    @staticmethod
    def _build_context(appointment: Appointment, recipient: User) -> Dict[str, Any]:
        return {
            "appointment_id": appointment.id,
            "recipient_name": recipient.first_name,
            "tutor_name": appointment.tutor.full_name if appointment.tutor else "",
            "student_names": ", ".join(s.full_name for s in appointment.students or []),
            "course_title": appointment.course.title if appointment.course else None,
            "start_time": appointment.start_time,
            "end_time": appointment.end_time,
            "notes": appointment.notes,
            "credited_back": bool(appointment.credited_back),
        }

    async def _send_email(self, to_email: str, subject: str, html_content: str) -> bool:
        @retry(max_attempts=3, backoff_seconds=self.retry_backoff_seconds)
        async def _attempt() -> bool:
            self.email_service.send_email(to_email=to_email, subject=subject, html_content=html_content)
            return True

        return await _attempt()

    async def _notify_all(
        self,
        appointment: Appointment,
        template_name: str,
        subject: str,
        extra_context: Optional[Dict[str, Any]] = None,
    ) -> bool:
        recipients = self._recipients(appointment)
        if not recipients:
            self.logger.warning(f"No recipients with email for appointment {appointment.id}")
            return False

        all_sent = True
        for recipient in recipients:
            context = {**self._build_context(appointment, recipient), **(extra_context or {})}
            try:
                html_content = self.template_service.render_template(template_name, context)
            except TemplateNotFound as e:
                self.logger.error(f"Template error sending {template_name}: {str(e)}")
                raise ServiceException(f"Email template error: {str(e)}")

            try:
                await self._send_email(recipient.email, subject, html_content)
            except Exception as e:
                self.logger.error(
                    f"Failed to send {template_name} to {recipient.email} after retries: {str(e)}"
                )
                all_sent = False

        return all_sent

    @BaseService.measure_operation("send_appointment_confirmation")
    async def send_appointment_confirmation(self, appointment: Appointment) -> bool:
        """
        Send confirmation emails to the tutor and every student.

        Returns:
            bool: True if all emails sent successfully, False otherwise

        Raises:
            ServiceException: If template rendering fails
        """
        if not appointment:
            self.logger.error("Cannot send appointment confirmation: appointment is None")
            return False

        self.logger.info(f"Sending confirmation emails for appointment {appointment.id}")
        sent = await self._notify_all(
            appointment,
            "email/appointment_confirmation.html",
            f"{BRAND_NAME}: lesson confirmed",
        )
        if not sent:
            self.logger.warning(f"Some confirmation emails failed for appointment {appointment.id}")
        return sent

    @BaseService.measure_operation("send_appointment_cancellation")
    async def send_appointment_cancellation(self, appointment: Appointment) -> bool:
        """Send cancellation emails to the tutor and every student."""
        if not appointment:
            self.logger.error("Cannot send cancellation notification: appointment is None")
            return False

        self.logger.info(f"Sending cancellation emails for appointment {appointment.id}")
        return await self._notify_all(
            appointment,
            "email/appointment_cancellation.html",
            f"{BRAND_NAME}: lesson cancelled",
        )

    @BaseService.measure_operation("send_appointment_reminder")
    async def send_appointment_reminder(
        self, appointment: Appointment, kind: ReminderKind = ReminderKind.ONE_HOUR
    ) -> bool:
        """Send a one-hour or day-before reminder for an upcoming lesson."""
        if not appointment:
            self.logger.error("Cannot send reminder: appointment is None")
            return False

        kind = ReminderKind(kind)
        subject = (
            f"{BRAND_NAME}: your lesson is tomorrow"
            if kind == ReminderKind.DAY_BEFORE
            else f"{BRAND_NAME}: your lesson starts soon"
        )
        return await self._notify_all(
            appointment,
            "email/appointment_reminder.html",
            subject,
            extra_context={"kind": kind.value},
        )
