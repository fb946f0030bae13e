# backend/tutorhub/tasks/notification_tasks.py
"""
Celery tasks that deliver appointment emails outside the request.

AppointmentService enqueues these after its commit and never waits on
them. A send that fails after NotificationService's own retries, or runs
past the external call timeout, is logged here and reported in the task
result; the appointment itself is left untouched.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from celery.utils.log import get_task_logger

from ..database import session_scope
from ..models.appointment import AppointmentStatus
from ..repositories.factory import RepositoryFactory
from ..services.notification_service import NotificationService
from ..utils.best_effort import run_best_effort
from .celery_app import celery_app

logger = get_task_logger(__name__)


@celery_app.task(
    name="tutorhub.tasks.notifications.send_appointment_confirmation", max_retries=0
)
def send_appointment_confirmation(appointment_id: str) -> Dict[str, Any]:
    """
    Email the tutor and students that a lesson was booked.

    Records confirmation_email_sent only when every recipient was reached.
    Cancelled, finished or already-confirmed appointments are skipped.
    """
    with session_scope() as session:
        appointment = RepositoryFactory.create_appointment_repository(
            session
        ).get_appointment_with_details(appointment_id)
        if appointment is None:
            logger.warning("Appointment %s missing; confirmation skipped", appointment_id)
            return {"appointment_id": appointment_id, "sent": False}
        if not appointment.is_scheduled or appointment.confirmation_email_sent:
            logger.info(
                "Appointment %s is %s (confirmed=%s); confirmation skipped",
                appointment_id,
                appointment.status,
                appointment.confirmation_email_sent,
            )
            return {"appointment_id": appointment_id, "sent": False}

        sent = bool(
            run_best_effort(
                "notification.confirmation",
                NotificationService(session).send_appointment_confirmation,
                appointment,
                default=False,
            )
        )
        if sent:
            appointment.mark_confirmation_sent(datetime.now(timezone.utc))

    logger.info("Confirmation for appointment %s sent=%s", appointment_id, sent)
    return {"appointment_id": appointment_id, "sent": sent}


@celery_app.task(
    name="tutorhub.tasks.notifications.send_appointment_cancellation", max_retries=0
)
def send_appointment_cancellation(appointment_id: str) -> Dict[str, Any]:
    """Email the tutor and students that a lesson was cancelled."""
    with session_scope() as session:
        appointment = RepositoryFactory.create_appointment_repository(
            session
        ).get_appointment_with_details(appointment_id)
        if appointment is None:
            logger.warning("Appointment %s missing; cancellation notice skipped", appointment_id)
            return {"appointment_id": appointment_id, "sent": False}
        if appointment.status != AppointmentStatus.CANCELLED:
            logger.info(
                "Appointment %s is %s; cancellation notice skipped",
                appointment_id,
                appointment.status,
            )
            return {"appointment_id": appointment_id, "sent": False}

        sent = bool(
            run_best_effort(
                "notification.cancellation",
                NotificationService(session).send_appointment_cancellation,
                appointment,
                default=False,
            )
        )

    logger.info("Cancellation notice for appointment %s sent=%s", appointment_id, sent)
    return {"appointment_id": appointment_id, "sent": sent}
