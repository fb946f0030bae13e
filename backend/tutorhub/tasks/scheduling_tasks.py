# backend/tutorhub/tasks/scheduling_tasks.py
"""
Periodic scheduling tasks.

- generate_recurring_appointments: daily batch from course schedule slots
- send_appointment_reminders: one-hour and day-before reminder sweep
"""

from datetime import datetime
from typing import Any, Dict, Optional

from celery.utils.log import get_task_logger

from ..database import session_scope
from ..services.appointment_generator import RecurringAppointmentGenerator
from ..services.reminder_service import ReminderService
from .celery_app import celery_app

logger = get_task_logger(__name__)


def _parse_now(now: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(now) if now else None


@celery_app.task(name="tutorhub.tasks.scheduling.generate_recurring_appointments")
def generate_recurring_appointments(now: Optional[str] = None) -> Dict[str, Any]:
    """
    Generate appointments for every active course.

    Args:
        now: Optional ISO-8601 reference time (defaults to current business time)

    Returns:
        Summary counts of the run
    """
    with session_scope() as session:
        summary = RecurringAppointmentGenerator(session).generate(_parse_now(now))

    logger.info(
        "Recurring generation: %s created, %s failed courses",
        summary.appointments_created,
        summary.courses_failed,
    )
    return summary.as_dict()


@celery_app.task(name="tutorhub.tasks.scheduling.send_appointment_reminders")
def send_appointment_reminders(now: Optional[str] = None) -> Dict[str, int]:
    """Send reminders that are due now."""
    with session_scope() as session:
        summary = ReminderService(session).send_due_reminders(_parse_now(now))

    return {
        "one_hour_sent": summary.one_hour_sent,
        "day_before_sent": summary.day_before_sent,
        "failed": summary.failed,
    }
