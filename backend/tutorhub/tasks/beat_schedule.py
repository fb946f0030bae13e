# backend/tutorhub/tasks/beat_schedule.py
"""
Celery Beat schedule configuration for TutorHub.

Tasks are scheduled using crontab expressions in the business timezone.
"""

from typing import Any, Dict

from celery.schedules import crontab

CELERYBEAT_SCHEDULE: Dict[str, Dict[str, Any]] = {
    # Recurring lessons for the coming weeks - once a day, early morning
    "generate-recurring-appointments": {
        "task": "tutorhub.tasks.scheduling.generate_recurring_appointments",
        "schedule": crontab(hour=2, minute=0),
        "options": {"queue": "scheduling", "priority": 5},
    },
    # One-hour and day-before reminders
    "send-appointment-reminders": {
        "task": "tutorhub.tasks.scheduling.send_appointment_reminders",
        "schedule": crontab(minute="*/15"),
        "options": {"queue": "scheduling", "priority": 7},
    },
}


def get_beat_schedule() -> Dict[str, Dict[str, Any]]:
    """Return a copy of the beat schedule."""
    return {name: dict(entry) for name, entry in CELERYBEAT_SCHEDULE.items()}
