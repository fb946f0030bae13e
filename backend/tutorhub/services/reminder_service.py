# backend/tutorhub/services/reminder_service.py
"""
Reminder Service for the TutorHub platform

Sweeps upcoming scheduled appointments and sends two reminders per lesson:
a day-before reminder for lessons starting in (now + 1h, now + 24h] and a
one-hour reminder for lessons starting in (now, now + 1h]. A flag is set
only when its email went out, so a failed send is retried on the next sweep.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
from typing import TYPE_CHECKING, Optional

from sqlalchemy.orm import Session

from ..core.constants import DAY_BEFORE_REMINDER_LEAD_HOURS, REMINDER_LEAD_HOURS
from ..core.exceptions import ServiceException
from ..models.appointment import Appointment
from ..repositories.factory import RepositoryFactory
from ..utils.best_effort import run_best_effort
from ..utils.time_ranges import business_now, to_business_time
from .base import BaseService
from .notification_service import ReminderKind

if TYPE_CHECKING:
    from ..repositories.appointment_repository import AppointmentRepository
    from .notification_service import NotificationService

logger = logging.getLogger(__name__)


@dataclass
class ReminderSummary:
    one_hour_sent: int = 0
    day_before_sent: int = 0
    failed: int = 0


class ReminderService(BaseService):
    """Dispatches appointment reminders."""

    def __init__(
        self,
        db: Session,
        notification_service: Optional["NotificationService"] = None,
        repository: Optional["AppointmentRepository"] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_appointment_repository(db)
        if notification_service is None:
            from .notification_service import NotificationService

            notification_service = NotificationService(db)
        self.notification_service = notification_service

    def _send(self, appointment: Appointment, kind: ReminderKind) -> bool:
        return bool(
            run_best_effort(
                f"notification.reminder_{kind.value}",
                self.notification_service.send_appointment_reminder,
                appointment,
                kind,
                default=False,
            )
        )

    def _mark(self, appointment: Appointment, kind: ReminderKind) -> None:
        sent_at = datetime.now(timezone.utc)
        try:
            with self.transaction():
                if kind == ReminderKind.DAY_BEFORE:
                    appointment.mark_day_before_reminder_sent(sent_at)
                else:
                    appointment.mark_reminder_sent(sent_at)
        except ServiceException as e:
            self.logger.error(
                f"Failed to record {kind.value} reminder for appointment {appointment.id}: {str(e)}"
            )

    @BaseService.measure_operation("send_due_reminders")
    def send_due_reminders(self, now: Optional[datetime] = None) -> ReminderSummary:
        """Send every reminder that is due at now."""
        now = to_business_time(now) if now is not None else business_now()
        one_hour_end = now + timedelta(hours=REMINDER_LEAD_HOURS)
        day_before_end = now + timedelta(hours=DAY_BEFORE_REMINDER_LEAD_HOURS)
        summary = ReminderSummary()

        for appointment in self.repository.get_due_for_reminder(now, one_hour_end):
            if self._send(appointment, ReminderKind.ONE_HOUR):
                self._mark(appointment, ReminderKind.ONE_HOUR)
                summary.one_hour_sent += 1
            else:
                summary.failed += 1

        for appointment in self.repository.get_due_for_day_before_reminder(
            one_hour_end, day_before_end
        ):
            if self._send(appointment, ReminderKind.DAY_BEFORE):
                self._mark(appointment, ReminderKind.DAY_BEFORE)
                summary.day_before_sent += 1
            else:
                summary.failed += 1

        self.logger.info(
            f"Reminders sent: {summary.one_hour_sent} one-hour, "
            f"{summary.day_before_sent} day-before, {summary.failed} failed"
        )
        return summary
