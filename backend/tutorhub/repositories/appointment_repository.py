# backend/tutorhub/repositories/appointment_repository.py
"""
Appointment Repository for the TutorHub platform

Data access for the appointment lifecycle, the recurring generator's
idempotency check and the reminder sweep. Transaction boundaries are owned
by the service layer.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.appointment import Appointment, AppointmentStatus
from ..models.course import Course
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AppointmentRepository(BaseRepository[Appointment]):
    """Repository for appointment data access."""

    def __init__(self, db: Session):
        super().__init__(db, Appointment)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            selectinload(Appointment.tutor),
            selectinload(Appointment.students),
            selectinload(Appointment.course).selectinload(Course.students),
        )

    def get_appointment_with_details(self, appointment_id: str) -> Optional[Appointment]:
        """Appointment with tutor, students and course loaded."""
        return self.get_by_id(appointment_id, load_relationships=True)

    def exists_for_course_at(self, course_id: str, start_time: datetime) -> bool:
        """
        True if a non-cancelled appointment exists for the course at start_time.

        A cancelled lesson does not hold its slot, so the generator may
        recreate it on a later run.
        """
        try:
            query = self.db.query(Appointment.id).filter(
                Appointment.course_id == course_id,
                Appointment.start_time == start_time,
                Appointment.status != AppointmentStatus.CANCELLED.value,
            )
            return self.db.query(query.exists()).scalar()
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error checking course {course_id} appointment at {start_time}: {str(e)}"
            )
            raise RepositoryException(f"Failed to check existing appointment: {str(e)}")

    def exists_scheduled_for_tutor_at(self, tutor_id: str, start_time: datetime) -> bool:
        """True if the tutor already holds a scheduled appointment starting at start_time."""
        try:
            query = self.db.query(Appointment.id).filter(
                Appointment.tutor_id == tutor_id,
                Appointment.start_time == start_time,
                Appointment.status == AppointmentStatus.SCHEDULED.value,
            )
            return self.db.query(query.exists()).scalar()
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error checking tutor {tutor_id} appointment at {start_time}: {str(e)}"
            )
            raise RepositoryException(f"Failed to check existing appointment: {str(e)}")

    def get_due_for_reminder(self, window_start: datetime, window_end: datetime) -> List[Appointment]:
        """Scheduled appointments starting in (window_start, window_end] without a reminder."""
        try:
            query = self.db.query(Appointment).filter(
                Appointment.status == AppointmentStatus.SCHEDULED.value,
                Appointment.start_time > window_start,
                Appointment.start_time <= window_end,
                Appointment.reminder_sent.is_(False),
            )
            return self._apply_eager_loading(query).order_by(Appointment.start_time).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting appointments due for reminder: {str(e)}")
            raise RepositoryException(f"Failed to get reminder candidates: {str(e)}")

    def get_due_for_day_before_reminder(
        self, window_start: datetime, window_end: datetime
    ) -> List[Appointment]:
        """Scheduled appointments in (window_start, window_end] without a day-before reminder."""
        try:
            query = self.db.query(Appointment).filter(
                Appointment.status == AppointmentStatus.SCHEDULED.value,
                Appointment.start_time > window_start,
                Appointment.start_time <= window_end,
                Appointment.day_before_reminder_sent.is_(False),
            )
            return self._apply_eager_loading(query).order_by(Appointment.start_time).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting appointments due for day-before reminder: {str(e)}")
            raise RepositoryException(f"Failed to get reminder candidates: {str(e)}")
