# backend/tutorhub/repositories/conflict_checker_repository.py
"""
Conflict Checker Repository for the TutorHub platform

Implements the data access for appointment conflict detection.
Only appointments in the scheduled status block a tutor's time;
completed, cancelled and no-show lessons never do.

The overlap predicate is half-open: an existing appointment conflicts
with [start, end) when existing.start < end and existing.end > start.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException
from ..models.appointment import Appointment, AppointmentStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ConflictCheckerRepository(BaseRepository[Appointment]):
    """
    Repository for conflict checking data access.

    Works primarily with the Appointment model but is a query-only repository.
    """

    def __init__(self, db: Session):
        super().__init__(db, Appointment)

    def _overlapping_query(
        self,
        tutor_id: str,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[str] = None,
    ) -> Query:
        query = self.db.query(Appointment).filter(
            Appointment.tutor_id == tutor_id,
            Appointment.status == AppointmentStatus.SCHEDULED.value,
            Appointment.start_time < end,
            Appointment.end_time > start,
        )
        if exclude_appointment_id:
            query = query.filter(Appointment.id != exclude_appointment_id)
        return query

    def count_conflicts(
        self,
        tutor_id: str,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[str] = None,
    ) -> int:
        """Number of scheduled appointments for the tutor overlapping [start, end)."""
        try:
            return self._overlapping_query(tutor_id, start, end, exclude_appointment_id).count()
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting conflicts for tutor {tutor_id}: {str(e)}")
            raise RepositoryException(f"Failed to check conflicts: {str(e)}")

    def get_conflicting_appointments(
        self,
        tutor_id: str,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[Appointment]:
        """Scheduled appointments for the tutor overlapping [start, end), by start time."""
        try:
            return (
                self._overlapping_query(tutor_id, start, end, exclude_appointment_id)
                .order_by(Appointment.start_time)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting conflicts for tutor {tutor_id}: {str(e)}")
            raise RepositoryException(f"Failed to get conflicts: {str(e)}")
