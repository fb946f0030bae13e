# backend/tutorhub/repositories/availability_repository.py
"""
Availability Repository for the TutorHub platform

Read paths answer a single question for the scheduling core: does some
availability record fully contain a given "HH:MM" window? Zero-padded time
strings compare correctly as text, so containment is a pair of string
comparisons in SQL.
"""

from datetime import date
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.availability import Availability
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AvailabilityRepository(BaseRepository[Availability]):
    """Repository for tutor availability windows."""

    def __init__(self, db: Session):
        super().__init__(db, Availability)

    def find_recurring_window(
        self, tutor_id: str, day_of_week: int, time_start: str, time_end: str
    ) -> Optional[Availability]:
        """Weekly record on day_of_week containing [time_start, time_end]."""
        try:
            return (
                self.db.query(Availability)
                .filter(
                    Availability.tutor_id == tutor_id,
                    Availability.day_of_week == day_of_week,
                    Availability.is_recurring.is_(True),
                    Availability.start_time <= time_start,
                    Availability.end_time >= time_end,
                )
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking recurring availability: {str(e)}")
            raise RepositoryException(f"Failed to check availability: {str(e)}")

    def find_specific_date_window(
        self, tutor_id: str, specific_date: date, time_start: str, time_end: str
    ) -> Optional[Availability]:
        """One-off record on specific_date containing [time_start, time_end]."""
        try:
            return (
                self.db.query(Availability)
                .filter(
                    Availability.tutor_id == tutor_id,
                    Availability.is_recurring.is_(False),
                    Availability.specific_date == specific_date,
                    Availability.start_time <= time_start,
                    Availability.end_time >= time_end,
                )
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking date-specific availability: {str(e)}")
            raise RepositoryException(f"Failed to check availability: {str(e)}")

    def get_for_tutor(self, tutor_id: str) -> List[Availability]:
        """All records for a tutor ordered by day then start time."""
        query = (
            self.db.query(Availability)
            .filter(Availability.tutor_id == tutor_id)
            .order_by(Availability.day_of_week, Availability.start_time)
        )
        return self._execute_query(query)
