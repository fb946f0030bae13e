# backend/tutorhub/services/availability_service.py
"""
Availability Service for the TutorHub platform

Answers whether a tutor is available for a concrete interval and maintains
the tutor's availability records.

A request [start, end) is available when a single availability record
fully contains it:
1. a recurring record for start's day of week, or
2. a one-off record on start's calendar date.
Containment compares "HH:MM" strings, so the interval must lie within one
calendar day; callers reject intervals that span midnight.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import NotFoundException, ValidationException
from ..models.availability import Availability
from ..repositories.factory import RepositoryFactory
from ..schemas.availability import AvailabilityCreate, AvailabilityUpdate
from ..utils.time_ranges import day_of_week, time_of_day
from .base import BaseService

if TYPE_CHECKING:
    from ..repositories.availability_repository import AvailabilityRepository
    from ..repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class AvailabilityService(BaseService):
    """Availability validation and maintenance for tutors."""

    def __init__(
        self,
        db: Session,
        repository: Optional["AvailabilityRepository"] = None,
        user_repository: Optional["UserRepository"] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_availability_repository(db)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)

    @BaseService.measure_operation("is_available")
    def is_available(self, tutor_id: str, start: datetime, end: datetime) -> bool:
        """
        True if one availability record fully contains [start, end).

        Read-only. start and end are naive business wall-clock datetimes.
        """
        weekday = day_of_week(start)
        time_start = time_of_day(start)
        time_end = time_of_day(end)

        recurring = self.repository.find_recurring_window(tutor_id, weekday, time_start, time_end)
        if recurring is not None:
            return True

        one_off = self.repository.find_specific_date_window(
            tutor_id, start.date(), time_start, time_end
        )
        if one_off is not None:
            return True

        self.logger.debug(
            f"Tutor {tutor_id} unavailable for {start.date()} {time_start}-{time_end}"
        )
        return False

    def _require_tutor(self, tutor_id: str) -> None:
        if self.user_repository.get_by_id_and_role(tutor_id, RoleName.TUTOR) is None:
            raise NotFoundException(f"Tutor {tutor_id} not found")

    def get_tutor_availability(self, tutor_id: str) -> List[Availability]:
        """All availability records for a tutor, ordered by day and start time."""
        self._require_tutor(tutor_id)
        return self.repository.get_for_tutor(tutor_id)

    @BaseService.measure_operation("create_availability")
    def create_availability(self, data: AvailabilityCreate) -> Availability:
        self._require_tutor(data.tutor_id)

        with self.transaction():
            availability = self.repository.create(
                tutor_id=data.tutor_id,
                day_of_week=data.effective_day_of_week,
                start_time=data.start_time,
                end_time=data.end_time,
                is_recurring=data.is_recurring,
                specific_date=data.specific_date,
            )

        self.log_operation(
            "availability_created",
            availability_id=availability.id,
            tutor_id=data.tutor_id,
        )
        return availability

    @BaseService.measure_operation("update_availability")
    def update_availability(self, availability_id: str, data: AvailabilityUpdate) -> Availability:
        """
        Change an availability window.

        A one-sided change is checked against the stored other side.

        Raises:
            NotFoundException: If the record doesn't exist
            ValidationException: If the resulting window is empty
        """
        availability = self.repository.get_by_id(availability_id, load_relationships=False)
        if availability is None:
            raise NotFoundException(f"Availability {availability_id} not found")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        start_time = changes.get("start_time", availability.start_time)
        end_time = changes.get("end_time", availability.end_time)
        if start_time >= end_time:
            raise ValidationException("start_time must be before end_time")

        with self.transaction():
            self.repository.update(availability_id, **changes)

        return availability

    @BaseService.measure_operation("delete_availability")
    def delete_availability(self, availability_id: str) -> bool:
        with self.transaction():
            deleted = self.repository.delete(availability_id)
        if not deleted:
            raise NotFoundException(f"Availability {availability_id} not found")
        self.log_operation("availability_deleted", availability_id=availability_id)
        return True
