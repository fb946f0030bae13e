# backend/tutorhub/services/conflict_checker.py
"""
Conflict Checker Service for the TutorHub platform

Detects overlaps between a proposed interval and a tutor's existing
appointments. Only scheduled appointments block time; completed,
cancelled and no-show lessons never conflict.
"""

from datetime import datetime
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..repositories import RepositoryFactory
from ..repositories.conflict_checker_repository import ConflictCheckerRepository
from .base import BaseService

logger = logging.getLogger(__name__)


class ConflictChecker(BaseService):
    """
    Service for checking appointment conflicts.

    Centralizes conflict detection so create, update and any future
    rescheduling flow share one overlap rule.
    """

    def __init__(self, db: Session, repository: Optional[ConflictCheckerRepository] = None):
        """
        Initialize conflict checker service.

        Args:
            db: Database session
            repository: Optional ConflictCheckerRepository instance
        """
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_conflict_checker_repository(db)

    @BaseService.measure_operation("has_conflict")
    def has_conflict(
        self,
        tutor_id: str,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[str] = None,
    ) -> bool:
        """
        True if any scheduled appointment for the tutor overlaps [start, end).

        Args:
            tutor_id: Tutor whose calendar is checked
            start: Proposed start (naive business time)
            end: Proposed end (naive business time)
            exclude_appointment_id: Appointment to ignore, used when updating itself
        """
        count = self.repository.count_conflicts(tutor_id, start, end, exclude_appointment_id)
        return count > 0

    @BaseService.measure_operation("get_conflicts")
    def get_conflicts(
        self,
        tutor_id: str,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Describe the conflicting appointments, for error details."""
        appointments = self.repository.get_conflicting_appointments(
            tutor_id, start, end, exclude_appointment_id
        )
        return [
            {
                "appointment_id": appointment.id,
                "start_time": appointment.start_time.isoformat(),
                "end_time": appointment.end_time.isoformat(),
                "course_id": appointment.course_id,
            }
            for appointment in appointments
        ]
