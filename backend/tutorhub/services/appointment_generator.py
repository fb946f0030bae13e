# backend/tutorhub/services/appointment_generator.py
"""
Recurring Appointment Generator for the TutorHub platform

Turns each active course's weekly schedule slots into concrete scheduled
appointments for the coming weeks, drawing the lesson hours down from the
course's prepaid balance.

The run is idempotent: a slot occurrence that already has a non-cancelled
appointment for the course is skipped, so running twice over the same
window creates nothing the second time. Each course is committed on its
own; a failure rolls back that course only and the run continues.

An occurrence whose start the tutor already holds with another scheduled
appointment (an ad-hoc lesson or another course) is skipped without
drawing hours; the rest of the course is still generated.

Availability and conflicts are not re-checked here. Course slots are
agreed with the tutor when the course is set up.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
import logging
from typing import TYPE_CHECKING, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..models.appointment import Appointment, AppointmentStatus
from ..models.course import Course
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..utils.time_ranges import (
    business_now,
    combine,
    day_of_week,
    daterange,
    duration_hours,
    to_business_time,
)
from .base import BaseService

if TYPE_CHECKING:
    from ..repositories.appointment_repository import AppointmentRepository
    from ..repositories.course_repository import CourseRepository

logger = logging.getLogger(__name__)


@dataclass
class GenerationSummary:
    """Outcome of one generator run."""

    courses_processed: int = 0
    courses_skipped: int = 0
    courses_failed: int = 0
    appointments_created: int = 0
    occurrences_blocked: int = 0
    failed_course_ids: List[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "courses_processed": self.courses_processed,
            "courses_skipped": self.courses_skipped,
            "courses_failed": self.courses_failed,
            "appointments_created": self.appointments_created,
            "occurrences_blocked": self.occurrences_blocked,
            "failed_course_ids": list(self.failed_course_ids),
        }


class RecurringAppointmentGenerator(BaseService):
    """Batch generator of scheduled appointments from course slots."""

    def __init__(
        self,
        db: Session,
        course_repository: Optional["CourseRepository"] = None,
        appointment_repository: Optional["AppointmentRepository"] = None,
        horizon_days: Optional[int] = None,
    ):
        super().__init__(db)
        self.course_repository = course_repository or RepositoryFactory.create_course_repository(db)
        self.appointment_repository = (
            appointment_repository or RepositoryFactory.create_appointment_repository(db)
        )
        self.horizon_days = (
            horizon_days if horizon_days is not None else settings.generation_horizon_days
        )

    @BaseService.measure_operation("generate_recurring_appointments")
    def generate(self, now: Optional[datetime] = None) -> GenerationSummary:
        """
        Generate appointments for every eligible active course.

        Args:
            now: Reference time; defaults to the current business time

        Returns:
            GenerationSummary with per-run counts
        """
        now = to_business_time(now) if now is not None else business_now()
        today = now.date()
        horizon_end = today + timedelta(days=self.horizon_days)
        summary = GenerationSummary()

        courses = self.course_repository.get_active_courses()
        self.logger.info(
            f"Generating appointments for {len(courses)} active courses through {horizon_end}"
        )

        for course in courses:
            course_id = course.id
            course_title = course.title

            if not course.schedules or not course.students:
                self.logger.debug(f"Skipping course {course_id}: no schedule slots or no students")
                summary.courses_skipped += 1
                continue

            try:
                with self.transaction():
                    created, blocked = self._generate_for_course(course, today, horizon_end)
            except Exception:
                self.logger.exception(
                    f"Failed to generate appointments for course {course_id} ({course_title})"
                )
                summary.courses_failed += 1
                summary.failed_course_ids.append(course_id)
                continue

            summary.courses_processed += 1
            summary.appointments_created += len(created)
            summary.occurrences_blocked += blocked
            if created:
                self.log_operation(
                    "course_appointments_generated",
                    course_id=course_id,
                    created=len(created),
                    hours_balance=str(course.hours_balance),
                    needs_renewal=course.needs_renewal,
                )

        prometheus_metrics.inc_appointments_generated(summary.appointments_created)
        self.logger.info(
            f"Generation finished: {summary.appointments_created} created, "
            f"{summary.courses_processed} processed, {summary.courses_skipped} skipped, "
            f"{summary.courses_failed} failed, {summary.occurrences_blocked} occurrences blocked"
        )
        return summary

    def _generate_for_course(
        self, course: Course, today: date, horizon_end: date
    ) -> Tuple[List[Appointment], int]:
        """
        Stage new appointments for one course and update its balance.

        Returns the staged appointments and the number of occurrences skipped
        because the tutor already had a scheduled lesson at that start.
        """
        window_start = max(today, course.start_date)
        students = list(course.students)
        new_appointments: List[Appointment] = []
        seen_starts: Set[datetime] = set()
        blocked = 0

        for slot in course.schedules:
            for day in daterange(window_start, horizon_end):
                if day_of_week(day) != slot.day_of_week:
                    continue

                start = combine(day, slot.start_time)
                end = combine(day, slot.end_time)
                if start in seen_starts:
                    continue
                seen_starts.add(start)

                if self.appointment_repository.exists_for_course_at(course.id, start):
                    continue
                if self.appointment_repository.exists_scheduled_for_tutor_at(
                    course.tutor_id, start
                ):
                    self.logger.warning(
                        f"Skipping course {course.id} occurrence at {start}: "
                        f"tutor {course.tutor_id} already has a scheduled appointment then"
                    )
                    blocked += 1
                    continue

                appointment = Appointment(
                    tutor_id=course.tutor_id,
                    course_id=course.id,
                    start_time=start,
                    end_time=end,
                    status=AppointmentStatus.SCHEDULED.value,
                )
                appointment.students = list(students)
                course.adjust_hours(-duration_hours(start, end))
                new_appointments.append(appointment)

        if new_appointments:
            self.appointment_repository.add_all(new_appointments)

        course.refresh_renewal_flag()
        return new_appointments, blocked
