# backend/tutorhub/services/appointment_service.py
"""
Appointment Service for the TutorHub platform

Owns the single-appointment lifecycle:

    scheduled -> completed | cancelled | no_show

Terminal statuses have no outgoing transitions. Every write that places an
appointment on the calendar is validated against the tutor's availability
and existing scheduled appointments.

Calendar sync runs after the database write and is best-effort: a failure
or timeout is logged and never undoes the state change. Confirmation and
cancellation emails are queued as Celery tasks and delivered by a worker,
so the caller never waits on the mail provider.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import TYPE_CHECKING, Any, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.constants import CALENDAR_EVENT_PREFIX, DEFAULT_EVENT_DESCRIPTION
from ..core.enums import RoleName
from ..core.exceptions import (
    AppointmentConflictException,
    InvalidStatusTransitionException,
    NotFoundException,
    OutsideAvailabilityException,
    ValidationException,
)
from ..models.appointment import Appointment, AppointmentStatus
from ..models.course import Course
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.appointment import AppointmentCreate, AppointmentUpdate
from ..utils.best_effort import run_best_effort
from ..utils.time_ranges import duration_hours, spans_midnight, to_business_time
from .availability_service import AvailabilityService
from .base import BaseService
from .calendar_sync import CalendarSync, get_calendar_sync
from .conflict_checker import ConflictChecker

if TYPE_CHECKING:
    from ..repositories.appointment_repository import AppointmentRepository

logger = logging.getLogger(__name__)

COMPLETED_SUFFIX = " (Completed)"


def build_event_summary(appointment: Appointment) -> str:
    """Calendar title, e.g. "Spanish A1: Ana Diaz, Li Wei with Maria Lopez"."""
    label = appointment.course.title if appointment.course else CALENDAR_EVENT_PREFIX
    student_names = ", ".join(student.full_name for student in appointment.students)
    tutor_name = appointment.tutor.full_name if appointment.tutor else ""
    return f"{label}: {student_names} with {tutor_name}"


def build_event_description(appointment: Appointment) -> str:
    return appointment.notes or DEFAULT_EVENT_DESCRIPTION


class AppointmentService(BaseService):
    """
    Service layer for appointment operations.

    Collaborators are injectable so tests can substitute fakes; the
    calendar implementation is chosen once from configuration when not given.
    """

    def __init__(
        self,
        db: Session,
        calendar_sync: Optional[CalendarSync] = None,
        repository: Optional["AppointmentRepository"] = None,
        availability_service: Optional[AvailabilityService] = None,
        conflict_checker: Optional[ConflictChecker] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_appointment_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.course_repository = RepositoryFactory.create_course_repository(db)
        self.availability_service = availability_service or AvailabilityService(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db)
        self.calendar_sync = calendar_sync or get_calendar_sync()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @BaseService.measure_operation("get_appointment")
    def get_appointment(self, appointment_id: str) -> Appointment:
        """Appointment with tutor, students and course loaded."""
        appointment = self.repository.get_appointment_with_details(appointment_id)
        if appointment is None:
            raise NotFoundException(f"Appointment {appointment_id} not found")
        return appointment

    def _resolve_students(self, student_ids: List[str]) -> List[User]:
        students = self.user_repository.get_many_by_role(student_ids, RoleName.STUDENT)
        found = {student.id for student in students}
        missing = [student_id for student_id in student_ids if student_id not in found]
        if missing:
            raise NotFoundException(
                f"Student {missing[0]} not found", details={"missing_student_ids": missing}
            )
        by_id = {student.id: student for student in students}
        return [by_id[student_id] for student_id in student_ids]

    def _resolve_tutor(self, tutor_id: str) -> User:
        tutor = self.user_repository.get_by_id_and_role(tutor_id, RoleName.TUTOR)
        if tutor is None:
            raise NotFoundException(f"Tutor {tutor_id} not found")
        return tutor

    def _resolve_course(self, course_id: str) -> Course:
        course = self.course_repository.get_by_id(course_id, load_relationships=False)
        if course is None:
            raise NotFoundException(f"Course {course_id} not found")
        return course

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_interval(start: datetime, end: datetime) -> None:
        if end <= start:
            raise ValidationException(
                "end_time must be after start_time",
                details={"start_time": start.isoformat(), "end_time": end.isoformat()},
            )
        if spans_midnight(start, end):
            raise ValidationException(
                "Appointments cannot span midnight",
                details={"start_time": start.isoformat(), "end_time": end.isoformat()},
            )

    def _check_schedulable(
        self,
        tutor_id: str,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[str] = None,
    ) -> None:
        """Raise unless the tutor is available and free for [start, end)."""
        if not self.availability_service.is_available(tutor_id, start, end):
            prometheus_metrics.inc_appointment_rejected("outside_availability")
            raise OutsideAvailabilityException(
                "Time outside tutor availability",
                details={
                    "tutor_id": tutor_id,
                    "start_time": start.isoformat(),
                    "end_time": end.isoformat(),
                },
            )

        if self.conflict_checker.has_conflict(tutor_id, start, end, exclude_appointment_id):
            prometheus_metrics.inc_appointment_rejected("conflict")
            conflicts = self.conflict_checker.get_conflicts(
                tutor_id, start, end, exclude_appointment_id
            )
            raise AppointmentConflictException(
                "Time conflicts with existing appointment",
                details={"tutor_id": tutor_id, "conflicts": conflicts},
            )

    @staticmethod
    def _ensure_not_terminal(appointment: Appointment, requested: AppointmentStatus) -> None:
        if appointment.is_terminal:
            raise InvalidStatusTransitionException(appointment.status, requested.value)

    def _flush_or_conflict(self, appointment: Appointment) -> None:
        """Flush pending changes; a uniqueness violation becomes a conflict."""
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            self.logger.warning(
                f"Storage rejected overlapping appointment for tutor {appointment.tutor_id} "
                f"at {appointment.start_time}: {str(exc.orig)}"
            )
            prometheus_metrics.inc_appointment_rejected("conflict")
            raise AppointmentConflictException(
                "Time conflicts with existing appointment",
                details={
                    "tutor_id": appointment.tutor_id,
                    "start_time": appointment.start_time.isoformat(),
                },
            ) from exc

    # ------------------------------------------------------------------
    # Best-effort side effects
    # ------------------------------------------------------------------

    def _calendar(self, label: str, method_name: str, *args: Any, default: Any, **kwargs: Any) -> Any:
        if not self.calendar_sync.is_enabled():
            return default
        result = run_best_effort(
            f"calendar.{label}",
            getattr(self.calendar_sync, method_name),
            *args,
            default=default,
            **kwargs,
        )
        return result

    def _enqueue_notification(self, label: str, task_name: str, appointment: Appointment) -> bool:
        """Queue an email task for the appointment; a broker failure is logged only."""
        from ..tasks import notification_tasks

        task = getattr(notification_tasks, task_name)
        result = run_best_effort(f"notification.{label}", task.delay, appointment.id)
        return result is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @BaseService.measure_operation("create_appointment")
    def create_appointment(self, data: AppointmentCreate) -> Appointment:
        """
        Create and schedule a single appointment.

        Args:
            data: Students, tutor, interval and optional course and notes

        Returns:
            The persisted appointment in the scheduled status

        Raises:
            NotFoundException: If a student, the tutor or the course is missing
            ValidationException: If the interval is empty or spans midnight
            OutsideAvailabilityException: If the tutor isn't available
            AppointmentConflictException: If the tutor already has a lesson then
        """
        students = self._resolve_students(data.student_ids)
        tutor = self._resolve_tutor(data.tutor_id)
        course = self._resolve_course(data.course_id) if data.course_id else None

        start = to_business_time(data.start_time)
        end = to_business_time(data.end_time)
        self._validate_interval(start, end)
        self._check_schedulable(tutor.id, start, end)

        appointment = Appointment(
            tutor_id=tutor.id,
            course_id=course.id if course else None,
            start_time=start,
            end_time=end,
            status=AppointmentStatus.SCHEDULED.value,
            notes=data.notes,
        )
        appointment.tutor = tutor
        appointment.course = course
        appointment.students = students

        event_id = self._calendar(
            "create_event",
            "create_event",
            build_event_summary(appointment),
            build_event_description(appointment),
            start,
            end,
            attendee_emails=[user.email for user in [tutor, *students]],
            default=None,
        )
        if event_id:
            appointment.calendar_event_id = event_id

        try:
            with self.transaction():
                self.db.add(appointment)
                self._flush_or_conflict(appointment)
        except AppointmentConflictException:
            if event_id:
                self._calendar("delete_orphan_event", "delete_event", event_id, default=False)
            raise

        self.log_operation(
            "appointment_created",
            appointment_id=appointment.id,
            tutor_id=tutor.id,
            course_id=appointment.course_id,
            student_count=len(students),
        )

        self._enqueue_notification("confirmation", "send_appointment_confirmation", appointment)

        return appointment

    @BaseService.measure_operation("update_appointment")
    def update_appointment(self, appointment_id: str, data: AppointmentUpdate) -> Appointment:
        """
        Apply a partial update.

        A time change reruns availability and conflict checks (excluding
        this appointment) against the effective interval, where a side not
        given keeps its stored value.

        Raises:
            NotFoundException: If the appointment or new course is missing
            ValidationException: On an invalid interval or a change to a
                terminal appointment's time or status
            OutsideAvailabilityException / AppointmentConflictException
        """
        appointment = self.get_appointment(appointment_id)
        changes = data.model_dump(exclude_unset=True)

        requested_status = changes.pop("status", None)
        if requested_status is not None:
            requested_status = AppointmentStatus(requested_status)
        new_start = changes.pop("start_time", None)
        new_end = changes.pop("end_time", None)

        start = to_business_time(new_start) if new_start else appointment.start_time
        end = to_business_time(new_end) if new_end else appointment.end_time
        time_changed = start != appointment.start_time or end != appointment.end_time
        status_changed = requested_status is not None and requested_status != appointment.status

        if appointment.is_terminal and (time_changed or status_changed):
            raise InvalidStatusTransitionException(
                appointment.status, (requested_status or AppointmentStatus(appointment.status)).value
            )

        if time_changed:
            self._validate_interval(start, end)
            self._check_schedulable(appointment.tutor_id, start, end, appointment.id)

        course_id = changes.get("course_id")
        new_course = self._resolve_course(course_id) if course_id else None

        with self.transaction():
            if time_changed:
                appointment.start_time = start
                appointment.end_time = end
            if "notes" in changes:
                appointment.notes = changes["notes"]
            if "course_id" in changes:
                appointment.course = new_course
                appointment.course_id = new_course.id if new_course else None

            if status_changed:
                if requested_status == AppointmentStatus.CANCELLED:
                    appointment.cancel(credited_back=False, when=datetime.now(timezone.utc))
                elif requested_status == AppointmentStatus.COMPLETED:
                    appointment.complete(when=datetime.now(timezone.utc))
                elif requested_status == AppointmentStatus.NO_SHOW:
                    appointment.mark_no_show()
            self._flush_or_conflict(appointment)

        self.log_operation(
            "appointment_updated",
            appointment_id=appointment.id,
            time_changed=time_changed,
            status=appointment.status,
        )

        event_id = appointment.calendar_event_id
        if event_id:
            if appointment.status == AppointmentStatus.CANCELLED:
                self._calendar("delete_event", "delete_event", event_id, default=False)
            elif time_changed:
                self._calendar(
                    "update_event", "update_event", event_id, start=start, end=end, default=False
                )
            elif status_changed and appointment.status == AppointmentStatus.COMPLETED:
                self._calendar(
                    "update_event",
                    "update_event",
                    event_id,
                    summary=build_event_summary(appointment) + COMPLETED_SUFFIX,
                    default=False,
                )

        return appointment

    @BaseService.measure_operation("cancel_appointment")
    def cancel_appointment(self, appointment_id: str, credit_hours_back: bool = False) -> Appointment:
        """
        Cancel a scheduled appointment.

        With credit_hours_back and a course, the lesson's duration in hours
        is returned to the course balance and needs_renewal is cleared once
        the balance is positive again.
        """
        appointment = self.get_appointment(appointment_id)
        self._ensure_not_terminal(appointment, AppointmentStatus.CANCELLED)

        credited = False
        with self.transaction():
            course = appointment.course
            if credit_hours_back and course is not None:
                hours = duration_hours(appointment.start_time, appointment.end_time)
                balance = course.adjust_hours(hours)
                if balance > 0:
                    course.needs_renewal = False
                credited = True
            appointment.cancel(credited_back=credited, when=datetime.now(timezone.utc))

        self.log_operation(
            "appointment_cancelled",
            appointment_id=appointment.id,
            course_id=appointment.course_id,
            credited_back=credited,
        )

        if appointment.calendar_event_id:
            self._calendar(
                "delete_event", "delete_event", appointment.calendar_event_id, default=False
            )
        self._enqueue_notification("cancellation", "send_appointment_cancellation", appointment)

        return appointment

    @BaseService.measure_operation("complete_appointment")
    def complete_appointment(self, appointment_id: str) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        self._ensure_not_terminal(appointment, AppointmentStatus.COMPLETED)

        with self.transaction():
            appointment.complete(when=datetime.now(timezone.utc))

        self.log_operation("appointment_completed", appointment_id=appointment.id)

        if appointment.calendar_event_id:
            self._calendar(
                "update_event",
                "update_event",
                appointment.calendar_event_id,
                summary=build_event_summary(appointment) + COMPLETED_SUFFIX,
                default=False,
            )
        return appointment

    @BaseService.measure_operation("mark_no_show")
    def mark_no_show(self, appointment_id: str) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        self._ensure_not_terminal(appointment, AppointmentStatus.NO_SHOW)

        with self.transaction():
            appointment.mark_no_show()

        self.log_operation("appointment_no_show", appointment_id=appointment.id)
        return appointment
