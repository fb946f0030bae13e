# backend/tutorhub/models/appointment.py
"""
Appointment model for the TutorHub platform.

An appointment is one concrete lesson between a tutor and one or more
students, optionally belonging to a course. Start and end are stored as
naive wall-clock datetimes in the business timezone. Appointments are never
deleted; cancellation is a status change.
"""

from datetime import datetime
from enum import Enum
import logging
from typing import Any, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class AppointmentStatus(str, Enum):
    """Appointment lifecycle statuses."""

    SCHEDULED = "scheduled"  # Default - blocks the tutor's time
    COMPLETED = "completed"  # Lesson took place
    CANCELLED = "cancelled"  # Cancelled, optionally with hours credited back
    NO_SHOW = "no_show"  # Student didn't attend


TERMINAL_STATUSES = frozenset(
    {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
)

appointment_students = Table(
    "appointment_students",
    Base.metadata,
    Column(
        "appointment_id",
        String(26),
        ForeignKey("appointments.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("student_id", String(26), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Appointment(Base):
    """Concrete lesson slot for a tutor and their students."""

    __tablename__ = "appointments"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    # Core relationships
    tutor_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(String(26), ForeignKey("courses.id"), nullable=True, index=True)

    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)

    status = Column(String(20), nullable=False, default=AppointmentStatus.SCHEDULED.value, index=True)
    calendar_event_id = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    # Set only when cancelled; True when the course balance was credited
    credited_back = Column(Boolean, nullable=True)

    # Notification tracking
    reminder_sent = Column(Boolean, nullable=False, default=False)
    reminder_sent_at = Column(DateTime(timezone=True), nullable=True)
    day_before_reminder_sent = Column(Boolean, nullable=False, default=False)
    day_before_reminder_sent_at = Column(DateTime(timezone=True), nullable=True)
    confirmation_email_sent = Column(Boolean, nullable=False, default=False)
    confirmation_email_sent_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    tutor = relationship("User", foreign_keys=[tutor_id])
    students = relationship("User", secondary=appointment_students)
    course = relationship("Course")

    __table_args__ = (
        CheckConstraint(
            "status IN ('scheduled', 'completed', 'cancelled', 'no_show')",
            name="ck_appointments_status",
        ),
        CheckConstraint("end_time > start_time", name="ck_appointments_time_order"),
        Index("idx_appointments_tutor_window", "tutor_id", "status", "start_time", "end_time"),
        Index("idx_appointments_course_start", "course_id", "start_time"),
        # One scheduled lesson per tutor per start instant
        Index(
            "uq_appointments_tutor_start_scheduled",
            "tutor_id",
            "start_time",
            unique=True,
            postgresql_where=text("status = 'scheduled'"),
            sqlite_where=text("status = 'scheduled'"),
        ),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = AppointmentStatus.SCHEDULED.value
        if self.reminder_sent is None:
            self.reminder_sent = False
        if self.day_before_reminder_sent is None:
            self.day_before_reminder_sent = False
        if self.confirmation_email_sent is None:
            self.confirmation_email_sent = False

    def __repr__(self) -> str:
        return (
            f"<Appointment {self.id}: tutor={self.tutor_id}, course={self.course_id}, "
            f"time={self.start_time}-{self.end_time}, status={self.status}>"
        )

    @property
    def is_scheduled(self) -> bool:
        return self.status == AppointmentStatus.SCHEDULED

    @property
    def is_terminal(self) -> bool:
        # Enum members hash by name, so normalize the stored string first
        return AppointmentStatus(self.status) in TERMINAL_STATUSES

    def cancel(self, credited_back: bool, when: Optional[datetime] = None) -> None:
        """Cancel this appointment."""
        self.status = AppointmentStatus.CANCELLED.value
        self.credited_back = credited_back
        self.cancelled_at = when or datetime.now()
        logger.info(f"Appointment {self.id} cancelled (credited_back={credited_back})")

    def complete(self, when: Optional[datetime] = None) -> None:
        """Mark appointment as completed."""
        self.status = AppointmentStatus.COMPLETED.value
        self.completed_at = when or datetime.now()
        logger.info(f"Appointment {self.id} marked as completed")

    def mark_no_show(self) -> None:
        """Mark appointment as no-show."""
        self.status = AppointmentStatus.NO_SHOW.value
        logger.info(f"Appointment {self.id} marked as no-show")

    def mark_confirmation_sent(self, when: datetime) -> None:
        self.confirmation_email_sent = True
        self.confirmation_email_sent_at = when

    def mark_reminder_sent(self, when: datetime) -> None:
        self.reminder_sent = True
        self.reminder_sent_at = when

    def mark_day_before_reminder_sent(self, when: datetime) -> None:
        self.day_before_reminder_sent = True
        self.day_before_reminder_sent_at = when
