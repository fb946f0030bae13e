# backend/tutorhub/models/course.py
"""
Course models for the TutorHub platform.

A course ties one tutor to a set of enrolled students and carries the
prepaid hour balance that recurring lessons draw down. Weekly schedule
slots are templates consumed by the recurring appointment generator.

Classes:
    Course: Course with tutor, students and hour balance
    CourseSchedule: Weekly recurring slot template for a course
"""

from decimal import Decimal
import logging

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)

course_students = Table(
    "course_students",
    Base.metadata,
    Column("course_id", String(26), ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
    Column("student_id", String(26), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Course(Base):
    """Course taught by one tutor to one or more students."""

    __tablename__ = "courses"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    title = Column(String(255), nullable=False)
    tutor_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Prepaid lesson hours; may dip to or below zero until renewal
    hours_balance = Column(Numeric(6, 2), nullable=False, default=Decimal("0"))
    needs_renewal = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    tutor = relationship("User", foreign_keys=[tutor_id])
    students = relationship("User", secondary=course_students)
    schedules = relationship(
        "CourseSchedule",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="CourseSchedule.day_of_week",
    )

    def adjust_hours(self, delta: Decimal) -> Decimal:
        """Apply a signed change to the hour balance and return the new balance."""
        current = Decimal(str(self.hours_balance or 0))
        self.hours_balance = current + delta
        return self.hours_balance

    def refresh_renewal_flag(self) -> bool:
        """Set needs_renewal from the current balance."""
        self.needs_renewal = Decimal(str(self.hours_balance or 0)) <= 0
        return self.needs_renewal

    def __repr__(self) -> str:
        return f"<Course {self.id}: {self.title} balance={self.hours_balance}>"


class CourseSchedule(Base):
    """Weekly slot template; 0 = Sunday."""

    __tablename__ = "course_schedules"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    course_id = Column(
        String(26), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(String(5), nullable=False)  # "HH:MM"
    end_time = Column(String(5), nullable=False)  # "HH:MM"
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    course = relationship("Course", back_populates="schedules")

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_course_schedules_day"),
        CheckConstraint("start_time < end_time", name="ck_course_schedules_time_order"),
    )

    def __repr__(self) -> str:
        return f"<CourseSchedule day={self.day_of_week} {self.start_time}-{self.end_time}>"
