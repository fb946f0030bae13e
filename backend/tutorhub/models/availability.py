# backend/tutorhub/models/availability.py
"""
Availability models for the TutorHub platform.

A tutor publishes open windows either as a standing weekly slot
(is_recurring, keyed by day_of_week with 0 = Sunday) or as a one-off window
on a specific calendar date. Times are zero-padded "HH:MM" strings so they
compare correctly as text.

Classes:
    Availability: Recurring or date-specific open window for a tutor
"""

import logging

from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class Availability(Base):
    """Tutor open window (weekly or date-specific)."""

    __tablename__ = "availability"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    tutor_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(String(5), nullable=False)  # "HH:MM"
    end_time = Column(String(5), nullable=False)  # "HH:MM"
    is_recurring = Column(Boolean, nullable=False, default=True)
    specific_date = Column(Date, nullable=True)  # Only used if is_recurring is false
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    tutor = relationship("User")

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_day"),
        CheckConstraint("start_time < end_time", name="ck_availability_time_order"),
        Index("idx_availability_tutor_day", "tutor_id", "is_recurring", "day_of_week"),
        Index("idx_availability_tutor_date", "tutor_id", "specific_date"),
    )

    def __repr__(self) -> str:
        when = f"day={self.day_of_week}" if self.is_recurring else f"date={self.specific_date}"
        return f"<Availability {when} {self.start_time}-{self.end_time}>"
