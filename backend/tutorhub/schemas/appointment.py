# backend/tutorhub/schemas/appointment.py
"""
Appointment schemas for the TutorHub platform.

Request DTOs consumed by AppointmentService. Start and end are full
datetimes; timezone-aware values are normalized to business wall-clock
time by the service.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from ..core.constants import MAX_NOTES_LENGTH
from ..models.appointment import AppointmentStatus
from ._strict_base import StrictRequestModel


def _clean_notes(v: Optional[str]) -> Optional[str]:
    return v.strip() if v else v


class AppointmentCreate(StrictRequestModel):
    """Create a single appointment for a tutor and one or more students."""

    student_ids: List[str] = Field(..., min_length=1, description="Attending students")
    tutor_id: str = Field(..., description="Tutor teaching the lesson")
    start_time: datetime
    end_time: datetime
    course_id: Optional[str] = Field(None, description="Course the lesson belongs to")
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)

    @field_validator("student_ids")
    @classmethod
    def dedupe_students(cls, v: List[str]) -> List[str]:
        """Drop duplicate ids while keeping order."""
        return list(dict.fromkeys(v))

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, v: Optional[str]) -> Optional[str]:
        return _clean_notes(v)


class AppointmentUpdate(StrictRequestModel):
    """
    Partial update of an appointment.

    Only fields explicitly provided are applied; a missing start or end
    keeps the stored value when the interval is recomputed.
    """

    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: Optional[AppointmentStatus] = None
    course_id: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, v: Optional[str]) -> Optional[str]:
        return _clean_notes(v)
