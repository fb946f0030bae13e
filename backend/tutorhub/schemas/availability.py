# backend/tutorhub/schemas/availability.py
"""
Availability schemas for the TutorHub platform.

Times are zero-padded 24-hour "HH:MM" strings. A recurring window is keyed
by day_of_week (0 = Sunday); a one-off window by specific_date, from which
day_of_week is derived.
"""

from datetime import date
from typing import Optional

from pydantic import Field, field_validator, model_validator

from ..utils.time_ranges import day_of_week, is_hhmm
from ._strict_base import StrictRequestModel


def _validate_hhmm(v: Optional[str]) -> Optional[str]:
    if v is not None and not is_hhmm(v):
        raise ValueError(f"Invalid time format: {v}. Expected HH:MM format.")
    return v


class AvailabilityCreate(StrictRequestModel):
    """Create a recurring weekly or date-specific availability window."""

    tutor_id: str
    day_of_week: Optional[int] = Field(None, ge=0, le=6, description="0 = Sunday")
    start_time: str = Field(..., description="HH:MM")
    end_time: str = Field(..., description="HH:MM")
    is_recurring: bool = True
    specific_date: Optional[date] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def check_hhmm(cls, v: str) -> str:
        return _validate_hhmm(v)

    @model_validator(mode="after")
    def check_window(self) -> "AvailabilityCreate":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        if self.is_recurring:
            if self.specific_date is not None:
                raise ValueError("specific_date is only allowed for non-recurring availability")
            if self.day_of_week is None:
                raise ValueError("day_of_week is required for recurring availability")
        else:
            if self.specific_date is None:
                raise ValueError("specific_date is required for non-recurring availability")
            if self.day_of_week is not None and self.day_of_week != day_of_week(self.specific_date):
                raise ValueError("day_of_week does not match specific_date")
        return self

    @property
    def effective_day_of_week(self) -> int:
        """day_of_week, derived from specific_date for one-off windows."""
        if self.specific_date is not None:
            return day_of_week(self.specific_date)
        return self.day_of_week


class AvailabilityUpdate(StrictRequestModel):
    """Change the time window of an existing availability record."""

    start_time: Optional[str] = None
    end_time: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def check_hhmm(cls, v: Optional[str]) -> Optional[str]:
        return _validate_hhmm(v)

    @model_validator(mode="after")
    def check_window(self) -> "AvailabilityUpdate":
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self
