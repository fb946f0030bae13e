"""Application-wide constants for the TutorHub platform."""

from __future__ import annotations

BRAND_NAME = "TutorHub"

# Time-of-day strings are zero-padded 24-hour "HH:MM"
TIME_OF_DAY_FORMAT = "%H:%M"

# Recurring generation horizon (days ahead of today, inclusive)
DEFAULT_GENERATION_HORIZON_DAYS = 28

# Reminder windows
REMINDER_LEAD_HOURS = 1
DAY_BEFORE_REMINDER_LEAD_HOURS = 24

# Text constraints
MAX_NOTES_LENGTH = 2000

# Calendar event labels
CALENDAR_EVENT_PREFIX = "Lesson"
DEFAULT_EVENT_DESCRIPTION = "Tutoring lesson"
