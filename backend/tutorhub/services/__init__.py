"""
Service layer for the TutorHub scheduling core.

Services hold business logic and own transaction boundaries; data access
goes through the repositories.
"""

from .appointment_generator import GenerationSummary, RecurringAppointmentGenerator
from .appointment_service import AppointmentService
from .availability_service import AvailabilityService
from .base import BaseService
from .calendar_sync import CalendarSync, GoogleCalendarSync, NullCalendarSync, get_calendar_sync
from .conflict_checker import ConflictChecker
from .notification_service import NotificationService, ReminderKind
from .reminder_service import ReminderService, ReminderSummary

__all__ = [
    "AppointmentService",
    "AvailabilityService",
    "BaseService",
    "CalendarSync",
    "ConflictChecker",
    "GenerationSummary",
    "GoogleCalendarSync",
    "NotificationService",
    "NullCalendarSync",
    "RecurringAppointmentGenerator",
    "ReminderKind",
    "ReminderService",
    "ReminderSummary",
    "get_calendar_sync",
]
