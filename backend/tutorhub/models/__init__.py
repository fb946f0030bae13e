"""
Database models for the TutorHub platform.

This module exports all SQLAlchemy models used by the scheduling core:
- Users (tutors, students, admins)
- Courses, enrolled students and weekly schedule slots
- Tutor availability
- Appointments
"""

from .appointment import Appointment, AppointmentStatus, appointment_students
from .availability import Availability
from .course import Course, CourseSchedule, course_students
from .user import User

__all__ = [
    "User",
    "Course",
    "CourseSchedule",
    "course_students",
    "Availability",
    "Appointment",
    "AppointmentStatus",
    "appointment_students",
]
