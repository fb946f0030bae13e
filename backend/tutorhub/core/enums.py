# backend/tutorhub/core/enums.py
"""
Core enums for the TutorHub platform.

This module contains enumeration types used throughout the application
for type safety and consistency.
"""

from enum import Enum


class RoleName(str, Enum):
    """Roles a user account can hold."""

    ADMIN = "admin"
    TUTOR = "tutor"
    STUDENT = "student"
