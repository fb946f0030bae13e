# backend/tutorhub/repositories/__init__.py
"""
Repository Pattern Implementation for the TutorHub platform

This package provides the repository layer for data access,
separating business logic from database queries.

Key Components:
- BaseRepository: Foundation for all repositories with generic CRUD operations
- IRepository: Interface defining required methods for all repositories
- RepositoryFactory: Factory for creating repository instances
- AppointmentRepository: Appointment lifecycle, generator and reminder queries
- AvailabilityRepository: Tutor availability containment checks
- ConflictCheckerRepository: Overlap queries against scheduled appointments
- CourseRepository: Courses with students and weekly slots
- UserRepository: Role-aware user lookups

Usage:
    from tutorhub.repositories import RepositoryFactory

    repository = RepositoryFactory.create_conflict_checker_repository(db)
    conflicts = repository.get_conflicting_appointments(tutor_id, start, end)
"""

from .appointment_repository import AppointmentRepository
from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository, IRepository
from .conflict_checker_repository import ConflictCheckerRepository
from .course_repository import CourseRepository
from .factory import RepositoryFactory
from .user_repository import UserRepository

__all__ = [
    "AppointmentRepository",
    "AvailabilityRepository",
    "BaseRepository",
    "ConflictCheckerRepository",
    "CourseRepository",
    "IRepository",
    "RepositoryFactory",
    "UserRepository",
]
