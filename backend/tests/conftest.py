# backend/tests/conftest.py
"""
Pytest configuration for the scheduling core.

Every test gets a fresh in-memory SQLite schema. External integrations are
disabled through the environment before any tutorhub import.
"""

import os
import sys

# Set testing mode BEFORE any tutorhub imports
os.environ["is_testing"] = "true"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EMAIL_PROVIDER"] = "console"
os.environ["GOOGLE_CALENDAR_ENABLED"] = "false"
os.environ["BUSINESS_TIMEZONE"] = "UTC"

# Add the backend directory to Python path so imports work
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if backend_dir not in sys.path:
    sys.path.insert(0, backend_dir)

from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterable, List, Optional
from unittest.mock import AsyncMock, Mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tutorhub.core.config import settings

settings.is_testing = True

from tutorhub.core.enums import RoleName
from tutorhub.database import Base
from tutorhub.models import Appointment, AppointmentStatus, Availability, Course, CourseSchedule, User

# ============================================================================
# Database
# ============================================================================


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# ============================================================================
# Factories
# ============================================================================


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    counter = {"n": 0}

    def _make_user(role: RoleName = RoleName.STUDENT, first_name: Optional[str] = None) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=f"{role.value}{n}@example.com",
            first_name=first_name or f"{role.value.title()}{n}",
            last_name="Test",
            role=role.value,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def tutor(make_user) -> User:
    return make_user(RoleName.TUTOR, first_name="Maria")


@pytest.fixture
def student(make_user) -> User:
    return make_user(RoleName.STUDENT, first_name="Ana")


@pytest.fixture
def make_availability(db: Session) -> Callable[..., Availability]:
    def _make_availability(
        tutor: User,
        start_time: str,
        end_time: str,
        day_of_week: Optional[int] = None,
        specific_date: Optional[date] = None,
    ) -> Availability:
        if specific_date is not None:
            availability = Availability(
                tutor_id=tutor.id,
                day_of_week=specific_date.isoweekday() % 7,
                start_time=start_time,
                end_time=end_time,
                is_recurring=False,
                specific_date=specific_date,
            )
        else:
            availability = Availability(
                tutor_id=tutor.id,
                day_of_week=day_of_week,
                start_time=start_time,
                end_time=end_time,
                is_recurring=True,
            )
        db.add(availability)
        db.commit()
        return availability

    return _make_availability


@pytest.fixture
def make_course(db: Session) -> Callable[..., Course]:
    def _make_course(
        tutor: User,
        students: Iterable[User] = (),
        slots: Iterable[tuple] = (),
        start_date: date = date(2026, 3, 1),
        hours_balance: Decimal = Decimal("10"),
        title: str = "Spanish A1",
        is_active: bool = True,
    ) -> Course:
        course = Course(
            title=title,
            tutor_id=tutor.id,
            start_date=start_date,
            hours_balance=hours_balance,
            needs_renewal=False,
            is_active=is_active,
        )
        course.students = list(students)
        course.schedules = [
            CourseSchedule(day_of_week=day, start_time=start, end_time=end)
            for day, start, end in slots
        ]
        db.add(course)
        db.commit()
        return course

    return _make_course


@pytest.fixture
def make_appointment(db: Session) -> Callable[..., Appointment]:
    def _make_appointment(
        tutor: User,
        students: List[User],
        start: datetime,
        end: datetime,
        status: AppointmentStatus = AppointmentStatus.SCHEDULED,
        course: Optional[Course] = None,
        calendar_event_id: Optional[str] = None,
    ) -> Appointment:
        appointment = Appointment(
            tutor_id=tutor.id,
            course_id=course.id if course else None,
            start_time=start,
            end_time=end,
            status=status.value,
            calendar_event_id=calendar_event_id,
        )
        appointment.students = list(students)
        db.add(appointment)
        db.commit()
        return appointment

    return _make_appointment


# ============================================================================
# Integration doubles
# ============================================================================


class FakeCalendarSync:
    """In-memory CalendarSync that records calls."""

    def __init__(self, event_id: Optional[str] = "evt-1", fail_with: Optional[Exception] = None):
        self.event_id = event_id
        self.fail_with = fail_with
        self.created: list = []
        self.updated: list = []
        self.deleted: list = []

    def is_enabled(self) -> bool:
        return True

    def create_event(self, summary, description, start, end, attendee_emails=None):
        self.created.append(
            {"summary": summary, "description": description, "start": start, "end": end}
        )
        if self.fail_with:
            raise self.fail_with
        return self.event_id

    def update_event(self, event_id, **fields):
        self.updated.append({"event_id": event_id, **fields})
        if self.fail_with:
            raise self.fail_with
        return True

    def delete_event(self, event_id):
        self.deleted.append(event_id)
        if self.fail_with:
            raise self.fail_with
        return True


@pytest.fixture
def fake_calendar() -> FakeCalendarSync:
    return FakeCalendarSync()


@pytest.fixture
def mock_notifications() -> Mock:
    notifications = Mock()
    notifications.send_appointment_reminder = AsyncMock(return_value=True)
    return notifications
