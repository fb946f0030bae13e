# backend/tests/services/test_notification_service.py
"""
Tests for NotificationService.

Templates are rendered for real; the email backend is an in-memory fake.
"""

from datetime import datetime
from typing import List, Optional

import pytest

from tutorhub.core.enums import RoleName
from tutorhub.core.exceptions import ServiceException
from tutorhub.services.notification_service import NotificationService, ReminderKind, retry
from tutorhub.services.template_service import TemplateService


class FakeEmailService:
    def __init__(self, fail_for: Optional[str] = None, failures: int = 10**6):
        self.fail_for = fail_for
        self.failures = failures
        self.sent: List[dict] = []

    def send_email(self, to_email: str, subject: str, html_content: str, text_content=None):
        if to_email == self.fail_for and self.failures > 0:
            self.failures -= 1
            raise ServiceException("Email sending failed: provider down")
        self.sent.append({"to": to_email, "subject": subject, "html": html_content})
        return {"id": "fake"}


@pytest.fixture
def email_service() -> FakeEmailService:
    return FakeEmailService()


@pytest.fixture
def notifications(db, email_service) -> NotificationService:
    return NotificationService(
        db, template_service=TemplateService(), email_service=email_service, retry_backoff_seconds=0
    )


@pytest.fixture
def appointment(tutor, student, make_course, make_appointment):
    course = make_course(tutor, [student])
    appointment = make_appointment(
        tutor,
        [student],
        datetime(2026, 3, 4, 10, 0),
        datetime(2026, 3, 4, 11, 0),
        course=course,
    )
    appointment.course = course
    appointment.notes = "Bring the workbook"
    return appointment


@pytest.mark.asyncio
async def test_confirmation_goes_to_students_and_tutor(notifications, email_service, appointment):
    assert await notifications.send_appointment_confirmation(appointment) is True

    recipients = [message["to"] for message in email_service.sent]
    assert recipients == [appointment.students[0].email, appointment.tutor.email]
    html = email_service.sent[0]["html"]
    assert "Lesson confirmed" in html
    assert "Spanish A1" in html
    assert "10:00 - 11:00" in html
    assert "Bring the workbook" in html
    assert "Hi Ana" in html
    assert email_service.sent[0]["subject"] == "TutorHub: lesson confirmed"


@pytest.mark.asyncio
async def test_cancellation_mentions_credit(notifications, email_service, appointment):
    appointment.cancel(credited_back=True)

    assert await notifications.send_appointment_cancellation(appointment) is True

    assert "credited back" in email_service.sent[0]["html"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kind,subject,phrase",
    [
        (ReminderKind.ONE_HOUR, "TutorHub: your lesson starts soon", "within the hour"),
        (ReminderKind.DAY_BEFORE, "TutorHub: your lesson is tomorrow", "lesson tomorrow"),
    ],
)
async def test_reminder_kinds(notifications, email_service, appointment, kind, subject, phrase):
    assert await notifications.send_appointment_reminder(appointment, kind) is True

    assert email_service.sent[0]["subject"] == subject
    assert phrase in email_service.sent[0]["html"]


@pytest.mark.asyncio
async def test_transient_failure_is_retried(db, appointment):
    flaky = FakeEmailService(fail_for=appointment.tutor.email, failures=2)
    service = NotificationService(db, email_service=flaky, retry_backoff_seconds=0)

    assert await service.send_appointment_confirmation(appointment) is True
    assert len(flaky.sent) == 2


@pytest.mark.asyncio
async def test_persistent_failure_reports_false_but_reaches_others(db, appointment):
    broken = FakeEmailService(fail_for=appointment.tutor.email)
    service = NotificationService(db, email_service=broken, retry_backoff_seconds=0)

    assert await service.send_appointment_confirmation(appointment) is False
    assert [m["to"] for m in broken.sent] == [appointment.students[0].email]


@pytest.mark.asyncio
async def test_missing_template_raises_service_exception(db, email_service, appointment, tmp_path):
    service = NotificationService(
        db,
        template_service=TemplateService(template_dir=tmp_path),
        email_service=email_service,
        retry_backoff_seconds=0,
    )

    with pytest.raises(ServiceException):
        await service.send_appointment_confirmation(appointment)
    assert email_service.sent == []


@pytest.mark.asyncio
async def test_group_lesson_reaches_every_student(
    notifications, email_service, tutor, student, make_user, make_appointment
):
    second = make_user(RoleName.STUDENT, first_name="Li")
    appointment = make_appointment(
        tutor, [student, second], datetime(2026, 3, 4, 10, 0), datetime(2026, 3, 4, 11, 0)
    )

    assert await notifications.send_appointment_confirmation(appointment) is True
    assert len(email_service.sent) == 3


@pytest.mark.asyncio
async def test_none_appointment(notifications):
    assert await notifications.send_appointment_confirmation(None) is False


@pytest.mark.asyncio
async def test_retry_decorator_gives_up_after_max_attempts():
    calls = {"n": 0}

    @retry(max_attempts=3, backoff_seconds=0)
    async def always_fails():
        calls["n"] += 1
        raise ConnectionError("nope")

    with pytest.raises(ConnectionError):
        await always_fails()
    assert calls["n"] == 3
