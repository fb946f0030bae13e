# backend/tests/tasks/test_notification_tasks.py
"""
Tests for the appointment email tasks.

Task bodies run directly with .run() against the test engine. The console
email backend renders and logs the real templates.
"""

import asyncio
from datetime import datetime
import logging
from unittest.mock import AsyncMock, patch

import pytest

from tutorhub.core.config import settings
from tutorhub.models import Appointment, AppointmentStatus
from tutorhub.tasks.celery_app import celery_app
from tutorhub.tasks.notification_tasks import (
    send_appointment_cancellation,
    send_appointment_confirmation,
)


@pytest.fixture(autouse=True)
def task_sessions(session_factory):
    with patch("tutorhub.database.SessionLocal", session_factory):
        yield


@pytest.fixture
def appointment(tutor, student, make_appointment):
    return make_appointment(
        tutor, [student], datetime(2026, 3, 4, 10, 0), datetime(2026, 3, 4, 11, 0)
    )


def stub_notifications(**methods):
    """Patch NotificationService in the task module with async stubs."""
    patcher = patch("tutorhub.tasks.notification_tasks.NotificationService")
    service_class = patcher.start()
    for name, stub in methods.items():
        setattr(service_class.return_value, name, stub)
    return patcher


class TestConfirmation:
    def test_sends_and_records_confirmation(self, db, appointment, caplog):
        caplog.set_level(logging.INFO)

        result = send_appointment_confirmation.run(appointment.id)

        assert result == {"appointment_id": appointment.id, "sent": True}
        assert "[console email]" in caplog.text
        db.expire_all()
        stored = db.get(Appointment, appointment.id)
        assert stored.confirmation_email_sent is True
        assert stored.confirmation_email_sent_at is not None

    def test_failed_send_leaves_flag_unset(self, db, appointment):
        patcher = stub_notifications(
            send_appointment_confirmation=AsyncMock(side_effect=ConnectionError("smtp down"))
        )
        try:
            result = send_appointment_confirmation.run(appointment.id)
        finally:
            patcher.stop()

        assert result["sent"] is False
        db.expire_all()
        assert db.get(Appointment, appointment.id).confirmation_email_sent is False

    def test_slow_send_times_out(self, db, appointment, monkeypatch):
        async def never_finishes(*_):
            await asyncio.sleep(5)
            return True

        monkeypatch.setattr(settings, "external_call_timeout_seconds", 0.05)
        patcher = stub_notifications(
            send_appointment_confirmation=AsyncMock(side_effect=never_finishes)
        )
        try:
            result = send_appointment_confirmation.run(appointment.id)
        finally:
            patcher.stop()

        assert result["sent"] is False
        db.expire_all()
        assert db.get(Appointment, appointment.id).confirmation_email_sent is False

    def test_cancelled_before_delivery_is_skipped(self, db, appointment):
        appointment.cancel(credited_back=False)
        db.commit()
        send = AsyncMock(return_value=True)
        patcher = stub_notifications(send_appointment_confirmation=send)
        try:
            result = send_appointment_confirmation.run(appointment.id)
        finally:
            patcher.stop()

        assert result["sent"] is False
        send.assert_not_awaited()

    def test_already_confirmed_is_not_resent(self, db, appointment):
        appointment.mark_confirmation_sent(datetime(2026, 3, 1, 9, 0))
        db.commit()
        send = AsyncMock(return_value=True)
        patcher = stub_notifications(send_appointment_confirmation=send)
        try:
            send_appointment_confirmation.run(appointment.id)
        finally:
            patcher.stop()

        send.assert_not_awaited()

    def test_missing_appointment(self):
        assert send_appointment_confirmation.run("missing") == {
            "appointment_id": "missing",
            "sent": False,
        }


class TestCancellation:
    def test_sends_for_cancelled_appointment(self, db, appointment, caplog):
        appointment.cancel(credited_back=True)
        db.commit()
        caplog.set_level(logging.INFO)

        result = send_appointment_cancellation.run(appointment.id)

        assert result == {"appointment_id": appointment.id, "sent": True}
        assert "[console email]" in caplog.text

    def test_still_scheduled_is_skipped(self, appointment):
        send = AsyncMock(return_value=True)
        patcher = stub_notifications(send_appointment_cancellation=send)
        try:
            result = send_appointment_cancellation.run(appointment.id)
        finally:
            patcher.stop()

        assert result["sent"] is False
        send.assert_not_awaited()

    def test_failure_does_not_touch_appointment(self, db, appointment):
        appointment.cancel(credited_back=False)
        db.commit()
        patcher = stub_notifications(
            send_appointment_cancellation=AsyncMock(side_effect=ConnectionError("smtp down"))
        )
        try:
            result = send_appointment_cancellation.run(appointment.id)
        finally:
            patcher.stop()

        assert result["sent"] is False
        db.expire_all()
        assert db.get(Appointment, appointment.id).status == AppointmentStatus.CANCELLED


def test_notification_tasks_routed_to_own_queue():
    routes = celery_app.conf.task_routes

    assert routes["tutorhub.tasks.notifications.*"] == {"queue": "notifications"}
    assert send_appointment_confirmation.name in celery_app.tasks
    assert send_appointment_cancellation.name in celery_app.tasks
