# backend/tests/services/test_appointment_generator.py
"""
Tests for RecurringAppointmentGenerator.

Reference run time is Sunday 2026-03-01 00:00, so a Wednesday slot falls
on Mar 4, 11, 18 and 25 inside the default 28-day horizon.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from tutorhub.core.enums import RoleName
from tutorhub.models import Appointment, AppointmentStatus
from tutorhub.monitoring.prometheus_metrics import REGISTRY
from tutorhub.services.appointment_generator import RecurringAppointmentGenerator

NOW = datetime(2026, 3, 1, 0, 0)
WEDNESDAY_10_TO_11 = (3, "10:00", "11:00")


def balance(course) -> Decimal:
    return Decimal(str(course.hours_balance))


@pytest.fixture
def generator(db) -> RecurringAppointmentGenerator:
    return RecurringAppointmentGenerator(db, horizon_days=28)


class TestGenerate:
    def test_weekly_slot_fills_horizon(self, generator, db, tutor, student, make_course):
        course = make_course(tutor, [student], slots=[WEDNESDAY_10_TO_11])

        summary = generator.generate(now=NOW)

        assert summary.appointments_created == 4
        assert summary.courses_processed == 1
        appointments = db.query(Appointment).order_by(Appointment.start_time).all()
        assert [a.start_time.date() for a in appointments] == [
            date(2026, 3, 4),
            date(2026, 3, 11),
            date(2026, 3, 18),
            date(2026, 3, 25),
        ]
        for appointment in appointments:
            assert appointment.status == AppointmentStatus.SCHEDULED
            assert appointment.course_id == course.id
            assert appointment.tutor_id == tutor.id
            assert appointment.end_time.hour == 11
            assert [s.id for s in appointment.students] == [student.id]

        db.refresh(course)
        assert balance(course) == Decimal("6")
        assert course.needs_renewal is False

    def test_second_run_is_idempotent(self, generator, db, tutor, student, make_course):
        course = make_course(tutor, [student], slots=[WEDNESDAY_10_TO_11])
        generator.generate(now=NOW)

        summary = generator.generate(now=NOW)

        assert summary.appointments_created == 0
        assert db.query(Appointment).count() == 4
        db.refresh(course)
        assert balance(course) == Decimal("6")

    def test_fractional_lessons_draw_exact_hours(self, generator, db, tutor, student, make_course):
        course = make_course(tutor, [student], slots=[(3, "10:00", "11:30")])

        generator.generate(now=NOW)

        db.refresh(course)
        assert balance(course) == Decimal("4")

    def test_balance_exhausted_flags_renewal(self, db, tutor, student, make_course):
        course = make_course(
            tutor, [student], slots=[WEDNESDAY_10_TO_11], hours_balance=Decimal("1")
        )

        summary = RecurringAppointmentGenerator(db, horizon_days=6).generate(now=NOW)

        assert summary.appointments_created == 1
        db.refresh(course)
        assert balance(course) == Decimal("0")
        assert course.needs_renewal is True

    def test_generation_continues_below_zero(self, generator, db, tutor, student, make_course):
        course = make_course(
            tutor, [student], slots=[WEDNESDAY_10_TO_11], hours_balance=Decimal("1")
        )

        summary = generator.generate(now=NOW)

        assert summary.appointments_created == 4
        db.refresh(course)
        assert balance(course) == Decimal("-3")
        assert course.needs_renewal is True

    def test_cancelled_occurrence_is_regenerated(self, generator, db, tutor, student, make_course):
        course = make_course(tutor, [student], slots=[WEDNESDAY_10_TO_11])
        generator.generate(now=NOW)
        first = db.query(Appointment).order_by(Appointment.start_time).first()
        first.cancel(credited_back=False)
        db.commit()

        summary = generator.generate(now=NOW)

        assert summary.appointments_created == 1
        scheduled = (
            db.query(Appointment)
            .filter(Appointment.status == AppointmentStatus.SCHEDULED.value)
            .count()
        )
        assert scheduled == 4
        db.refresh(course)
        assert balance(course) == Decimal("5")

    def test_past_days_not_generated(self, generator, db, tutor, student, make_course):
        make_course(tutor, [student], slots=[WEDNESDAY_10_TO_11], start_date=date(2026, 1, 1))

        generator.generate(now=datetime(2026, 3, 5, 8, 0))

        first = db.query(Appointment).order_by(Appointment.start_time).first()
        assert first.start_time.date() == date(2026, 3, 11)

    def test_future_start_date(self, generator, db, tutor, student, make_course):
        make_course(tutor, [student], slots=[WEDNESDAY_10_TO_11], start_date=date(2026, 3, 15))

        summary = generator.generate(now=NOW)

        assert summary.appointments_created == 2

    def test_multiple_slots_per_week(self, generator, db, tutor, student, make_course):
        course = make_course(
            tutor, [student], slots=[(1, "17:00", "18:00"), WEDNESDAY_10_TO_11]
        )

        summary = generator.generate(now=NOW)

        assert summary.appointments_created == 8
        db.refresh(course)
        assert balance(course) == Decimal("2")

    def test_skips_courses_without_slots_or_students(
        self, generator, db, tutor, student, make_course
    ):
        make_course(tutor, [student], slots=[])
        make_course(tutor, [], slots=[WEDNESDAY_10_TO_11])
        make_course(tutor, [student], slots=[WEDNESDAY_10_TO_11], is_active=False)

        summary = generator.generate(now=NOW)

        assert summary.courses_skipped == 2
        assert summary.courses_processed == 0
        assert db.query(Appointment).count() == 0

    def test_failure_isolated_to_one_course(
        self, generator, db, tutor, student, make_course, make_user, monkeypatch
    ):
        other_tutor = make_user(RoleName.TUTOR)
        broken = make_course(tutor, [student], slots=[WEDNESDAY_10_TO_11])
        healthy = make_course(other_tutor, [student], slots=[WEDNESDAY_10_TO_11])
        original = generator._generate_for_course

        def flaky(course, today, horizon_end):
            if course.id == broken.id:
                raise RuntimeError("boom")
            return original(course, today, horizon_end)

        monkeypatch.setattr(generator, "_generate_for_course", flaky)

        summary = generator.generate(now=NOW)

        assert summary.courses_failed == 1
        assert summary.failed_course_ids == [broken.id]
        assert summary.appointments_created == 4
        assert db.query(Appointment).filter(Appointment.course_id == healthy.id).count() == 4

    def test_lesson_without_course_blocks_only_its_occurrence(
        self, generator, db, tutor, student, make_course, make_appointment
    ):
        taken = make_appointment(
            tutor, [student], datetime(2026, 3, 11, 10, 0), datetime(2026, 3, 11, 11, 0)
        )
        course = make_course(tutor, [student], slots=[WEDNESDAY_10_TO_11])

        for _ in range(2):
            summary = generator.generate(now=NOW)
            assert summary.courses_failed == 0

        generated = (
            db.query(Appointment)
            .filter(Appointment.course_id == course.id)
            .order_by(Appointment.start_time)
            .all()
        )
        assert [a.start_time.date() for a in generated] == [
            date(2026, 3, 4),
            date(2026, 3, 18),
            date(2026, 3, 25),
        ]
        assert summary.occurrences_blocked == 1
        db.refresh(course)
        assert balance(course) == Decimal("7")
        db.refresh(taken)
        assert taken.course_id is None
        assert taken.status == AppointmentStatus.SCHEDULED

    def test_cancelled_lesson_does_not_block(
        self, generator, db, tutor, student, make_course, make_appointment
    ):
        make_appointment(
            tutor,
            [student],
            datetime(2026, 3, 11, 10, 0),
            datetime(2026, 3, 11, 11, 0),
            status=AppointmentStatus.CANCELLED,
        )
        make_course(tutor, [student], slots=[WEDNESDAY_10_TO_11])

        summary = generator.generate(now=NOW)

        assert summary.appointments_created == 4
        assert summary.occurrences_blocked == 0

    def test_same_slot_for_two_courses_first_course_keeps_it(
        self, generator, db, tutor, student, make_user, make_course
    ):
        other_student = make_user(RoleName.STUDENT)
        first = make_course(tutor, [student], slots=[WEDNESDAY_10_TO_11])
        second = make_course(
            tutor,
            [other_student],
            slots=[WEDNESDAY_10_TO_11, (1, "17:00", "18:00")],
            title="French",
        )

        summary = generator.generate(now=NOW)

        assert summary.courses_failed == 0
        assert summary.courses_processed == 2
        assert summary.occurrences_blocked == 4
        assert summary.appointments_created == 8

        # Courses are processed in id order, so the first one owns the shared slot
        holder, other = sorted([first, second], key=lambda c: c.id)
        for course in (holder, other):
            db.refresh(course)
        holder_count = db.query(Appointment).filter(Appointment.course_id == holder.id).count()
        other_count = db.query(Appointment).filter(Appointment.course_id == other.id).count()
        assert holder_count + other_count == 8
        assert balance(holder) == Decimal("10") - holder_count
        assert balance(other) == Decimal("10") - other_count


    def test_records_generated_metric(self, generator, tutor, student, make_course):
        make_course(tutor, [student], slots=[WEDNESDAY_10_TO_11])
        before = REGISTRY.get_sample_value("tutorhub_appointments_generated_total") or 0.0

        generator.generate(now=NOW)

        after = REGISTRY.get_sample_value("tutorhub_appointments_generated_total")
        assert after - before == 4


def test_summary_as_dict():
    from tutorhub.services.appointment_generator import GenerationSummary

    summary = GenerationSummary(courses_processed=2, appointments_created=5)
    assert summary.as_dict() == {
        "courses_processed": 2,
        "courses_skipped": 0,
        "courses_failed": 0,
        "appointments_created": 5,
        "occurrences_blocked": 0,
        "failed_course_ids": [],
    }
