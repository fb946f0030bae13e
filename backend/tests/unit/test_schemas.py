from datetime import date, datetime

from pydantic import ValidationError
import pytest

from tutorhub.models.appointment import AppointmentStatus
from tutorhub.schemas.appointment import AppointmentCreate, AppointmentUpdate
from tutorhub.schemas.availability import AvailabilityCreate, AvailabilityUpdate


class TestAppointmentCreate:
    def _payload(self, **overrides):
        payload = {
            "student_ids": ["s1"],
            "tutor_id": "t1",
            "start_time": datetime(2026, 3, 4, 10, 0),
            "end_time": datetime(2026, 3, 4, 11, 0),
        }
        payload.update(overrides)
        return payload

    def test_requires_at_least_one_student(self):
        with pytest.raises(ValidationError):
            AppointmentCreate(**self._payload(student_ids=[]))

    def test_duplicate_students_removed(self):
        data = AppointmentCreate(**self._payload(student_ids=["s1", "s2", "s1"]))
        assert data.student_ids == ["s1", "s2"]

    def test_notes_trimmed(self):
        data = AppointmentCreate(**self._payload(notes="  bring workbook  "))
        assert data.notes == "bring workbook"

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            AppointmentCreate(**self._payload(room="B2"))


class TestAppointmentUpdate:
    def test_only_set_fields_dumped(self):
        data = AppointmentUpdate(end_time=datetime(2026, 3, 4, 11, 30))
        assert data.model_dump(exclude_unset=True) == {"end_time": datetime(2026, 3, 4, 11, 30)}

    def test_status_parsed(self):
        assert AppointmentUpdate(status="cancelled").status == AppointmentStatus.CANCELLED

    def test_invalid_status_rejected(self):
        with pytest.raises(ValidationError):
            AppointmentUpdate(status="postponed")


class TestAvailabilityCreate:
    def test_recurring_window(self):
        data = AvailabilityCreate(tutor_id="t1", day_of_week=3, start_time="09:00", end_time="12:00")
        assert data.effective_day_of_week == 3

    def test_specific_date_derives_day(self):
        data = AvailabilityCreate(
            tutor_id="t1",
            start_time="14:00",
            end_time="16:00",
            is_recurring=False,
            specific_date=date(2026, 3, 5),
        )
        assert data.effective_day_of_week == 4

    @pytest.mark.parametrize("start,end", [("12:00", "09:00"), ("09:00", "09:00")])
    def test_empty_window_rejected(self, start, end):
        with pytest.raises(ValidationError):
            AvailabilityCreate(tutor_id="t1", day_of_week=3, start_time=start, end_time=end)

    def test_bad_time_format_rejected(self):
        with pytest.raises(ValidationError):
            AvailabilityCreate(tutor_id="t1", day_of_week=3, start_time="9:00", end_time="12:00")

    def test_non_recurring_requires_date(self):
        with pytest.raises(ValidationError):
            AvailabilityCreate(
                tutor_id="t1", day_of_week=3, start_time="09:00", end_time="12:00", is_recurring=False
            )

    def test_recurring_rejects_date(self):
        with pytest.raises(ValidationError):
            AvailabilityCreate(
                tutor_id="t1",
                day_of_week=3,
                start_time="09:00",
                end_time="12:00",
                specific_date=date(2026, 3, 4),
            )

    def test_recurring_requires_day(self):
        with pytest.raises(ValidationError):
            AvailabilityCreate(tutor_id="t1", start_time="09:00", end_time="12:00")

    def test_mismatched_day_rejected(self):
        with pytest.raises(ValidationError):
            AvailabilityCreate(
                tutor_id="t1",
                day_of_week=1,
                start_time="09:00",
                end_time="12:00",
                is_recurring=False,
                specific_date=date(2026, 3, 5),
            )


def test_availability_update_checks_both_sides_when_given():
    with pytest.raises(ValidationError):
        AvailabilityUpdate(start_time="13:00", end_time="12:00")
    assert AvailabilityUpdate(start_time="13:00").end_time is None
