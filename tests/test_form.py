"""Tests for the leave-request draft form."""

from datetime import datetime, timezone

import pytest

from school_leave.client.form import FormRejected, RequestForm

NOW = datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)


def _filled_form() -> RequestForm:
    form = RequestForm()
    form.bind_student("STU-001")
    form.update(student_name="Mg Mg", start_date="2024-01-01", reason="flu", total_days="3")
    return form


def test_build_record_is_pending_and_dated():
    record = _filled_form().build_record(NOW)
    assert record["status"] == "pending"
    assert record["requestDate"] == "2024-01-01"
    assert record["timestamp"] == int(NOW.timestamp() * 1000)
    assert record["studentId"] == "STU-001"
    assert record["leaveType"] == "sick"
    assert record["totalDays"] == 3
    assert record["endDate"] is None


@pytest.mark.parametrize("field", ["student_name", "start_date", "total_days", "reason"])
def test_required_fields(field):
    form = _filled_form()
    form.update(**{field: "  "})
    with pytest.raises(FormRejected, match="required"):
        form.validate()


def test_student_id_required():
    form = RequestForm()
    form.update(student_name="Mg Mg", start_date="2024-01-01", reason="flu")
    with pytest.raises(FormRejected, match="required"):
        form.validate()


def test_student_id_is_locked_against_edits():
    form = _filled_form()
    form.update(student_id="STU-999")
    assert form.draft.student_id == "STU-001"


def test_end_date_and_missed_subjects_optional():
    form = _filled_form()
    body = form.validate()
    assert body.end_date is None
    assert body.missed_subjects == ""


@pytest.mark.parametrize("days", ["0", "-1", "1.25", "abc", "nan"])
def test_total_days_must_be_half_steps(days):
    form = _filled_form()
    form.update(total_days=days)
    with pytest.raises(FormRejected, match="0.5"):
        form.validate()


def test_half_day_accepted():
    form = _filled_form()
    form.update(total_days="0.5")
    assert form.validate().total_days == 0.5


def test_bad_dates_rejected():
    form = _filled_form()
    form.update(start_date="01/01/2024")
    with pytest.raises(FormRejected, match="Start date"):
        form.validate()

    form = _filled_form()
    form.update(end_date="tomorrow")
    with pytest.raises(FormRejected, match="End date"):
        form.validate()


def test_unknown_leave_type_rejected():
    form = _filled_form()
    form.update(leave_type="holiday")
    with pytest.raises(FormRejected, match="leave type"):
        form.validate()


def test_reset_keeps_bound_student():
    form = _filled_form()
    form.update(leave_type="personal")
    form.reset()
    assert form.draft.student_id == "STU-001"
    assert form.draft.student_name == ""
    assert form.draft.leave_type == "sick"

    form.reset(keep_student_id=False)
    assert form.draft.student_id == ""
