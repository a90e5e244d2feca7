"""
Request form: the student's editable draft of a new leave request.

The draft holds raw strings exactly as typed; they are only parsed when
the request is built for submission.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import date, datetime
from typing import Any

from school_leave.schemas.leave import (LeaveRequestBase, LeaveType, is_valid_total_days,
                                        pending_document)

_REQUIRED = ("student_name", "student_id", "start_date", "total_days", "reason")


class FormRejected(ValueError):
    """The draft cannot be submitted; ``str(exc)`` is user-facing."""


@dataclass
class Draft:
    student_name: str = ""
    student_id: str = ""
    leave_type: str = LeaveType.SICK.value
    start_date: str = ""
    end_date: str = ""
    total_days: str = ""
    missed_subjects: str = ""
    reason: str = ""


_EDITABLE = {f.name for f in fields(Draft)} - {"student_id"}


def _parse_date(value: str, label: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise FormRejected(f"{label} must be a valid date (YYYY-MM-DD).") from None


class RequestForm:
    def __init__(self) -> None:
        self.draft = Draft()

    def bind_student(self, student_id: str) -> None:
        self.draft.student_id = student_id

    def update(self, **changes: Any) -> None:
        """Apply typed-in values; the bound student id is locked."""
        for name, value in changes.items():
            if name in _EDITABLE and value is not None:
                setattr(self.draft, name, str(value))

    def reset(self, keep_student_id: bool = True) -> None:
        student_id = self.draft.student_id if keep_student_id else ""
        self.draft = Draft(student_id=student_id)

    def as_dict(self) -> dict[str, str]:
        return asdict(self.draft)

    def validate(self) -> LeaveRequestBase:
        d = self.draft
        if any(not getattr(d, name).strip() for name in _REQUIRED):
            raise FormRejected("Please fill in all required fields.")

        try:
            leave_type = LeaveType(d.leave_type)
        except ValueError:
            raise FormRejected("Please choose a valid leave type.") from None

        start = _parse_date(d.start_date, "Start date")
        end = _parse_date(d.end_date, "End date") if d.end_date.strip() else None

        try:
            total_days = float(d.total_days)
        except ValueError:
            total_days = None
        if total_days is None or not is_valid_total_days(total_days):
            raise FormRejected("Total days must be a positive number in 0.5 steps.")

        return LeaveRequestBase(
            student_name=d.student_name,
            student_id=d.student_id,
            leave_type=leave_type,
            start_date=start,
            end_date=end,
            total_days=total_days,
            missed_subjects=d.missed_subjects.strip(),
            reason=d.reason,
        )

    def build_record(self, now: datetime) -> dict[str, Any]:
        """Validate and return the document body to create."""
        return pending_document(self.validate(), now)
