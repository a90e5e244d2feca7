"""Pydantic schemas for leave-request documents."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class LeaveType(str, Enum):
    SICK = "sick"
    PERSONAL = "personal"
    OTHER = "other"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def is_valid_total_days(value: float) -> bool:
    """Leave is counted in half days, and must be positive."""
    return value > 0 and float(value * 2).is_integer()


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Create ──────────────────────────────────────────────────────────
class LeaveRequestBase(CamelModel):
    student_name: str
    student_id: str
    leave_type: LeaveType = LeaveType.SICK
    start_date: date
    end_date: date | None = None
    total_days: float | None = None
    missed_subjects: str = ""
    reason: str

    @field_validator("student_name", "student_id", "reason")
    @classmethod
    def _required_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field must not be empty")
        return v

    @field_validator("student_id")
    @classmethod
    def _normalise_student_id(cls, v: str) -> str:
        return v.upper()

    @field_validator("total_days")
    @classmethod
    def _half_days(cls, v: float | None) -> float | None:
        if v is not None and not is_valid_total_days(v):
            raise ValueError("Total days must be a positive number in 0.5 steps")
        return v


class LeaveRequestCreate(LeaveRequestBase):
    """REST submission body; every field of the form is mandatory here."""

    total_days: float
    missed_subjects: str

    @field_validator("missed_subjects")
    @classmethod
    def _missed_subjects_given(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field must not be empty")
        return v


# ── Stored record ───────────────────────────────────────────────────
class LeaveRequest(LeaveRequestBase):
    """A leave request as held by the store; ``id`` is store-assigned."""

    id: str
    status: LeaveStatus = LeaveStatus.PENDING
    request_date: date
    timestamp: int

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "LeaveRequest":
        return cls.model_validate({**data, "id": doc_id})

    def to_document(self) -> dict[str, Any]:
        """Serialise to the camelCase document body (without ``id``)."""
        return self.model_dump(mode="json", by_alias=True, exclude={"id"})

    @property
    def is_pending(self) -> bool:
        return self.status is LeaveStatus.PENDING


def sort_newest_first(records: list[LeaveRequest]) -> list[LeaveRequest]:
    return sorted(records, key=lambda r: r.timestamp, reverse=True)


def pending_document(body: LeaveRequestBase, now: datetime) -> dict[str, Any]:
    """Document body for a fresh submission: pending, dated *now*."""
    return {
        **body.model_dump(mode="json", by_alias=True),
        "status": LeaveStatus.PENDING.value,
        "requestDate": now.date().isoformat(),
        "timestamp": int(now.timestamp() * 1000),
    }


# ── Status update ───────────────────────────────────────────────────
class StatusUpdate(BaseModel):
    status: LeaveStatus

    @field_validator("status")
    @classmethod
    def _decision_only(cls, v: LeaveStatus) -> LeaveStatus:
        if v is LeaveStatus.PENDING:
            raise ValueError("Status can only be set to 'approved' or 'rejected'")
        return v
