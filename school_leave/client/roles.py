"""
Role gate: maps a typed-in identifier to a student or teacher role.

This is a naming convention check only. It proves nothing about who is
typing: anyone who knows the prefixes can claim any identifier.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Union


class LoginTab(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"


_PREFIXES = {LoginTab.STUDENT: "STU", LoginTab.TEACHER: "TCH"}
_EXAMPLES = {LoginTab.STUDENT: "STU-001", LoginTab.TEACHER: "TCH-001"}


@dataclass(frozen=True)
class StudentRole:
    student_id: str
    kind: Literal["student"] = "student"

    @property
    def identifier(self) -> str:
        return self.student_id


@dataclass(frozen=True)
class TeacherRole:
    teacher_id: str
    kind: Literal["teacher"] = "teacher"

    @property
    def identifier(self) -> str:
        return self.teacher_id


Role = Union[StudentRole, TeacherRole]


class RoleRejected(ValueError):
    """The identifier breaks the login rule; ``str(exc)`` is user-facing."""


def placeholder_for(tab: LoginTab) -> str:
    return _EXAMPLES[LoginTab(tab)]


def check_login(tab: LoginTab | str, identifier: str) -> Role:
    """Validate *identifier* for *tab* and return the resulting role."""
    tab = LoginTab(tab)
    if not identifier.strip():
        raise RoleRejected("Please enter your ID.")

    normalised = identifier.strip().upper()
    prefix = _PREFIXES[tab]
    if not normalised.startswith(prefix):
        label = "Student" if tab is LoginTab.STUDENT else "Teacher"
        raise RoleRejected(f"{label} ID must start with '{prefix}' (e.g. {_EXAMPLES[tab]}).")

    if tab is LoginTab.STUDENT:
        return StudentRole(student_id=normalised)
    return TeacherRole(teacher_id=normalised)
