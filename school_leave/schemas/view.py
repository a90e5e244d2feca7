"""Pydantic schemas for the live client: rendered views and inbound commands."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from school_leave.client.roles import LoginTab
from school_leave.schemas.leave import CamelModel, LeaveRequest


# ── Outbound view ───────────────────────────────────────────────────
class NotificationView(BaseModel):
    message: str
    level: str


class RequestView(LeaveRequest):
    actions: list[str] = []


class SummaryView(BaseModel):
    pending: int
    total: int


class ClientView(CamelModel):
    connected: bool
    bootstrapping: bool
    degraded_reason: str | None = None
    notification: NotificationView | None = None
    role: str | None = None
    user_label: str | None = None
    login_tab: LoginTab
    login_placeholder: str
    draft: dict[str, str]
    requests: list[RequestView]
    summary: SummaryView | None = None


# ── Inbound commands ────────────────────────────────────────────────
class DraftUpdate(CamelModel):
    model_config = ConfigDict(extra="ignore")

    student_name: str | None = None
    leave_type: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    total_days: str | None = None
    missed_subjects: str | None = None
    reason: str | None = None


class SelectTabCommand(BaseModel):
    action: Literal["select_tab"]
    tab: LoginTab


class LoginCommand(BaseModel):
    action: Literal["login"]
    tab: LoginTab | None = None
    identifier: str = ""


class LogoutCommand(BaseModel):
    action: Literal["logout"]


class UpdateDraftCommand(BaseModel):
    action: Literal["update_draft"]
    fields: DraftUpdate


class SubmitCommand(BaseModel):
    action: Literal["submit"]


class ApproveCommand(BaseModel):
    action: Literal["approve"]
    id: str


class RejectCommand(BaseModel):
    action: Literal["reject"]
    id: str


class SignOutCommand(BaseModel):
    action: Literal["sign_out"]


Command = Annotated[
    Union[
        SelectTabCommand,
        LoginCommand,
        LogoutCommand,
        UpdateDraftCommand,
        SubmitCommand,
        ApproveCommand,
        RejectCommand,
        SignOutCommand,
    ],
    Field(discriminator="action"),
]

command_adapter: TypeAdapter[Command] = TypeAdapter(Command)
