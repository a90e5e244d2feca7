"""Pydantic schemas for sessions, role checks and health."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from school_leave.client.roles import LoginTab


class SessionRequest(BaseModel):
    token: str | None = None


class SessionToken(BaseModel):
    access_token: str
    token_type: str = "bearer"
    uid: str
    provider: str
    expires_at: datetime


class SessionRead(BaseModel):
    uid: str
    provider: str
    expires_at: datetime


class RoleRequest(BaseModel):
    tab: LoginTab
    identifier: str


class RoleRead(BaseModel):
    role: str
    identifier: str


class HealthResponse(BaseModel):
    backend_configured: bool
    db: bool
    collection: str
    subscribers: int = 0
