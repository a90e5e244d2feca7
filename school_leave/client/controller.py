"""
LeaveClient: the top-level controller for one connected browser tab.

It owns all of the client's state (session, synchronised list, role,
draft, notification) and exposes it read-only through ``view()``. Every
user intent arrives as a method call. Whenever state changes the
``on_change`` callback fires so the transport can push a fresh view.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from pydantic.alias_generators import to_camel

from school_leave.backend.identity import IdentityProvider, SessionHandle
from school_leave.backend.store import DocumentStore
from school_leave.client.form import FormRejected, RequestForm
from school_leave.client.live_query import LiveQuery
from school_leave.client.notifications import Notifier
from school_leave.client.roles import (LoginTab, Role, RoleRejected, StudentRole, TeacherRole,
                                       check_login, placeholder_for)
from school_leave.core.config import Settings, settings
from school_leave.core.exceptions import LeaveAppError, StoreError
from school_leave.schemas.leave import LeaveRequest, LeaveStatus
from school_leave.schemas.view import (ClientView, NotificationView, RequestView,
                                       SummaryView)

logger = logging.getLogger(__name__)

_NO_CONNECTION = "No connection to the server. Please try again later."


def _local_now() -> datetime:
    return datetime.now().astimezone()


class LeaveClient:
    def __init__(
        self,
        identity: IdentityProvider,
        store: DocumentStore,
        cfg: Settings = settings,
        *,
        on_change: Callable[[], None] | None = None,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self._identity = identity
        self._auth = identity.auth_state()
        self._store = store
        self._cfg = cfg
        self._on_change = on_change
        self._clock = clock
        self._live: LiveQuery | None = None
        self._unwatch_session: Callable[[], None] | None = None

        self.notifier = Notifier(cfg.NOTIFICATION_TTL_SECONDS, on_change=self._changed)
        self.form = RequestForm()
        self.session: SessionHandle | None = None
        self.bootstrapping = True
        self.degraded_reason: str | None = None
        self.requests: list[LeaveRequest] = []
        self.role: Role | None = None
        self.login_tab = LoginTab.STUDENT
        self.login_id = ""

    async def __aenter__(self) -> "LeaveClient":
        await self.bootstrap()
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.close()

    @property
    def has_session(self) -> bool:
        return self.session is not None

    @property
    def live(self) -> bool:
        return self._live is not None and self._live.active

    # ── Session bootstrap ───────────────────────────────────────────
    async def bootstrap(self) -> None:
        """Make one attempt at a session; failure degrades, never raises."""
        self.bootstrapping = True
        self._unwatch_session = await self._auth.on_session_change(self._session_changed)
        try:
            await self._auth.sign_in(self._cfg.INITIAL_AUTH_TOKEN)
        except LeaveAppError as exc:
            self.degraded_reason = exc.message
            logger.warning("Running disconnected: %s", exc.message)
        finally:
            self.bootstrapping = False
            self._changed()

    async def sign_out(self) -> None:
        await self._auth.sign_out()

    async def close(self) -> None:
        """Release the session, the live subscription and pending timers."""
        try:
            await self._auth.sign_out()
        finally:
            if self._unwatch_session is not None:
                self._unwatch_session()
                self._unwatch_session = None
            self._stop_live()
            self.notifier.close()

    async def _session_changed(self, session: SessionHandle | None) -> None:
        self.session = session
        if session is None:
            self._stop_live()
        elif self._live is None:
            self._live = LiveQuery(
                self._store,
                self._cfg.collection_path,
                on_records=self._records_changed,
                on_error=self._sync_failed,
            )
            await self._live.start()
        self._changed()

    def _stop_live(self) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None

    def _records_changed(self, records: list[LeaveRequest]) -> None:
        self.requests = records
        self._changed()

    def _sync_failed(self, _exc: Exception) -> None:
        self.notifier.show("Could not load leave requests.", "error")

    # ── Role gate ───────────────────────────────────────────────────
    def select_tab(self, tab: LoginTab | str) -> None:
        self.login_tab = LoginTab(tab)
        self._changed()

    def login(self, identifier: str, tab: LoginTab | str | None = None) -> bool:
        login_tab = self.login_tab if tab is None else LoginTab(tab)
        try:
            role = check_login(login_tab, identifier)
        except RoleRejected as exc:
            self.notifier.show(str(exc), "error")
            return False

        self.login_tab = login_tab
        self.login_id = role.identifier
        self.role = role
        if isinstance(role, StudentRole):
            self.form.bind_student(role.student_id)
        logger.info("Client signed in as %s %s", role.kind, role.identifier)
        self.notifier.show("Signed in successfully.", "success")
        return True

    def logout(self) -> None:
        self.role = None
        self.login_id = ""
        self.form.reset(keep_student_id=False)
        self._changed()

    # ── Request form ────────────────────────────────────────────────
    def update_draft(self, **changes: str) -> None:
        self.form.update(**changes)
        self._changed()

    async def submit(self) -> str | None:
        """Create a leave request from the draft; returns the new id."""
        if self.session is None:
            self.notifier.show(_NO_CONNECTION, "error")
            return None
        if not isinstance(self.role, StudentRole):
            self.notifier.show("Only students can submit leave requests.", "error")
            return None
        try:
            record = self.form.build_record(self._clock())
        except FormRejected as exc:
            self.notifier.show(str(exc), "error")
            return None

        try:
            doc_id = await self._store.create(self._cfg.collection_path, record)
        except StoreError as exc:
            logger.error("Submitting leave request failed: %s", exc)
            self.notifier.show("Submission failed. Please try again.", "error")
            return None

        self.form.reset(keep_student_id=True)
        self.notifier.show("Leave request submitted.", "success")
        return doc_id

    # ── Request list / action panel ─────────────────────────────────
    def visible_requests(self) -> list[LeaveRequest]:
        if isinstance(self.role, StudentRole):
            return [r for r in self.requests if r.student_id == self.role.student_id]
        if isinstance(self.role, TeacherRole):
            return list(self.requests)
        return []

    def actions_for(self, record: LeaveRequest) -> tuple[str, ...]:
        if isinstance(self.role, TeacherRole) and record.is_pending:
            return ("approve", "reject")
        return ()

    def summary(self) -> SummaryView | None:
        if not isinstance(self.role, TeacherRole):
            return None
        pending = sum(1 for r in self.requests if r.is_pending)
        return SummaryView(pending=pending, total=len(self.requests))

    async def approve(self, request_id: str) -> bool:
        return await self._decide(request_id, LeaveStatus.APPROVED)

    async def reject(self, request_id: str) -> bool:
        return await self._decide(request_id, LeaveStatus.REJECTED)

    async def _decide(self, request_id: str, status: LeaveStatus) -> bool:
        if not isinstance(self.role, TeacherRole):
            self.notifier.show("Only teachers can approve or reject requests.", "error")
            return False
        if self.session is None:
            self.notifier.show(_NO_CONNECTION, "error")
            return False
        record = next((r for r in self.requests if r.id == request_id), None)
        if record is None:
            self.notifier.show("Leave request not found.", "error")
            return False
        if not record.is_pending:
            self.notifier.show("This request has already been decided.", "error")
            return False

        try:
            await self._store.update(self._cfg.collection_path, request_id, {"status": status.value})
        except StoreError as exc:
            logger.error("Setting %s on %s failed: %s", status.value, request_id, exc)
            self.notifier.show("Action failed. Please try again.", "error")
            return False

        logger.info("Teacher %s marked %s as %s", self.role.teacher_id, request_id, status.value)
        message = "Request approved." if status is LeaveStatus.APPROVED else "Request rejected."
        self.notifier.show(message, "success")
        return True

    # ── Rendering ───────────────────────────────────────────────────
    def view(self) -> ClientView:
        note = self.notifier.current
        if isinstance(self.role, StudentRole):
            user_label = self.role.student_id
        elif isinstance(self.role, TeacherRole):
            user_label = "Teacher"
        else:
            user_label = None
        return ClientView(
            connected=self.has_session,
            bootstrapping=self.bootstrapping,
            degraded_reason=self.degraded_reason,
            notification=NotificationView(message=note.message, level=note.level) if note else None,
            role=self.role.kind if self.role else None,
            user_label=user_label,
            login_tab=self.login_tab,
            login_placeholder=placeholder_for(self.login_tab),
            draft={to_camel(k): v for k, v in self.form.as_dict().items()},
            requests=[
                RequestView(**r.model_dump(), actions=list(self.actions_for(r)))
                for r in self.visible_requests()
            ],
            summary=self.summary(),
        )

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
