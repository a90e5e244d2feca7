"""
Live client endpoint: one ``LeaveClient`` per WebSocket connection.

The browser sends JSON commands and receives ``{"type": "view", ...}``
frames. Commands of one connection run strictly one at a time; views are
pushed from a separate task whenever the controller reports a change.
"""

from __future__ import annotations

import asyncio
import logging
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from school_leave.api.v1.deps import get_identity, get_store
from school_leave.backend.identity import IdentityProvider
from school_leave.backend.store import DocumentStore
from school_leave.client.controller import LeaveClient
from school_leave.schemas.view import (ApproveCommand, Command, LoginCommand, LogoutCommand,
                                       RejectCommand, SelectTabCommand, SignOutCommand,
                                       SubmitCommand, UpdateDraftCommand, command_adapter)

router = APIRouter(tags=["live"])
logger = logging.getLogger(__name__)


async def _dispatch(client: LeaveClient, command: Command) -> None:
    if isinstance(command, SelectTabCommand):
        client.select_tab(command.tab)
    elif isinstance(command, LoginCommand):
        client.login(command.identifier, tab=command.tab)
    elif isinstance(command, LogoutCommand):
        client.logout()
    elif isinstance(command, UpdateDraftCommand):
        client.update_draft(**command.fields.model_dump(exclude_none=True))
    elif isinstance(command, SubmitCommand):
        await client.submit()
    elif isinstance(command, ApproveCommand):
        await client.approve(command.id)
    elif isinstance(command, RejectCommand):
        await client.reject(command.id)
    elif isinstance(command, SignOutCommand):
        await client.sign_out()


async def _push_views(websocket: WebSocket, client: LeaveClient, changed: asyncio.Event) -> None:
    while True:
        await changed.wait()
        changed.clear()
        view = client.view().model_dump(mode="json", by_alias=True)
        await websocket.send_json({"type": "view", "view": view})


@router.websocket("/live")
async def live_client(
    websocket: WebSocket,
    identity: IdentityProvider = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
) -> None:
    await websocket.accept()
    logger.info("Live client connected from %s", websocket.client)
    changed = asyncio.Event()

    async with LeaveClient(identity, store, on_change=changed.set) as client:
        pusher = asyncio.create_task(_push_views(websocket, client, changed))
        try:
            while True:
                message = await websocket.receive_text()
                try:
                    command = command_adapter.validate_json(message)
                except ValidationError as exc:
                    logger.warning("Ignoring malformed command: %d error(s)", exc.error_count())
                    client.notifier.show("Unrecognised command.", "error")
                    continue
                await _dispatch(client, command)
        except WebSocketDisconnect:
            logger.info("Live client disconnected")
        finally:
            pusher.cancel()
            (outcome,) = await asyncio.gather(pusher, return_exceptions=True)
            if isinstance(outcome, Exception):
                logger.warning("View push stopped: %s", outcome)
