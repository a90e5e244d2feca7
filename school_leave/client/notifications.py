"""Transient, auto-dismissing notifications for a single client."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class Notification:
    message: str
    level: str = "info"  # info | success | error


class Notifier:
    """Holds at most one notification; a new one replaces the old."""

    def __init__(self, ttl: float, on_change: Callable[[], None] | None = None) -> None:
        self._ttl = ttl
        self._on_change = on_change
        self._timer: asyncio.TimerHandle | None = None
        self.current: Notification | None = None

    def show(self, message: str, level: str = "info") -> Notification:
        self._cancel_timer()
        self.current = Notification(message=message, level=level)
        if self._ttl > 0:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
            if loop is not None:
                self._timer = loop.call_later(self._ttl, self.dismiss)
        self._changed()
        return self.current

    def dismiss(self) -> None:
        self._cancel_timer()
        if self.current is not None:
            self.current = None
            self._changed()

    def close(self) -> None:
        self._cancel_timer()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
