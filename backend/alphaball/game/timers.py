from __future__ import annotations

import logging
from threading import Event
from typing import Any, Callable, Protocol

from flask_socketio import SocketIO


logger = logging.getLogger(__name__)


class ScheduledTask:
    def __init__(self, name: str = "") -> None:
        self.name = name
        self._cancelled = Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ScheduledTask: ...


class SocketIOScheduler:
    """One-shot delayed callbacks on Socket.IO background tasks.

    Recurring work re-schedules itself from inside its callback.
    """

    def __init__(self, socketio: SocketIO) -> None:
        self._socketio = socketio

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ScheduledTask:
        task = ScheduledTask(name=getattr(callback, "__name__", ""))

        def _runner() -> None:
            self._socketio.sleep(delay)
            if task.cancelled:
                return
            try:
                callback(*args)
            except Exception:
                logger.exception("[task-failed] task=%s", task.name)

        self._socketio.start_background_task(_runner)
        return task
