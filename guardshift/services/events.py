"""Fire-and-forget notification hook.

Services only ever call :func:`emit_safely`; what happens to an event after
that (log line, email, chat message) is the sink's business.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from functools import lru_cache
from typing import Any, Protocol

from ..config import get_settings

logger = logging.getLogger(__name__)

ASSIGNMENT_CREATED = "assignment.created"
SHIFT_IMMINENT = "shift.imminent"
GUARD_OVERDUE = "guard.overdue"


class EventSink(Protocol):
    def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        ...


class LoggingEventSink:
    def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        logger.info("event %s %s", event_name, payload)


class MailEventSink:
    def __init__(self, recipient: str) -> None:
        self.recipient = recipient

    def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        from . import mailer

        mailer.send_event_email(self.recipient, event_name, payload)


class BackgroundEventSink:
    """Hand events to a thread pool so the caller never waits on delivery."""

    def __init__(self, inner: EventSink, max_workers: int = 4) -> None:
        self.inner = inner
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="event-sink")

    def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        future = self._executor.submit(self.inner.emit, event_name, payload)
        future.add_done_callback(lambda done: _log_delivery_failure(done, event_name))

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


def _log_delivery_failure(future: Future, event_name: str) -> None:
    exc = future.exception()
    if exc is not None:
        logger.warning("Delivery of %s failed: %s", event_name, exc)


def emit_safely(sink: EventSink | None, event_name: str, payload: dict[str, Any]) -> None:
    if sink is None:
        return
    try:
        sink.emit(event_name, payload)
    except Exception:
        logger.exception("Discarding %s event after sink failure", event_name)


@lru_cache
def get_event_sink() -> EventSink:
    settings = get_settings()
    inner: EventSink = LoggingEventSink()
    if settings.smtp_host and settings.smtp_from and settings.ops_alert_email:
        inner = MailEventSink(settings.ops_alert_email)
    return BackgroundEventSink(inner, max_workers=settings.notification_workers)
