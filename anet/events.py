"""Process-wide client event dispatch."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class EventKind(Enum):
    """Kinds of events the client reports."""

    STATUS = "status"
    TRAFFIC_UPDATE = "traffic_update"
    WARN = "warn"
    ERROR = "error"


@dataclass(frozen=True)
class AnetEvent:
    """One event: a message for status/warn/error, counters for traffic updates."""

    kind: EventKind
    message: str = ""
    rx: int = 0
    tx: int = 0


class EventHandler(ABC):
    """Receiver of client events."""

    @abstractmethod
    def on_event(self, event: AnetEvent) -> None:
        """Handle one event."""


_handler: EventHandler | None = None
_lock = threading.Lock()


def set_handler(handler: EventHandler) -> bool:
    """Install the global handler once; later calls are ignored and return False."""
    global _handler
    with _lock:
        if _handler is not None:
            return False
        _handler = handler
        return True


def emit(event: AnetEvent) -> None:
    """Deliver an event to the installed handler, if any."""
    handler = _handler
    if handler is not None:
        handler.on_event(event)


def status(message: object) -> None:
    emit(AnetEvent(EventKind.STATUS, str(message)))


def err(message: object) -> None:
    emit(AnetEvent(EventKind.ERROR, str(message)))


def warn(message: object) -> None:
    emit(AnetEvent(EventKind.WARN, str(message)))