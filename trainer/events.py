"""Observable event and error channel for a training session."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    STATE_CHANGED = "state_changed"
    ORIENTATION = "orientation"
    BOARD_UPDATED = "board_updated"
    MOVE_CORRECT = "move_correct"
    MOVE_INCORRECT = "move_incorrect"
    PROMOTION_REQUIRED = "promotion_required"
    PUZZLE_COMPLETE = "puzzle_complete"
    SET_COMPLETE = "set_complete"
    ACHIEVEMENTS_UNLOCKED = "achievements_unlocked"
    TIMER = "timer"
    NAVIGATE = "navigate"
    ERROR = "error"


@dataclass(frozen=True)
class SessionEvent:
    kind: EventKind
    data: dict = field(default_factory=dict)


Listener = Callable[[SessionEvent], None]


class EventBus:
    """Synchronous fan-out to subscribers. A failing subscriber is logged and skipped."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []
        self.errors: List[Exception] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, kind: EventKind, **data) -> SessionEvent:
        event = SessionEvent(kind, data)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Session event listener failed on %s", kind.value)
        return event

    def error(self, exc: Exception, *, context: str) -> None:
        """Record a non-fatal failure and publish it."""
        self.errors.append(exc)
        self.emit(EventKind.ERROR, context=context, error=exc)
