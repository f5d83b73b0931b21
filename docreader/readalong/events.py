"""
Playback and document events delivered to the rendering side.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Tuple


class PlaybackStatus(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    FINISHED = "finished"


@dataclass(frozen=True)
class DocumentLoaded:
    sentences: Tuple[Any, ...]


@dataclass(frozen=True)
class ReportReady:
    report: Any


@dataclass(frozen=True)
class Highlight:
    index: int


@dataclass(frozen=True)
class Progress:
    index: int
    total: int


@dataclass(frozen=True)
class PlaybackStatusChanged:
    status: PlaybackStatus


@dataclass(frozen=True)
class PlaybackError:
    message: str


Listener = Callable[[Any], None]


class EventChannel:
    """Fan out events to subscribed listeners in subscription order."""

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: Any) -> None:
        for listener in list(self._listeners):
            listener(event)
