"""Typed event emitter for model notifications."""

from typing import Callable, ClassVar, Dict, List, Tuple
from dataclasses import dataclass
from collections import defaultdict
from loguru import logger


@dataclass(frozen=True)
class Event:
    """Base event class. Subclasses set `type` as category.action."""
    type: ClassVar[str] = "event"


@dataclass(frozen=True)
class SearchTextChanged(Event):
    type: ClassVar[str] = "query.text_changed"
    text: str


@dataclass(frozen=True)
class ItemKindChanged(Event):
    type: ClassVar[str] = "query.item_kind_changed"
    item_is_folder: bool


@dataclass(frozen=True)
class LookupModeChanged(Event):
    type: ClassVar[str] = "query.lookup_mode_changed"
    lookup_mode: object


@dataclass(frozen=True)
class SessionChanged(Event):
    type: ClassVar[str] = "session.changed"
    has_session: bool


@dataclass(frozen=True)
class ExclusionsChanged(Event):
    type: ClassVar[str] = "exclusions.changed"
    count: int


@dataclass(frozen=True)
class FetchStateChanged(Event):
    type: ClassVar[str] = "fetch.state_changed"
    is_fetching: bool


@dataclass(frozen=True)
class ErrorOccurred(Event):
    type: ClassVar[str] = "fetch.error"
    status_code: int
    message: str


@dataclass(frozen=True)
class ModelResetBegan(Event):
    type: ClassVar[str] = "results.reset_began"


@dataclass(frozen=True)
class ModelResetEnded(Event):
    type: ClassVar[str] = "results.reset_ended"


@dataclass(frozen=True)
class ResultsReady(Event):
    type: ClassVar[str] = "results.ready"
    count: int


Handler = Callable[[Event], None]


class EventEmitter:
    """
    Synchronous pub/sub emitter.

    Handlers run on the caller's stack, so a handler sees the state
    exactly as it was when the event was emitted.
    Event types follow pattern: category.action
    Examples: query.text_changed, fetch.state_changed, results.ready
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = defaultdict(list)
        self._stats = defaultdict(int)

    def subscribe(self, event_pattern: str, handler: Handler) -> None:
        """
        Subscribe to events matching pattern.
        Pattern can use wildcards: 'fetch.*' matches all fetch events.
        """
        self._subscribers[event_pattern].append(handler)
        logger.debug(f"Subscribed handler to pattern: {event_pattern}")

    def unsubscribe(self, event_pattern: str, handler: Handler) -> None:
        """Unsubscribe handler from event pattern."""
        self._subscribers[event_pattern] = [
            h for h in self._subscribers[event_pattern] if h != handler
        ]

    def emit(self, event: Event) -> None:
        """Deliver an event to every matching handler."""
        self._stats['emitted'] += 1

        for handler in self._handlers_for(event.type):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Handler error for event {event.type}: {e}")
                self._stats['handler_errors'] += 1

        self._stats['processed'] += 1

    def _handlers_for(self, event_type: str) -> Tuple[Handler, ...]:
        handlers: List[Handler] = []
        for pattern, subscribed in list(self._subscribers.items()):
            if self._matches_pattern(event_type, pattern):
                handlers.extend(subscribed)
        return tuple(handlers)

    def _matches_pattern(self, event_type: str, pattern: str) -> bool:
        """Check if event type matches subscription pattern."""
        if pattern == "*":
            return True
        if pattern.endswith(".*"):
            prefix = pattern[:-2]
            return event_type.startswith(prefix + ".")
        return event_type == pattern

    def get_stats(self) -> Dict[str, int]:
        """Get emitter statistics."""
        return dict(self._stats)

    def reset_stats(self) -> None:
        """Reset statistics."""
        self._stats.clear()
