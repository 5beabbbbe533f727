"""Debounce typing before a sharee search is issued.

The debouncer is a three-phase machine. `transition()` is pure and holds
every rule; `SearchDebouncer` only drives it with an asyncio timer.

    IDLE --edit--> DEBOUNCING --timer expired--> FETCHING --response--> IDLE
                     ^  |                           |
                     +--+ edit (restart timer)      +--edit--> DEBOUNCING

There is no maximum wait: a user who never pauses never triggers a fetch.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from loguru import logger

DEFAULT_DEBOUNCE_MS = 500


class DebouncePhase(Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    FETCHING = "fetching"


class DebounceInput(Enum):
    EDIT = "edit"
    TIMER_EXPIRED = "timer_expired"
    RESPONSE_RECEIVED = "response_received"


@dataclass(frozen=True)
class Step:
    """Outcome of one transition."""
    phase: DebouncePhase
    restart_timer: bool = False
    settle: bool = False


def transition(phase: DebouncePhase, event: DebounceInput) -> Step:
    """Next phase and actions for an input in a phase."""
    if event is DebounceInput.EDIT:
        return Step(DebouncePhase.DEBOUNCING, restart_timer=True)

    if event is DebounceInput.TIMER_EXPIRED:
        if phase is DebouncePhase.DEBOUNCING:
            return Step(DebouncePhase.FETCHING, settle=True)
        # stale expiry
        return Step(phase)

    if event is DebounceInput.RESPONSE_RECEIVED:
        if phase is DebouncePhase.FETCHING:
            return Step(DebouncePhase.IDLE)
        return Step(phase)

    raise ValueError(f"Unknown debounce input: {event!r}")


class SearchDebouncer:
    """
    Restarts a single-shot timer on every edit and settles once input is quiet.

    Args:
        on_settled: Called when the quiet period elapses. Returns True if a
            fetch was issued; False sends the machine straight back to idle.
        interval_ms: Quiet period in milliseconds
    """

    def __init__(
        self,
        on_settled: Callable[[], bool],
        interval_ms: int = DEFAULT_DEBOUNCE_MS,
        loop: Optional[asyncio.AbstractEventLoop] = None
    ):
        self._on_settled = on_settled
        self.interval_ms = interval_ms
        self._loop = loop
        self._timer: Optional[asyncio.TimerHandle] = None
        self._phase = DebouncePhase.IDLE
        self.settle_count = 0

    @property
    def phase(self) -> DebouncePhase:
        return self._phase

    @property
    def is_pending(self) -> bool:
        return self._timer is not None

    def query_edited(self) -> None:
        """Record an edit, restarting the quiet period."""
        self._feed(DebounceInput.EDIT)

    def response_received(self) -> None:
        """Record that the issued fetch has completed."""
        self._feed(DebounceInput.RESPONSE_RECEIVED)

    def cancel(self) -> None:
        """Drop any pending timer without settling."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._phase is DebouncePhase.DEBOUNCING:
            self._phase = DebouncePhase.IDLE

    def _feed(self, event: DebounceInput) -> None:
        step = transition(self._phase, event)
        self._phase = step.phase

        if step.restart_timer:
            self._restart_timer()

        if step.settle:
            self._settle()

    def _restart_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        loop = self._loop or asyncio.get_running_loop()
        self._timer = loop.call_later(self.interval_ms / 1000.0, self._expire)

    def _expire(self) -> None:
        self._timer = None
        self._feed(DebounceInput.TIMER_EXPIRED)

    def _settle(self) -> None:
        self.settle_count += 1
        logger.debug(f"Search settled after {self.interval_ms}ms of quiet")

        issued = self._on_settled()
        if not issued:
            self._feed(DebounceInput.RESPONSE_RECEIVED)
