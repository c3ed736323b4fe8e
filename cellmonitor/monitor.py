"""
Background polling of the cell table.

Design:
- The UI thread owns all state. Blocking work (a fetch) runs on a short-lived worker
  thread and its result is posted back to the UI thread by the Dispatcher.
- Every cycle:
    1) Re-arm the fixed-period timer (no backoff, errors do not stop it).
    2) Launch one fetch unless the previous one is still in flight.
    3) On completion, deliver cells (or the error) only if the poller is still running
       the same generation that launched the fetch.
- Methods:
    start(): first fetch immediately, then every interval_ms
    stop(): cancel the timer; anything still in flight is discarded when it lands
    when_idle(): defer work (closing the connection) until no fetch is running
- Thread-safety: start/stop and all callbacks run on the UI thread.
"""

import logging
from typing import Any, Callable, List, Optional, Protocol

from .config import POLL_INTERVAL_MS
from .models import Cell

logger = logging.getLogger(__name__)


class Dispatcher(Protocol):
    """Scheduling seam between the controller and the UI toolkit's event loop."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any: ...

    def cancel(self, token: Any) -> None: ...

    def run_in_background(
        self,
        work: Callable[[], Any],
        on_done: Callable[[Any], None],
        on_error: Callable[[Exception], None],
    ) -> None: ...


class Poller:
    def __init__(
        self,
        dispatcher: Dispatcher,
        fetch: Callable[[], List[Cell]],
        on_cells: Callable[[List[Cell]], None],
        on_error: Callable[[Exception], None],
        interval_ms: int = POLL_INTERVAL_MS,
    ) -> None:
        self.dispatcher = dispatcher
        self.fetch = fetch
        self.on_cells = on_cells
        self.on_error = on_error
        self.interval_ms = interval_ms
        self._active = False
        self._generation = 0
        self._timer: Optional[Any] = None
        # True while a worker is inside fetch(), whichever generation launched it
        self._in_flight = False
        self._idle_callbacks: List[Callable[[], None]] = []

    @property
    def active(self) -> bool:
        return self._active

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def start(self) -> None:
        if self._active:
            return
        self._active = True
        self._generation += 1
        logger.debug("Polling started (generation %d, every %d ms)", self._generation, self.interval_ms)
        self._tick()

    def stop(self) -> None:
        if not self._active:
            return
        self._active = False
        # Results of fetches launched by the old generation are dropped on arrival
        self._generation += 1
        if self._timer is not None:
            self.dispatcher.cancel(self._timer)
            self._timer = None
        logger.debug("Polling stopped")

    def when_idle(self, callback: Callable[[], None]) -> None:
        """Run callback now if no fetch is running, else right after the running one returns."""
        if self._in_flight:
            self._idle_callbacks.append(callback)
        else:
            callback()

    def _tick(self) -> None:
        if not self._active:
            return
        self._timer = self.dispatcher.call_later(self.interval_ms, self._tick)
        if self._in_flight:
            logger.debug("Previous fetch still running, skipping this tick")
            return
        self._launch()

    def _launch(self) -> None:
        generation = self._generation
        self._in_flight = True
        self.dispatcher.run_in_background(
            self.fetch,
            lambda cells: self._finished(generation, cells, None),
            lambda exc: self._finished(generation, None, exc),
        )

    def _finished(self, generation: int, cells: Optional[List[Cell]], error: Optional[Exception]) -> None:
        self._in_flight = False
        callbacks, self._idle_callbacks = self._idle_callbacks, []
        for callback in callbacks:
            callback()
        if generation != self._generation or not self._active:
            logger.debug("Discarding result of a stopped poll (generation %d)", generation)
            return
        if error is not None:
            self.on_error(error)
        else:
            self.on_cells(cells or [])
