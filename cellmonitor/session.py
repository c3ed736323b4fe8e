"""
Design (session.py)
- Purpose: The one controller object for a monitoring session. Owns the ConnectionManager, the Poller
           and the SettingsStore, and drives a view through the Disconnected/Connecting/Connected states.
- Inputs: Form values and button events from the UI; connect/fetch completions from the Dispatcher.
- Outputs: Calls on the attached MonitorView (status, error, tiles, stats).
- Side effects: Opens/closes the database connection; persists settings; desktop notifications.
- Thread-safety: UI thread only. Blocking work goes through Dispatcher.run_in_background.
"""

import enum
import logging
from typing import Callable, List, Optional, Protocol, Tuple

from .config import APP_TITLE, POLL_INTERVAL_MS
from .database import ConnectionManager, Database, close_quietly
from .errors import AlreadyConnectedError, QueryError
from .fetcher import fetch_cells
from .grid import Tile, render
from .models import Cell, SavedSettings, Stats, build_config
from .monitor import Dispatcher, Poller
from .stats import aggregate
from .storage import SettingsStore

logger = logging.getLogger(__name__)


class ViewState(enum.Enum):
    DISCONNECTED = "Disconnected"
    CONNECTING = "Connecting..."
    CONNECTED = "Connected"


class MonitorView(Protocol):
    def show_state(self, state: ViewState) -> None: ...

    def set_status(self, text: str, ok: bool) -> None: ...

    def show_error(self, message: str) -> None: ...

    def hide_error(self) -> None: ...

    def show_cells(self, tiles: List[Tile], stats: Stats) -> None: ...

    def select_monitor_tab(self) -> None: ...


class MonitorSession:
    """
    Design (MonitorSession)
    - State:
        state: ViewState shown by the view
        _attempt: id of the latest connect attempt (stale completions are ignored)
        _healthy: False after a failed poll until the next successful one
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        settings: SettingsStore,
        manager: Optional[ConnectionManager] = None,
        notify: Optional[Callable[[str, str], None]] = None,
        interval_ms: int = POLL_INTERVAL_MS,
    ) -> None:
        self.dispatcher = dispatcher
        self.settings = settings
        self.manager = manager or ConnectionManager()
        self.notify = notify
        self.poller = Poller(dispatcher, self._fetch, self._on_cells, self._on_poll_error, interval_ms)
        self.view: Optional[MonitorView] = None
        self.state = ViewState.DISCONNECTED
        self._attempt = 0
        self._healthy = True

    def attach(self, view: MonitorView) -> None:
        self.view = view
        view.show_state(self.state)

    # ---------- form & settings ----------

    def load_form(self) -> Tuple[SavedSettings, bool]:
        """Remembered form values and the remember flag, for pre-filling the UI."""
        return self.settings.load(), self.settings.remember

    def set_remember(self, enabled: bool, form: SavedSettings) -> None:
        self.settings.set_remember(enabled)
        if enabled:
            self.settings.save(form)

    def edit_field(self) -> None:
        """Any credential edit clears a previously shown error."""
        if self.view is not None:
            self.view.hide_error()

    # ---------- connect / disconnect ----------

    def connect(self, form: SavedSettings) -> None:
        """
        Purpose: Start a connect attempt with the form values. Completion arrives on the UI thread.
        Side effects: View goes to CONNECTING; on success polling starts, on failure the error is shown.
        """
        if self.state is not ViewState.DISCONNECTED or self.manager.is_connected:
            self._show_error("Already connected; disconnect first")
            return
        if self.view is not None:
            self.view.hide_error()
        self._set_state(ViewState.CONNECTING)
        self._attempt += 1
        attempt = self._attempt
        config = build_config(form.host, form.database, form.user, form.password)
        # Only the handshake runs on the worker; the handle is adopted on the UI thread
        self.dispatcher.run_in_background(
            lambda: self.manager.open(config),
            lambda handle: self._connected(attempt, form, handle),
            lambda exc: self._connect_failed(attempt, exc),
        )

    def _connected(self, attempt: int, form: SavedSettings, handle: Database) -> None:
        if attempt != self._attempt or self.state is not ViewState.CONNECTING:
            # Disconnected or shut down while the handshake was running
            logger.info("Closing connection from an abandoned connect attempt")
            close_quietly(handle)
            return
        try:
            self.manager.adopt(handle)
        except AlreadyConnectedError as exc:
            close_quietly(handle)
            self._connect_failed(attempt, exc)
            return
        self.settings.save(form)
        self._healthy = True
        self._set_state(ViewState.CONNECTED)
        if self.view is not None:
            self.view.select_monitor_tab()
        self.poller.start()

    def _connect_failed(self, attempt: int, exc: Exception) -> None:
        if attempt != self._attempt or self.state is not ViewState.CONNECTING:
            return
        logger.error("Connection failed: %s", exc)
        self._set_state(ViewState.DISCONNECTED)
        if self.view is not None:
            self.view.set_status("Connection failed", ok=False)
        self._show_error(str(exc))

    def disconnect(self) -> None:
        """
        Always succeeds: stop polling, drop the handle, reset the view.
        A fetch still running on the handle keeps it open until that fetch returns.
        """
        self.poller.stop()
        handle = self.manager.release()
        if handle is not None:
            self.poller.when_idle(lambda: self._close(handle))
        if self.view is not None:
            self.view.hide_error()
        self._set_state(ViewState.DISCONNECTED)

    def _close(self, handle: Database) -> None:
        close_quietly(handle)
        logger.info("Disconnected")

    def shutdown(self) -> None:
        self.disconnect()

    # ---------- polling ----------

    def _fetch(self) -> List[Cell]:
        handle = self.manager.handle
        if handle is None:
            raise QueryError("Not connected")
        return fetch_cells(handle)

    def _on_cells(self, cells: List[Cell]) -> None:
        # A disconnect may have landed between the fetch starting and finishing
        if self.state is not ViewState.CONNECTED:
            return
        if self.view is not None:
            self.view.show_cells(render(cells), aggregate(cells))
        if not self._healthy:
            self._healthy = True
            logger.info("Polling restored")
            if self.view is not None:
                self.view.set_status(ViewState.CONNECTED.value, ok=True)
            self._notify("Polling restored")

    def _on_poll_error(self, exc: Exception) -> None:
        if self.state is not ViewState.CONNECTED:
            return
        logger.warning("Failed to load cells: %s", exc)
        if self.view is not None:
            self.view.set_status(f"Error: {exc}", ok=False)
        if self._healthy:
            self._healthy = False
            self._notify(f"Connection problem: {exc}")

    # ---------- helpers ----------

    def _set_state(self, state: ViewState) -> None:
        self.state = state
        if self.view is not None:
            self.view.show_state(state)

    def _show_error(self, message: str) -> None:
        if self.view is not None:
            self.view.show_error(message)

    def _notify(self, message: str) -> None:
        if self.notify is not None:
            self.notify(APP_TITLE, message)
