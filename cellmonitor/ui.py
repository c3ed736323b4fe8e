"""
Design (ui.py)
- Purpose: Build and manage the Tkinter UI (connection form, status bar, cell grid, logs panel).
- Inputs: MonitorSession (controller).
- Outputs: None (renders UI, forwards user actions to the session).
- Side effects: Creates windows; installs a logging handler that feeds the Logs panel.
- Thread-safety: UI code runs on main thread; worker threads reach it only through TkDispatcher/after().
"""

import logging
import threading
import tkinter as tk
from tkinter import ttk
from typing import Any, Callable, List

from .config import (
    APP_TITLE,
    CATEGORY_COLORS,
    GRID_COLUMNS,
    ICON_FILE,
    LOG_MAX_LINES,
    PLACEHOLDER_TEXT,
)
from .grid import Tile
from .models import SavedSettings, Stats
from .session import MonitorSession, ViewState
from .utils import get_icon_path, notify_desktop

logger = logging.getLogger(__name__)

BG = "#1e1e1e"
FIELD_BG = "#2b2b2b"
FG = "#f0f0f0"
OK_FG = "#7CFC00"
BAD_FG = "#FF6A6A"


class TkDispatcher:
    """Dispatcher over the Tk event loop: after() for timers, one daemon thread per background job."""

    def __init__(self, root: tk.Misc) -> None:
        self.root = root

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        return self.root.after(delay_ms, callback)

    def cancel(self, token: Any) -> None:
        self.root.after_cancel(token)

    def run_in_background(self, work, on_done, on_error) -> None:
        def runner():
            try:
                result = work()
            except Exception as exc:
                self._post(lambda e=exc: on_error(e))
            else:
                self._post(lambda: on_done(result))

        threading.Thread(target=runner, daemon=True).start()

    def _post(self, callback: Callable[[], None]) -> None:
        try:
            self.root.after(0, callback)
        except (RuntimeError, tk.TclError):
            logger.debug("Window closed, dropping background result")


class TkLogHandler(logging.Handler):
    """Forwards log records to the Logs panel on the Tk thread."""

    def __init__(self, ui: "AppUI") -> None:
        super().__init__()
        self.ui = ui

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record) + "\n"
        except Exception:
            self.handleError(record)
            return
        try:
            self.ui.root.after(0, lambda: self.ui._append_log(line))
        except (RuntimeError, tk.TclError):
            pass  # window already destroyed


class GridView(tk.Frame):
    """
    Design (GridView)
    - Purpose: Scrollable area of cell tiles, or a placeholder prompt while disconnected.
    - Policy: every show_tiles() destroys all tiles and builds new ones.
    """

    def __init__(self, master: tk.Misc) -> None:
        super().__init__(master, bg=BG)
        self.rowconfigure(0, weight=1)
        self.columnconfigure(0, weight=1)

        self.canvas = tk.Canvas(self, bg=BG, highlightthickness=0)
        self.canvas.grid(row=0, column=0, sticky="nsew")
        scrollbar = ttk.Scrollbar(self, orient=tk.VERTICAL, command=self.canvas.yview)
        scrollbar.grid(row=0, column=1, sticky="ns")
        self.canvas.configure(yscrollcommand=scrollbar.set)

        self.inner = tk.Frame(self.canvas, bg=BG)
        self.canvas.create_window((0, 0), window=self.inner, anchor="nw")
        self.inner.bind(
            "<Configure>",
            lambda _e: self.canvas.configure(scrollregion=self.canvas.bbox("all")),
        )
        self.show_placeholder()

    def _clear(self) -> None:
        for child in self.inner.winfo_children():
            child.destroy()

    def show_placeholder(self) -> None:
        self._clear()
        tk.Label(
            self.inner, text=PLACEHOLDER_TEXT, fg="gray", bg=BG, font=("Segoe UI", 11)
        ).grid(row=0, column=0, padx=20, pady=20)

    def show_tiles(self, tiles: List[Tile]) -> None:
        self._clear()
        for index, tile in enumerate(tiles):
            row, column = divmod(index, GRID_COLUMNS)
            color = CATEGORY_COLORS.get(tile.category, CATEGORY_COLORS["unknown"])
            frame = tk.Frame(self.inner, bg=color, width=96, height=64)
            frame.grid(row=row, column=column, padx=4, pady=4)
            frame.grid_propagate(False)
            frame.columnconfigure(0, weight=1)
            tk.Label(frame, text=str(tile.number), fg="white", bg=color,
                     font=("Segoe UI", 14, "bold")).grid(row=0, column=0, pady=(6, 0))
            tk.Label(frame, text=tile.label, fg="white", bg=color,
                     font=("Segoe UI", 8)).grid(row=1, column=0)


class AppUI:
    """
    Design (AppUI)
    - Purpose: Encapsulate all UI creation and behavior; implements the session's MonitorView.
    - Public attributes:
        enable_notifications (tk.BooleanVar): toggles system notifications
        show_logs (tk.BooleanVar): toggles visibility of the logs panel
    """

    def __init__(self, root: tk.Tk, session: MonitorSession):
        self.root = root
        self.session = session

        # UI state variables
        self.enable_notifications = tk.BooleanVar(value=True)
        self.show_logs = tk.BooleanVar(value=False)
        self.remember = tk.BooleanVar(value=False)
        self.host_var = tk.StringVar()
        self.database_var = tk.StringVar()
        self.user_var = tk.StringVar()
        self.password_var = tk.StringVar()

        # Window
        self.root.title(APP_TITLE)
        self.root.geometry("1200x800")
        icon = get_icon_path(ICON_FILE)
        if icon:
            self.root.iconbitmap(icon)
        self.root.rowconfigure(0, weight=1)
        self.root.columnconfigure(0, weight=1)
        self.root.configure(bg=BG)

        # Style
        style = ttk.Style(self.root)
        style.theme_use("default")
        style.configure("TNotebook", background=BG, borderwidth=0)
        style.configure("TNotebook.Tab", background=FIELD_BG, foreground=FG, padding=(12, 4))
        style.map("TNotebook.Tab", background=[("selected", "#444")])

        # Paned window: top = content, bottom = logs (when shown)
        self.paned = ttk.PanedWindow(self.root, orient=tk.VERTICAL)
        self.paned.grid(row=0, column=0, sticky="nsew")

        content_frame = tk.Frame(self.paned, bg=BG)
        content_frame.rowconfigure(1, weight=1)
        content_frame.columnconfigure(0, weight=1)
        self.paned.add(content_frame, weight=1)

        self.bottom_frame = tk.Frame(self.paned, bg=BG)
        self.logs_box = tk.Text(self.bottom_frame, height=6, bg="#1b1b1b", fg="#dddddd", wrap="none")
        self.logs_box.configure(state="disabled")
        self.paned.add(self.bottom_frame, weight=0)  # start collapsed; expand when Logs checked

        def _keep_sash_collapsed(_event=None):
            """When Logs is unchecked, keep sash at bottom so window can resize down."""
            if not self.show_logs.get():
                self.paned.update_idletasks()
                total = self.paned.winfo_height()
                if total > 0:
                    self.paned.sashpos(0, total)

        self.paned.bind("<Configure>", _keep_sash_collapsed)

        # Status bar
        self.status_frame = tk.Frame(content_frame, bg=BG)
        status_frame = self.status_frame
        status_frame.grid(row=0, column=0, sticky="ew", padx=10, pady=(10, 0))
        tk.Label(status_frame, text=APP_TITLE, fg="white", bg=BG,
                 font=("Segoe UI", 14, "bold")).pack(side=tk.LEFT)
        self.status_label = tk.Label(status_frame, text="", fg=BAD_FG, bg=BG, font=("Segoe UI", 10, "bold"))
        self.status_label.pack(side=tk.RIGHT)
        # Packed to the left of status_label while connected, visible from every tab
        self.disconnect_btn = ttk.Button(status_frame, text="Disconnect", command=self.on_disconnect)

        # Tabs
        self.notebook = ttk.Notebook(content_frame)
        self.notebook.grid(row=1, column=0, sticky="nsew", padx=10, pady=(5, 5))
        self.monitor_tab = tk.Frame(self.notebook, bg=BG)
        self.connection_tab = tk.Frame(self.notebook, bg=BG)
        self.notebook.add(self.monitor_tab, text="Monitor")
        self.notebook.add(self.connection_tab, text="Connection")
        self._build_monitor_tab()
        self._build_connection_tab()

        # Toggles
        button_frame = tk.Frame(content_frame, bg=BG)
        button_frame.grid(row=2, column=0, sticky="ew", padx=10, pady=(0, 10))
        tk.Checkbutton(
            button_frame,
            text="Enable Notifications",
            variable=self.enable_notifications,
            fg="white",
            bg=BG,
            selectcolor=FIELD_BG,
            activebackground=BG,
            activeforeground="white",
        ).pack(side=tk.LEFT, padx=5)
        tk.Checkbutton(
            button_frame,
            text="Show Logs",
            variable=self.show_logs,
            fg="white",
            bg=BG,
            selectcolor=FIELD_BG,
            command=self.toggle_logs,
        ).pack(side=tk.LEFT, padx=5)

        self._install_log_handler()

        # Pre-fill the form, then start listening for edits
        settings, remember = self.session.load_form()
        self.host_var.set(settings.host)
        self.database_var.set(settings.database)
        self.user_var.set(settings.user)
        self.password_var.set(settings.password)
        self.remember.set(remember)
        for var in (self.host_var, self.database_var, self.user_var, self.password_var):
            var.trace_add("write", lambda *_: self.session.edit_field())

        self.session.attach(self)
        self.notebook.select(self.connection_tab)

    # ---------- layout ----------

    def _build_monitor_tab(self) -> None:
        self.monitor_tab.rowconfigure(1, weight=1)
        self.monitor_tab.columnconfigure(0, weight=1)

        self.stats_frame = tk.Frame(self.monitor_tab, bg=BG)
        self.stats_frame.grid(row=0, column=0, sticky="ew", padx=5, pady=5)
        self.total_label = self._stat(self.stats_frame, "Total")
        self.free_label = self._stat(self.stats_frame, "Free")
        self.occupied_label = self._stat(self.stats_frame, "Occupied")

        self.grid_view = GridView(self.monitor_tab)
        self.grid_view.grid(row=1, column=0, sticky="nsew", padx=5, pady=5)

    def _stat(self, parent: tk.Misc, title: str) -> tk.Label:
        box = tk.Frame(parent, bg=FIELD_BG)
        box.pack(side=tk.LEFT, padx=5)
        tk.Label(box, text=title, fg="gray", bg=FIELD_BG, font=("Segoe UI", 9)).pack(padx=12, pady=(4, 0))
        value = tk.Label(box, text="0", fg="white", bg=FIELD_BG, font=("Segoe UI", 16, "bold"))
        value.pack(padx=12, pady=(0, 4))
        return value

    def _build_connection_tab(self) -> None:
        form = tk.Frame(self.connection_tab, bg=BG)
        form.pack(anchor="nw", padx=10, pady=10)

        fields = (
            ("Host (server\\instance)", self.host_var, ""),
            ("Database", self.database_var, ""),
            ("User", self.user_var, ""),
            ("Password", self.password_var, "*"),
        )
        for row, (label, var, show) in enumerate(fields):
            tk.Label(form, text=label, fg="white", bg=BG).grid(row=row, column=0, sticky="e", padx=5, pady=5)
            tk.Entry(form, textvariable=var, show=show, width=32).grid(row=row, column=1, padx=5, pady=5)

        tk.Checkbutton(
            form,
            text="Remember settings",
            variable=self.remember,
            fg="white",
            bg=BG,
            selectcolor=FIELD_BG,
            activebackground=BG,
            activeforeground="white",
            command=self.on_remember_toggled,
        ).grid(row=4, column=1, sticky="w", padx=5, pady=5)

        buttons = tk.Frame(form, bg=BG)
        buttons.grid(row=5, column=0, columnspan=2, pady=10)
        self.connect_btn = ttk.Button(buttons, text="Connect", command=self.on_connect)
        self.connect_btn.pack(side=tk.LEFT, padx=5)

        self.error_label = tk.Label(form, text="", fg=BAD_FG, bg=BG, wraplength=420, justify=tk.LEFT)
        self.error_label.grid(row=6, column=0, columnspan=2, sticky="w", padx=5)
        self.error_label.grid_remove()

    def _install_log_handler(self) -> None:
        handler = TkLogHandler(self)
        handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s %(message)s", "%Y-%m-%d %H:%M:%S"))
        logging.getLogger("cellmonitor").addHandler(handler)
        self.log_handler = handler

    # ---------- user actions ----------

    def _form(self) -> SavedSettings:
        return SavedSettings(
            host=self.host_var.get(),
            user=self.user_var.get(),
            password=self.password_var.get(),
            database=self.database_var.get(),
        )

    def on_connect(self) -> None:
        self.session.connect(self._form())

    def on_disconnect(self) -> None:
        self.session.disconnect()

    def on_remember_toggled(self) -> None:
        self.session.set_remember(self.remember.get(), self._form())

    def on_close(self) -> None:
        self.session.shutdown()
        logging.getLogger("cellmonitor").removeHandler(self.log_handler)
        self.root.destroy()

    def notify(self, title: str, message: str) -> None:
        if self.enable_notifications.get():
            notify_desktop(title, message)

    def toggle_logs(self) -> None:
        """Show logs in bottom pane. Resize pane to show/hide."""
        if self.show_logs.get():
            self.paned.pane(self.bottom_frame, weight=1)
            self.logs_box.pack(fill=tk.BOTH, expand=True, padx=10, pady=(0, 6))
            self.paned.update_idletasks()
            total = self.paned.winfo_height()
            if total > 0:
                self.paned.sashpos(0, int(total * 0.8))
        else:
            self.logs_box.pack_forget()
            self.paned.pane(self.bottom_frame, weight=0)
            self.paned.update_idletasks()
            total = self.paned.winfo_height()
            if total > 0:
                self.paned.sashpos(0, total)

    # ---------- MonitorView ----------

    def show_state(self, state: ViewState) -> None:
        self.set_status(state.value, ok=state is ViewState.CONNECTED)
        if state is ViewState.CONNECTED:
            self.connect_btn.pack_forget()
            self.disconnect_btn.pack(side=tk.RIGHT, padx=(0, 10))
            self.stats_frame.grid()
        elif state is ViewState.CONNECTING:
            self.connect_btn.configure(state="disabled", text="Connecting...")
        else:
            self.disconnect_btn.pack_forget()
            self.connect_btn.configure(state="normal", text="Connect")
            self.connect_btn.pack(side=tk.LEFT, padx=5)
            self.stats_frame.grid_remove()
            self.grid_view.show_placeholder()

    def set_status(self, text: str, ok: bool) -> None:
        self.status_label.configure(text=text, fg=OK_FG if ok else BAD_FG)

    def show_error(self, message: str) -> None:
        self.error_label.configure(text=message)
        self.error_label.grid()

    def hide_error(self) -> None:
        self.error_label.grid_remove()

    def show_cells(self, tiles: List[Tile], stats: Stats) -> None:
        self.grid_view.show_tiles(tiles)
        self.total_label.configure(text=str(stats.total))
        self.free_label.configure(text=str(stats.free))
        self.occupied_label.configure(text=str(stats.occupied))

    def select_monitor_tab(self) -> None:
        self.notebook.select(self.monitor_tab)

    # ---------- internal helper for Logs ----------

    def _append_log(self, text: str) -> None:
        """
        Purpose: Append one line to the Logs panel and trim to LOG_MAX_LINES.
        Thread-safety: Main thread only (called via after()).
        """
        self.logs_box.configure(state="normal")
        self.logs_box.insert("end", text)
        self.logs_box.see("end")
        total_lines = int(self.logs_box.index("end-1c").split(".")[0])
        if total_lines > LOG_MAX_LINES:
            remove = total_lines - LOG_MAX_LINES
            self.logs_box.delete("1.0", f"{remove + 1}.0")
        self.logs_box.configure(state="disabled")
