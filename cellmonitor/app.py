"""Application entry point: wires settings, session and the Tk window together."""

import logging
import tkinter as tk

from .session import MonitorSession
from .storage import KeyValueStore, SettingsStore, get_settings_path
from .ui import AppUI, TkDispatcher


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    root = tk.Tk()
    settings = SettingsStore(KeyValueStore(get_settings_path()))
    session = MonitorSession(TkDispatcher(root), settings)
    app = AppUI(root, session)
    session.notify = app.notify
    root.protocol("WM_DELETE_WINDOW", app.on_close)
    root.mainloop()
