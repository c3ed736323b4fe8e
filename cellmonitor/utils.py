"""
Design (utils.py)
- Purpose: Reusable helpers: icon path detection (PyInstaller) and desktop notifications.
- Inputs: Icon file name; notification title/message.
- Outputs: Icon path (or None when the file is absent); None for notifications.
- Side effects: notify_desktop() pops an OS notification through plyer.
- Thread-safety: Stateless; safe to call from any thread.
"""

import logging
import os
import sys
from typing import Optional

from plyer import notification

logger = logging.getLogger(__name__)


def get_icon_path(filename: str) -> Optional[str]:
    """
    Purpose: Resolve icon path for both dev (script) and PyInstaller (frozen) runs.
    Inputs: filename (e.g., "logo.ico")
    Outputs: Path usable with Tk.iconbitmap, or None if the icon is not shipped.
    """
    if getattr(sys, "frozen", False) and hasattr(sys, "_MEIPASS"):
        path = os.path.join(sys._MEIPASS, filename)  # type: ignore[attr-defined]
    else:
        # In development, icon is expected at cellmonitor/icons/logo.ico
        here = os.path.dirname(os.path.abspath(__file__))
        path = os.path.join(here, "icons", filename)
    return path if os.path.exists(path) else None


def notify_desktop(title: str, message: str) -> None:
    """
    Purpose: Show an OS notification. Missing notification backends are logged, not raised.
    """
    try:
        notification.notify(title=title, message=message, timeout=5)
    except Exception as exc:
        logger.warning("Desktop notification unavailable: %s", exc)
