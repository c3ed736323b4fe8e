"""
Design (storage.py)
- Purpose: Persist connection settings and the "remember" flag to a small JSON key/value file.
- Inputs: Path (from get_settings_path()), SavedSettings for save, bool for the remember flag.
- Outputs: SavedSettings on load (all-empty when nothing is remembered).
- Side effects: Reads/writes file. Read and parse failures are logged and treated as "nothing saved";
               write failures are logged and ignored.
- Thread-safety: Call from main thread only (UI handlers).
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Dict

from .config import SAVE_ENABLED_KEY, SETTINGS_FILENAME, SETTINGS_KEY
from .errors import SettingsParseError
from .models import SavedSettings

logger = logging.getLogger(__name__)

_FIELDS = ("host", "user", "password", "database")


def get_settings_path() -> Path:
    """
    Resolve path for settings.json. Prefer the per-user config dir so it works when installed
    (e.g. Program Files) and survives reinstalls. Fallback to dir next to executable.
    """
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            base = Path(appdata) / "Cell Monitor"
            try:
                base.mkdir(parents=True, exist_ok=True)
                return base / SETTINGS_FILENAME
            except OSError:
                pass
    else:
        config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
        base = Path(config_home) / "cell-monitor"
        try:
            base.mkdir(parents=True, exist_ok=True)
            return base / SETTINGS_FILENAME
        except OSError:
            pass
    # Fallback: next to executable (or project root when running as script)
    if getattr(sys, "frozen", False) and hasattr(sys, "_MEIPASS"):
        base = Path(sys.executable).parent
    else:
        base = Path(__file__).resolve().parent.parent
    return base / SETTINGS_FILENAME


class KeyValueStore:
    """
    Design (KeyValueStore)
    - Purpose: String key -> string value store backed by one JSON object on disk.
    - State: the file itself; every call re-reads it so external edits are picked up.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as exc:
            logger.warning("Could not write settings file %s: %s", self.path, exc)

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


def decode_settings(blob: str) -> SavedSettings:
    """
    Parse a serialized settings object. Missing or non-string fields become ''.
    Raises SettingsParseError when the blob is not a JSON object.
    """
    try:
        data = json.loads(blob)
    except json.JSONDecodeError as exc:
        raise SettingsParseError(str(exc)) from exc
    if not isinstance(data, dict):
        raise SettingsParseError(f"expected an object, got {type(data).__name__}")
    values = {}
    for name in _FIELDS:
        value = data.get(name)
        values[name] = value if isinstance(value, str) else ""
    return SavedSettings(**values)


def encode_settings(settings: SavedSettings) -> str:
    return json.dumps({name: getattr(settings, name) for name in _FIELDS})


class SettingsStore:
    """
    Design (SettingsStore)
    - Purpose: Remembered connection form on top of a KeyValueStore.
    - Invariant: the settings blob exists only while the remember flag is "true".
    """

    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv

    @property
    def remember(self) -> bool:
        return self.kv.get(SAVE_ENABLED_KEY) == "true"

    def load(self) -> SavedSettings:
        """
        Purpose: Return the remembered form, or all-empty fields when nothing is remembered
                 or the blob is corrupt (corruption is logged, never raised).
        """
        if not self.remember:
            return SavedSettings()
        blob = self.kv.get(SETTINGS_KEY)
        if not blob:
            return SavedSettings()
        try:
            settings = decode_settings(blob)
        except SettingsParseError as exc:
            logger.warning("Saved settings are corrupt, ignoring them: %s", exc)
            return SavedSettings()
        logger.info("Settings loaded")
        return settings

    def save(self, settings: SavedSettings) -> None:
        """No-op unless the remember flag is on."""
        if not self.remember:
            return
        self.kv.set(SETTINGS_KEY, encode_settings(settings))
        logger.info("Settings saved")

    def set_remember(self, enabled: bool) -> None:
        """Persist the flag; turning it off deletes any remembered settings."""
        self.kv.set(SAVE_ENABLED_KEY, "true" if enabled else "false")
        if not enabled:
            self.kv.remove(SETTINGS_KEY)
            logger.info("Saved settings cleared")
