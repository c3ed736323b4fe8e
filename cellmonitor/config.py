"""
Design (config.py)
- Purpose: Centralize constants and configuration.
- Inputs: A few optional environment overrides (ODBC driver, transport security).
- Outputs: Constants (table/column names, status codes, intervals, colors, file names).
- Side effects: Reads os.environ once at import.
- Thread-safety: N/A (read-only constants).
"""

import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


APP_TITLE = "Cell Monitor"

# Source table; rows with StatusId == STATUS_INACTIVE are not real cells
TABLE_NAME = "dbo.tb_Cells"
NUMBER_COLUMN = "Number"
STATUS_COLUMN = "StatusId"

STATUS_INACTIVE = 0
STATUS_FREE = 180
STATUS_UNAVAILABLE = 190
STATUS_OCCUPIED = 200
STATUS_BLOCKED = 210

POLL_INTERVAL_MS = 2000

# Connection defaults applied to empty form fields
DEFAULT_HOST = "localhost"
DEFAULT_USER = "sa"
INSTANCE_SEPARATOR = "\\"

ODBC_DRIVER = os.environ.get("CELLMONITOR_ODBC_DRIVER", "ODBC Driver 17 for SQL Server")
DEFAULT_ENCRYPT = _env_flag("CELLMONITOR_ENCRYPT", False)
DEFAULT_TRUST_CERTIFICATE = _env_flag("CELLMONITOR_TRUST_CERT", True)
CONNECT_TIMEOUT_SEC = 15

# Persistence: key/value file and its two keys
SETTINGS_FILENAME = "settings.json"
SETTINGS_KEY = "cellMonitorSettings"
SAVE_ENABLED_KEY = "cellMonitorSaveEnabled"

# maximum number of log lines kept in the Logs panel (oldest trimmed)
LOG_MAX_LINES = 1000

GRID_COLUMNS = 10
PLACEHOLDER_TEXT = "Connect to the database to view cells"

# Tile background per category
CATEGORY_COLORS = {
    "free": "#2e7d32",
    "occupied": "#c62828",
    "unavailable": "#616161",
    "unknown": "#ef6c00",
}

ICON_FILE = "logo.ico"  # Expected at cellmonitor/icons/logo.ico (added to the exe with --add-data)
