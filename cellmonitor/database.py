"""
Design (database.py)
- Purpose: Own the single database connection behind a narrow interface (execute, close).
- Inputs: ConnectionConfig; a connect factory (pyodbc by default, fakes in tests).
- Outputs: Database handles; raw row tuples from execute().
- Side effects: Opens/closes network sessions to SQL Server.
- Thread-safety: Only ConnectionManager.open() runs off the UI thread. The handle is borrowed by one
                 background fetch at a time and is closed only once that fetch has returned.
"""

import logging
from typing import Any, Callable, List, Optional, Protocol, Tuple, Type

from .config import CONNECT_TIMEOUT_SEC, ODBC_DRIVER
from .errors import AlreadyConnectedError, DbConnectionError, QueryError
from .models import ConnectionConfig

logger = logging.getLogger(__name__)

Row = Tuple[Any, ...]


class Database(Protocol):
    def execute(self, query: str) -> List[Row]: ...

    def close(self) -> None: ...


ConnectFactory = Callable[[ConnectionConfig], Database]


def _quote(value: str) -> str:
    # ODBC values containing separators must be wrapped in braces, with '}' doubled
    if any(ch in value for ch in ";{}") or value != value.strip():
        return "{" + value.replace("}", "}}") + "}"
    return value


def build_connection_string(config: ConnectionConfig, driver: str = ODBC_DRIVER) -> str:
    parts = [
        f"DRIVER={{{driver}}}",
        f"SERVER={_quote(config.server_address)}",
        f"DATABASE={_quote(config.database)}",
        f"UID={_quote(config.user)}",
        f"PWD={_quote(config.password)}",
        f"Encrypt={'yes' if config.encrypt else 'no'}",
        f"TrustServerCertificate={'yes' if config.trust_certificate else 'no'}",
    ]
    return ";".join(parts) + ";"


class PyodbcDatabase:
    """Database adapter over a pyodbc connection."""

    def __init__(self, connection: Any, error_type: Type[BaseException]) -> None:
        self._conn = connection
        self._error_type = error_type

    def execute(self, query: str) -> List[Row]:
        try:
            cursor = self._conn.cursor()
            try:
                cursor.execute(query)
                return [tuple(row) for row in cursor.fetchall()]
            finally:
                cursor.close()
        except self._error_type as exc:
            raise QueryError(str(exc)) from exc

    def close(self) -> None:
        self._conn.close()


def connect_pyodbc(config: ConnectionConfig) -> Database:
    """Open a SQL Server session through pyodbc. Raises DbConnectionError on any driver failure."""
    import pyodbc  # needs the unixODBC/ODBC driver manager at import time

    try:
        conn = pyodbc.connect(build_connection_string(config), timeout=CONNECT_TIMEOUT_SEC, autocommit=True)
    except pyodbc.Error as exc:
        raise DbConnectionError(str(exc)) from exc
    return PyodbcDatabase(conn, pyodbc.Error)


def close_quietly(handle: Database) -> None:
    """Close a handle, logging (not raising) driver errors."""
    try:
        handle.close()
    except Exception as exc:
        logger.warning("Error while closing connection: %s", exc)


class ConnectionManager:
    """
    Design (ConnectionManager)
    - State:
        _handle: the one open Database, or None
        _connect_factory: opens a Database from a ConnectionConfig
    - Invariant: at most one live handle; adopting a second one is rejected.
    - Threading: open() touches no state and may run on a worker thread. adopt(), release()
                 and disconnect() mutate _handle and belong to the UI thread.
    """

    def __init__(self, connect_factory: ConnectFactory = connect_pyodbc) -> None:
        self._connect_factory = connect_factory
        self._handle: Optional[Database] = None

    @property
    def handle(self) -> Optional[Database]:
        return self._handle

    @property
    def is_connected(self) -> bool:
        return self._handle is not None

    def open(self, config: ConnectionConfig) -> Database:
        """
        Purpose: Run the handshake for config and return the new handle without keeping it.
        Raises: DbConnectionError on handshake failure.
        """
        logger.info(
            "Connecting to server=%s instance=%s database=%s user=%s",
            config.server, config.instance_name, config.database, config.user,
        )
        try:
            handle = self._connect_factory(config)
        except DbConnectionError:
            raise
        except Exception as exc:
            raise DbConnectionError(str(exc)) from exc
        logger.info("Connected to %s", config.server_address)
        return handle

    def adopt(self, handle: Database) -> None:
        """Make handle the current one. Raises AlreadyConnectedError if one is already held."""
        if self._handle is not None:
            raise AlreadyConnectedError("Already connected; disconnect first")
        self._handle = handle

    def connect(self, config: ConnectionConfig) -> Database:
        """open() followed by adopt(), for callers already on the owning thread."""
        if self._handle is not None:
            raise AlreadyConnectedError("Already connected; disconnect first")
        handle = self.open(config)
        self.adopt(handle)
        return handle

    def release(self) -> Optional[Database]:
        """Forget the current handle and hand it to the caller, who must close it."""
        handle, self._handle = self._handle, None
        return handle

    def disconnect(self) -> None:
        """Close and forget the handle. Safe to call when not connected."""
        handle = self.release()
        if handle is None:
            return
        close_quietly(handle)
        logger.info("Disconnected")
