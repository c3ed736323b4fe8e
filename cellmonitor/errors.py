"""
Design (errors.py)
- Purpose: Error kinds raised at the boundaries that can fail (connect, poll, settings).
- Outputs: Exception classes; str(exc) is the underlying driver/parser message.
"""


class CellMonitorError(Exception):
    """Base class for all errors raised by the cell monitor."""


class DbConnectionError(CellMonitorError):
    """Handshake, authentication or network failure while connecting."""


class AlreadyConnectedError(DbConnectionError):
    """A connect was attempted while a connection is still open."""


class QueryError(CellMonitorError):
    """The cell query failed during a poll."""


class SettingsParseError(CellMonitorError):
    """The persisted settings blob could not be decoded."""
