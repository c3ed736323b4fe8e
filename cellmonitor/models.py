"""
Design (models.py)
- Purpose: Define simple, typed data structures for domain entities (Cell, settings, connection config).
- Inputs: Field values.
- Outputs: Dataclass instances; parse_host() derives server/instance from raw host text.
- Side effects: None.
- Thread-safety: Frozen dataclasses; safe to hand between threads.
"""

from dataclasses import dataclass
from typing import Optional

from .config import (
    DEFAULT_ENCRYPT,
    DEFAULT_HOST,
    DEFAULT_TRUST_CERTIFICATE,
    DEFAULT_USER,
    INSTANCE_SEPARATOR,
)


@dataclass(frozen=True)
class Cell:
    """One monitored storage slot as read in a single poll."""
    number: int
    status: int


@dataclass(frozen=True)
class Stats:
    total: int
    free: int
    occupied: int


@dataclass(frozen=True)
class SavedSettings:
    """
    Design (SavedSettings)
    - Purpose: Mirror of the connect form, persisted only while "remember" is on.
    - Fields: host, user, password, database (plain strings, '' when missing).
    """
    host: str = ""
    user: str = ""
    password: str = ""
    database: str = ""


@dataclass(frozen=True)
class ConnectionConfig:
    server: str
    database: str
    user: str
    password: str
    instance_name: Optional[str] = None
    encrypt: bool = DEFAULT_ENCRYPT
    trust_certificate: bool = DEFAULT_TRUST_CERTIFICATE

    @property
    def server_address(self) -> str:
        if self.instance_name:
            return f"{self.server}{INSTANCE_SEPARATOR}{self.instance_name}"
        return self.server


def parse_host(raw_host: str) -> tuple[str, Optional[str]]:
    """
    Split 'SERVER\\INSTANCE' into (server, instance). Empty input means localhost.
    Anything past a second separator is ignored.
    """
    host = raw_host or DEFAULT_HOST
    parts = host.split(INSTANCE_SEPARATOR)
    server = parts[0]
    instance = parts[1] if len(parts) > 1 and parts[1] else None
    return server, instance


def build_config(raw_host: str, database: str, user: str, password: str) -> ConnectionConfig:
    """Turn the raw form fields into a ConnectionConfig, defaulting empty host/user."""
    server, instance = parse_host(raw_host)
    return ConnectionConfig(
        server=server,
        instance_name=instance,
        database=database,
        user=user or DEFAULT_USER,
        password=password,
    )
