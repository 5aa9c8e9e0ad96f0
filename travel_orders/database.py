"""SQLite-backed persistence for users, travel orders, and notifications."""
from __future__ import annotations

import sqlite3
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Callable, Optional

from passlib.context import CryptContext


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the application database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "travel_orders.sqlite3").resolve(strict=False)


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def serialize_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


def start_of_day(value: date) -> str:
    """Serialised timestamp for midnight UTC at the beginning of ``value``."""

    return serialize_datetime(datetime.combine(value, time.min, tzinfo=timezone.utc))


def end_of_day(value: date) -> str:
    """Serialised timestamp for the last representable instant of ``value``."""

    return serialize_datetime(datetime.combine(value, time.max, tzinfo=timezone.utc))


_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password must not be empty")
    return _pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return _pwd_context.verify(password, hashed)
    except ValueError:
        return False


class Database:
    """Simple wrapper around SQLite that owns the schema and connections.

    Every public operation of the repositories opens its own connection, so a
    single instance can be shared between concurrently running requests.
    """

    def __init__(self, path: Path, *, clock: Optional[Callable[[], datetime]] = None) -> None:
        _ensure_directory(path)
        self._path = path
        self._clock = clock or _current_timestamp

    @property
    def path(self) -> Path:
        return self._path

    def connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def now(self) -> datetime:
        return self._clock()

    def timestamp(self) -> str:
        return serialize_datetime(self._clock())

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self.connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS travel_orders (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    customer_name TEXT NOT NULL,
                    destiny TEXT NOT NULL,
                    start_date TEXT NOT NULL,
                    return_date TEXT NOT NULL,
                    status TEXT NOT NULL,
                    user_id INTEGER REFERENCES users(id) ON DELETE SET NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS user_notifications (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    message TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS access_tokens (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    name TEXT NOT NULL,
                    token_hash TEXT NOT NULL UNIQUE,
                    created_at TEXT NOT NULL,
                    last_used_at TEXT
                );

                CREATE INDEX IF NOT EXISTS idx_travel_orders_user_id ON travel_orders(user_id);
                CREATE INDEX IF NOT EXISTS idx_travel_orders_destiny ON travel_orders(destiny);
                CREATE INDEX IF NOT EXISTS idx_user_notifications_user_id ON user_notifications(user_id);
                CREATE INDEX IF NOT EXISTS idx_access_tokens_user_id ON access_tokens(user_id);
                """
            )


__all__ = [
    "Database",
    "end_of_day",
    "hash_password",
    "parse_datetime",
    "resolve_database_path",
    "serialize_datetime",
    "start_of_day",
    "verify_password",
]
