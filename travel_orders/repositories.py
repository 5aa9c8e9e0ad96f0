"""SQLite implementations of the repository interfaces."""
from __future__ import annotations

import hashlib
import hmac
import secrets
import sqlite3
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from .database import (
    Database,
    end_of_day,
    hash_password,
    parse_datetime,
    start_of_day,
    verify_password,
)
from .errors import NotFound
from .models import TravelOrder, User, UserNotification

TOKEN_PREFIX = "tvo_"

# SQLite INTEGER is a signed 64-bit value.
MAX_ROW_ID = 2**63 - 1


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _storable_id(record_id: int) -> bool:
    return -MAX_ROW_ID - 1 <= record_id <= MAX_ROW_ID


def _serialize_value(value: object) -> object:
    if isinstance(value, date):
        return value.isoformat()
    return value


def _build_assignments(
    fields: Mapping[str, Any], allowed: Mapping[str, str]
) -> tuple[List[str], List[object]]:
    updates: List[str] = []
    values: List[object] = []
    for key, column in allowed.items():
        if key not in fields or fields[key] is None:
            continue
        updates.append(f"{column} = ?")
        values.append(_serialize_value(fields[key]))
    return updates, values


class SQLiteTravelOrderRepository:
    """Travel order storage backed by the ``travel_orders`` table."""

    _columns = {
        "customer_name": "customer_name",
        "destiny": "destiny",
        "start_date": "start_date",
        "return_date": "return_date",
        "status": "status",
        "user_id": "user_id",
    }

    def __init__(self, database: Database) -> None:
        self._db = database

    def list(self) -> List[TravelOrder]:
        with self._db.connect() as conn:
            rows = conn.execute("SELECT * FROM travel_orders ORDER BY id").fetchall()
        return [self._row_to_order(row) for row in rows]

    def create(self, fields: Mapping[str, Any]) -> TravelOrder:
        timestamp = self._db.timestamp()
        with self._db.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO travel_orders (
                    customer_name, destiny, start_date, return_date, status, user_id,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    fields["customer_name"],
                    fields["destiny"],
                    _serialize_value(fields["start_date"]),
                    _serialize_value(fields["return_date"]),
                    fields["status"],
                    fields.get("user_id"),
                    timestamp,
                    timestamp,
                ),
            )
            order_id = cursor.lastrowid
        return self.get(order_id)

    def get(self, order_id: int) -> TravelOrder:
        if not _storable_id(order_id):
            raise NotFound("Travel order not found")
        with self._db.connect() as conn:
            row = conn.execute("SELECT * FROM travel_orders WHERE id = ?", (order_id,)).fetchone()
        if row is None:
            raise NotFound("Travel order not found")
        return self._row_to_order(row)

    def update(self, order_id: int, fields: Mapping[str, Any]) -> TravelOrder:
        if not _storable_id(order_id):
            raise NotFound("Travel order not found")
        updates, values = _build_assignments(fields, self._columns)
        if not updates:
            return self.get(order_id)

        updates.append("updated_at = ?")
        values.extend([self._db.timestamp(), order_id])
        query = f"UPDATE travel_orders SET {', '.join(updates)} WHERE id = ?"

        with self._db.connect() as conn:
            cursor = conn.execute(query, values)
            if cursor.rowcount == 0:
                raise NotFound("Travel order not found")
        return self.get(order_id)

    def delete(self, order_id: int) -> None:
        if not _storable_id(order_id):
            raise NotFound("Travel order not found")
        with self._db.connect() as conn:
            cursor = conn.execute("DELETE FROM travel_orders WHERE id = ?", (order_id,))
            if cursor.rowcount == 0:
                raise NotFound("Travel order not found")

    def by_destination_and_date_range(
        self,
        destination: Optional[str],
        start_date: Optional[date],
        end_date: Optional[date],
    ) -> List[TravelOrder]:
        clauses: List[str] = []
        values: List[object] = []
        if destination:
            clauses.append("destiny = ?")
            values.append(destination)
        if start_date is not None and end_date is not None:
            clauses.append("created_at BETWEEN ? AND ?")
            values.extend([start_of_day(start_date), end_of_day(end_date)])

        query = "SELECT * FROM travel_orders"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY id"

        with self._db.connect() as conn:
            rows = conn.execute(query, values).fetchall()
        return [self._row_to_order(row) for row in rows]

    def by_user(self, user_id: int) -> List[TravelOrder]:
        if not _storable_id(user_id):
            return []
        with self._db.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM travel_orders WHERE user_id = ? ORDER BY id",
                (user_id,),
            ).fetchall()
        return [self._row_to_order(row) for row in rows]

    def _row_to_order(self, row: sqlite3.Row) -> TravelOrder:
        return TravelOrder(
            id=int(row["id"]),
            customer_name=str(row["customer_name"]),
            destiny=str(row["destiny"]),
            start_date=date.fromisoformat(str(row["start_date"])),
            return_date=date.fromisoformat(str(row["return_date"])),
            status=str(row["status"]),
            user_id=int(row["user_id"]) if row["user_id"] is not None else None,
            created_at=parse_datetime(str(row["created_at"])),
            updated_at=parse_datetime(str(row["updated_at"])),
        )


class SQLiteUserRepository:
    """User accounts. Passwords are hashed on every write and never read back."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def list(self) -> List[User]:
        with self._db.connect() as conn:
            rows = conn.execute("SELECT * FROM users ORDER BY id").fetchall()
        return [self._row_to_user(row) for row in rows]

    def create(self, fields: Mapping[str, Any]) -> User:
        name = str(fields["name"]).strip()
        if not name:
            raise ValueError("Name must not be empty")
        email = _normalize_email(str(fields["email"]))
        password_hash = hash_password(str(fields["password"]))
        timestamp = self._db.timestamp()

        with self._db.connect() as conn:
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO users (name, email, password_hash, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (name, email, password_hash, timestamp, timestamp),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError("A user with that email already exists") from exc
            user_id = cursor.lastrowid
        return self.get(user_id)

    def get(self, user_id: int) -> User:
        if not _storable_id(user_id):
            raise NotFound("User not found")
        with self._db.connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            raise NotFound("User not found")
        return self._row_to_user(row)

    def get_by_email(self, email: str) -> Optional[User]:
        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ?",
                (_normalize_email(email),),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def update(self, user_id: int, fields: Mapping[str, Any]) -> User:
        if not _storable_id(user_id):
            raise NotFound("User not found")
        changes: Dict[str, object] = {}
        if fields.get("name") is not None:
            changes["name"] = str(fields["name"]).strip()
        if fields.get("email") is not None:
            changes["email"] = _normalize_email(str(fields["email"]))
        if fields.get("password") is not None:
            changes["password_hash"] = hash_password(str(fields["password"]))
        if not changes:
            return self.get(user_id)

        updates, values = _build_assignments(changes, {column: column for column in changes})
        updates.append("updated_at = ?")
        values.extend([self._db.timestamp(), user_id])
        query = f"UPDATE users SET {', '.join(updates)} WHERE id = ?"

        with self._db.connect() as conn:
            try:
                cursor = conn.execute(query, values)
            except sqlite3.IntegrityError as exc:
                raise ValueError("A user with that email already exists") from exc
            if cursor.rowcount == 0:
                raise NotFound("User not found")
        return self.get(user_id)

    def delete(self, user_id: int) -> None:
        if not _storable_id(user_id):
            raise NotFound("User not found")
        with self._db.connect() as conn:
            cursor = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            if cursor.rowcount == 0:
                raise NotFound("User not found")

    def exists(self, user_id: int) -> bool:
        if not _storable_id(user_id):
            return False
        with self._db.connect() as conn:
            row = conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone()
        return row is not None

    def email_taken(self, email: str, *, exclude_id: Optional[int] = None) -> bool:
        query = "SELECT id FROM users WHERE email = ?"
        values: List[object] = [_normalize_email(email)]
        if exclude_id is not None and _storable_id(exclude_id):
            query += " AND id != ?"
            values.append(exclude_id)
        with self._db.connect() as conn:
            row = conn.execute(query, values).fetchone()
        return row is not None

    def name_taken(self, name: str, *, exclude_id: Optional[int] = None) -> bool:
        query = "SELECT id FROM users WHERE name = ?"
        values: List[object] = [name.strip()]
        if exclude_id is not None and _storable_id(exclude_id):
            query += " AND id != ?"
            values.append(exclude_id)
        with self._db.connect() as conn:
            row = conn.execute(query, values).fetchone()
        return row is not None

    def verify_password(self, user_id: int, password: str) -> bool:
        """Return ``True`` if the supplied password matches the stored hash."""

        if not _storable_id(user_id):
            return False
        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT password_hash FROM users WHERE id = ?",
                (user_id,),
            ).fetchone()

        if row is None:
            return False
        return verify_password(password, str(row["password_hash"] or ""))

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=int(row["id"]),
            name=str(row["name"]),
            email=str(row["email"]),
            created_at=parse_datetime(str(row["created_at"])),
            updated_at=parse_datetime(str(row["updated_at"])),
        )


class SQLiteNotificationRepository:
    def __init__(self, database: Database) -> None:
        self._db = database

    def list(self) -> List[UserNotification]:
        with self._db.connect() as conn:
            rows = conn.execute("SELECT * FROM user_notifications ORDER BY id").fetchall()
        return [self._row_to_notification(row) for row in rows]

    def create(self, fields: Mapping[str, Any]) -> UserNotification:
        timestamp = self._db.timestamp()
        with self._db.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO user_notifications (user_id, message, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                """,
                (int(fields["user_id"]), str(fields["message"]), timestamp, timestamp),
            )
            notification_id = cursor.lastrowid
        return self.get(notification_id)

    def get(self, notification_id: int) -> UserNotification:
        if not _storable_id(notification_id):
            raise NotFound("Notification not found")
        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM user_notifications WHERE id = ?",
                (notification_id,),
            ).fetchone()
        if row is None:
            raise NotFound("Notification not found")
        return self._row_to_notification(row)

    def delete(self, notification_id: int) -> None:
        if not _storable_id(notification_id):
            raise NotFound("Notification not found")
        with self._db.connect() as conn:
            cursor = conn.execute("DELETE FROM user_notifications WHERE id = ?", (notification_id,))
            if cursor.rowcount == 0:
                raise NotFound("Notification not found")

    def by_user(self, user_id: int) -> List[UserNotification]:
        if not _storable_id(user_id):
            return []
        with self._db.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM user_notifications WHERE user_id = ? ORDER BY id",
                (user_id,),
            ).fetchall()
        return [self._row_to_notification(row) for row in rows]

    def _row_to_notification(self, row: sqlite3.Row) -> UserNotification:
        return UserNotification(
            id=int(row["id"]),
            user_id=int(row["user_id"]),
            message=str(row["message"]),
            created_at=parse_datetime(str(row["created_at"])),
            updated_at=parse_datetime(str(row["updated_at"])),
        )


def _generate_token() -> str:
    return TOKEN_PREFIX + secrets.token_urlsafe(32)


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class SQLiteAccessTokenRepository:
    """Opaque bearer tokens stored as SHA-256 digests."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def issue(self, user_id: int, name: str) -> str:
        cleaned = name.strip()
        if not cleaned:
            raise ValueError("Token name must not be empty")

        token = _generate_token()
        with self._db.connect() as conn:
            conn.execute(
                """
                INSERT INTO access_tokens (user_id, name, token_hash, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (user_id, cleaned, _hash_token(token), self._db.timestamp()),
            )
        return token

    def resolve(self, token: str) -> Optional[User]:
        if not token.startswith(TOKEN_PREFIX):
            return None

        calculated = _hash_token(token)
        with self._db.connect() as conn:
            row = conn.execute(
                """
                SELECT t.id AS token_id, t.token_hash, u.*
                  FROM access_tokens t
                  JOIN users u ON u.id = t.user_id
                 WHERE t.token_hash = ?
                """,
                (calculated,),
            ).fetchone()
            if row is None or not hmac.compare_digest(str(row["token_hash"]), calculated):
                return None
            conn.execute(
                "UPDATE access_tokens SET last_used_at = ? WHERE id = ?",
                (self._db.timestamp(), row["token_id"]),
            )

        return User(
            id=int(row["id"]),
            name=str(row["name"]),
            email=str(row["email"]),
            created_at=parse_datetime(str(row["created_at"])),
            updated_at=parse_datetime(str(row["updated_at"])),
        )


__all__ = [
    "SQLiteAccessTokenRepository",
    "SQLiteNotificationRepository",
    "SQLiteTravelOrderRepository",
    "SQLiteUserRepository",
    "TOKEN_PREFIX",
]
