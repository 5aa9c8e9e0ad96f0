"""Repository interfaces the domain and HTTP layers depend on.

The SQLite implementations live in :mod:`travel_orders.repositories`; tests
and alternative stores only need to satisfy these protocols.
"""

from __future__ import annotations

from datetime import date
from typing import Any, List, Mapping, Optional, Protocol

from .models import TravelOrder, User, UserNotification


class TravelOrderRepository(Protocol):
    def list(self) -> List[TravelOrder]:
        ...

    def create(self, fields: Mapping[str, Any]) -> TravelOrder:
        ...

    def get(self, order_id: int) -> TravelOrder:
        """Return the order or raise :class:`~travel_orders.errors.NotFound`."""
        ...

    def update(self, order_id: int, fields: Mapping[str, Any]) -> TravelOrder:
        ...

    def delete(self, order_id: int) -> None:
        ...

    def by_destination_and_date_range(
        self,
        destination: Optional[str],
        start_date: Optional[date],
        end_date: Optional[date],
    ) -> List[TravelOrder]:
        """Orders matching ``destination`` created between the two dates, inclusive.

        Either filter is skipped when its inputs are absent; the date range only
        applies when both bounds are given.
        """
        ...

    def by_user(self, user_id: int) -> List[TravelOrder]:
        ...


class UserRepository(Protocol):
    def list(self) -> List[User]:
        ...

    def create(self, fields: Mapping[str, Any]) -> User:
        ...

    def get(self, user_id: int) -> User:
        ...

    def get_by_email(self, email: str) -> Optional[User]:
        ...

    def update(self, user_id: int, fields: Mapping[str, Any]) -> User:
        ...

    def delete(self, user_id: int) -> None:
        ...

    def exists(self, user_id: int) -> bool:
        ...

    def email_taken(self, email: str, *, exclude_id: Optional[int] = None) -> bool:
        ...

    def name_taken(self, name: str, *, exclude_id: Optional[int] = None) -> bool:
        ...

    def verify_password(self, user_id: int, password: str) -> bool:
        ...


class NotificationRepository(Protocol):
    def list(self) -> List[UserNotification]:
        ...

    def create(self, fields: Mapping[str, Any]) -> UserNotification:
        ...

    def get(self, notification_id: int) -> UserNotification:
        ...

    def delete(self, notification_id: int) -> None:
        ...

    def by_user(self, user_id: int) -> List[UserNotification]:
        ...


class AccessTokenRepository(Protocol):
    def issue(self, user_id: int, name: str) -> str:
        """Persist a new token for ``user_id`` and return its plaintext once."""
        ...

    def resolve(self, token: str) -> Optional[User]:
        ...


__all__ = [
    "AccessTokenRepository",
    "NotificationRepository",
    "TravelOrderRepository",
    "UserRepository",
]
