"""Domain records persisted by the travel orders service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class User:
    """An account that can own orders and receive notifications."""

    id: int
    name: str
    email: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class TravelOrder:
    """A trip booked on behalf of a customer."""

    id: int
    customer_name: str
    destiny: str
    start_date: date
    return_date: date
    status: str
    user_id: Optional[int]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class UserNotification:
    id: int
    user_id: int
    message: str
    created_at: datetime
    updated_at: datetime


__all__ = ["TravelOrder", "User", "UserNotification"]
