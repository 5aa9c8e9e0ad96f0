"""Business rules for travel order changes."""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Mapping

from .errors import DomainRuleViolation
from .models import TravelOrder
from .ports import TravelOrderRepository

logger = logging.getLogger("travelorders.domain")

CANCELLED_STATUS = "Cancelled"
CANCELLATION_WINDOW = timedelta(days=30)
CANCELLATION_TOO_LATE_MESSAGE = "You cannot cancel an order with less than 30 days until the travel"


def can_transition_to_cancelled(current_date: date, start_date: date) -> bool:
    """Return ``True`` when ``start_date`` is at least 30 days after ``current_date``.

    The boundary is inclusive: an order starting exactly 30 days from today can
    still be cancelled.
    """

    return start_date >= current_date + CANCELLATION_WINDOW


def apply_order_update(
    orders: TravelOrderRepository,
    order_id: int,
    fields: Mapping[str, Any],
    *,
    today: date,
) -> TravelOrder:
    """Update an order, refusing late cancellations.

    The guard compares against the start date already stored for the order,
    not one supplied in ``fields``. A rejected cancellation writes nothing.
    """

    order = orders.get(order_id)
    if fields.get("status") == CANCELLED_STATUS and not can_transition_to_cancelled(today, order.start_date):
        logger.info(
            "Rejected cancellation of order %s starting %s (today is %s)",
            order.id,
            order.start_date.isoformat(),
            today.isoformat(),
        )
        raise DomainRuleViolation(CANCELLATION_TOO_LATE_MESSAGE)
    return orders.update(order_id, fields)


__all__ = [
    "CANCELLATION_TOO_LATE_MESSAGE",
    "CANCELLATION_WINDOW",
    "CANCELLED_STATUS",
    "apply_order_update",
    "can_transition_to_cancelled",
]
