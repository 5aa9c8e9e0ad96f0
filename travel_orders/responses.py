"""Uniform JSON envelope and the public projections of stored records."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .models import TravelOrder, User, UserNotification


class OrderResponse(BaseModel):
    id: int
    customer_name: str
    destiny: str
    start_date: date
    return_date: date
    status: str
    user_id: Optional[int]
    created_at: datetime
    updated_at: datetime


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime
    updated_at: datetime


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    message: str
    created_at: datetime
    updated_at: datetime


def order_to_response(order: TravelOrder) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        customer_name=order.customer_name,
        destiny=order.destiny,
        start_date=order.start_date,
        return_date=order.return_date,
        status=order.status,
        user_id=order.user_id,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def notification_to_response(notification: UserNotification) -> NotificationResponse:
    return NotificationResponse(
        id=notification.id,
        user_id=notification.user_id,
        message=notification.message,
        created_at=notification.created_at,
        updated_at=notification.updated_at,
    )


def _envelope(
    *,
    success: bool,
    message: str,
    status_code: int,
    data: Any = None,
    errors: Optional[Dict[str, List[str]]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {"success": success, "message": message}
    if success:
        content["data"] = data
    if errors is not None:
        content["errors"] = errors
    content["status_code"] = status_code
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def success_response(data: Any, message: str, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return _envelope(success=True, message=message, status_code=status_code, data=data)


def created_response(data: Any, message: str) -> JSONResponse:
    return success_response(data, message, status.HTTP_201_CREATED)


def error_response(
    message: str,
    status_code: int,
    errors: Optional[Dict[str, List[str]]] = None,
) -> JSONResponse:
    return _envelope(success=False, message=message, status_code=status_code, errors=errors)


__all__ = [
    "NotificationResponse",
    "OrderResponse",
    "UserResponse",
    "created_response",
    "error_response",
    "notification_to_response",
    "order_to_response",
    "success_response",
    "user_to_response",
]
