"""FastAPI application exposing travel orders, users, and notifications."""
from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, load_settings
from .database import Database
from .domain import apply_order_update
from .errors import ApiError, ValidationFailed, translate_error
from .repositories import (
    SQLiteAccessTokenRepository,
    SQLiteNotificationRepository,
    SQLiteTravelOrderRepository,
    SQLiteUserRepository,
)
from .responses import (
    created_response,
    error_response,
    notification_to_response,
    order_to_response,
    success_response,
    user_to_response,
)
from .security import BearerAuth, verify_admin, verify_credentials
from .validation import Operation, describe_error, require_valid

logger = logging.getLogger("travelorders.api")

_HTTP_ERROR_MESSAGES = {
    status.HTTP_404_NOT_FOUND: "Endpoint not found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "Method not allowed",
}


async def json_body(request: Request) -> Any:
    """Decode the request body, treating an empty body as an empty object."""

    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise ValidationFailed(errors={"body": ["The request body must be valid JSON."]}) from exc


def create_app(
    *,
    database: Database | None = None,
    settings: Settings | None = None,
    today: Optional[Callable[[], date]] = None,
) -> FastAPI:
    """Build the API application.

    ``today`` supplies the current date to the cancellation guard and defaults
    to :meth:`datetime.date.today`.
    """

    if settings is None:
        settings = load_settings()
    if database is None:
        database = Database(settings.database_path)
        database.initialize()
    if today is None:
        today = date.today

    orders = SQLiteTravelOrderRepository(database)
    users = SQLiteUserRepository(database)
    notifications = SQLiteNotificationRepository(database)
    tokens = SQLiteAccessTokenRepository(database)
    auth = BearerAuth(tokens)

    app = FastAPI(
        title="Travel Orders API",
        description="Manage travel orders, users, and user notifications",
        version="1.0.0",
    )
    app.state.database = database
    app.state.settings = settings

    @app.exception_handler(ApiError)
    async def handle_api_error(_: Request, exc: ApiError) -> JSONResponse:
        translation = translate_error(exc, debug=settings.debug)
        return error_response(translation.message, translation.status_code, translation.errors)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        errors: Dict[str, List[str]] = {}
        for error in exc.errors():
            loc = error.get("loc") or ("body",)
            name = str(loc[-1])
            errors.setdefault(name, []).append(describe_error(name, error))
        return error_response("Validation failed", status.HTTP_422_UNPROCESSABLE_ENTITY, errors)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = _HTTP_ERROR_MESSAGES.get(exc.status_code, str(exc.detail))
        return error_response(message, exc.status_code)

    @app.middleware("http")
    async def render_unexpected_errors(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            translation = translate_error(exc, debug=settings.debug)
            return error_response(translation.message, translation.status_code)

    @app.get("/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/authenticate")
    async def create_access_token(payload: Any = Depends(json_body)) -> JSONResponse:
        data = require_valid(Operation.LOGIN, payload)
        token = verify_admin(
            users,
            tokens,
            data["email"],
            data["password"],
            admin_name=settings.admin_name,
        )
        return success_response({"token": token}, "Token created successfully")

    public_router = APIRouter(prefix="/v1")
    protected_router = APIRouter(prefix="/v1", dependencies=[Depends(auth)])

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    @public_router.post("/users")
    async def create_user(payload: Any = Depends(json_body)) -> JSONResponse:
        data = require_valid(
            Operation.CREATE_USER,
            payload,
            users=users,
            admin_name=settings.admin_name,
        )
        try:
            user = users.create(data)
        except ValueError as exc:
            raise ValidationFailed(errors={"email": ["The email has already been taken."]}) from exc
        logger.info("Created user %s", user.id)
        return created_response(user_to_response(user), "User created successfully")

    @protected_router.post("/userLogin")
    async def login(payload: Any = Depends(json_body)) -> JSONResponse:
        data = require_valid(Operation.LOGIN, payload)
        user = verify_credentials(users, data["email"], data["password"])
        logger.info("User %s logged in", user.id)
        return success_response({"user": user_to_response(user)}, "Login successful")

    @protected_router.get("/users")
    async def list_users() -> JSONResponse:
        return success_response(
            [user_to_response(user) for user in users.list()],
            "Users retrieved successfully",
        )

    @protected_router.get("/users/{user_id}")
    async def read_user(user_id: int) -> JSONResponse:
        return success_response(user_to_response(users.get(user_id)), "User retrieved successfully")

    @protected_router.api_route("/users/{user_id}", methods=["PUT", "PATCH"])
    async def update_user(user_id: int, payload: Any = Depends(json_body)) -> JSONResponse:
        users.get(user_id)
        data = require_valid(
            Operation.UPDATE_USER,
            payload,
            users=users,
            current_id=user_id,
            admin_name=settings.admin_name,
        )
        try:
            user = users.update(user_id, data)
        except ValueError as exc:
            raise ValidationFailed(errors={"email": ["The email has already been taken."]}) from exc
        return success_response(user_to_response(user), "User updated successfully")

    @protected_router.delete("/users/{user_id}")
    async def delete_user(user_id: int) -> JSONResponse:
        users.delete(user_id)
        logger.info("Deleted user %s", user_id)
        return success_response(None, "User deleted successfully")

    # ------------------------------------------------------------------
    # Travel orders
    # ------------------------------------------------------------------
    @protected_router.get("/orders")
    async def list_orders() -> JSONResponse:
        return success_response(
            [order_to_response(order) for order in orders.list()],
            "Travel orders retrieved successfully",
        )

    @protected_router.post("/orders")
    async def create_order(payload: Any = Depends(json_body)) -> JSONResponse:
        data = require_valid(Operation.CREATE_ORDER, payload, users=users)
        order = orders.create(data)
        logger.info("Created travel order %s for user %s", order.id, order.user_id)
        return created_response(order_to_response(order), "Travel order created successfully")

    @protected_router.get("/orders/{order_id}")
    async def read_order(order_id: int) -> JSONResponse:
        return success_response(order_to_response(orders.get(order_id)), "Travel order retrieved successfully")

    @protected_router.api_route("/orders/{order_id}", methods=["PUT", "PATCH"])
    async def update_order(order_id: int, payload: Any = Depends(json_body)) -> JSONResponse:
        orders.get(order_id)
        data = require_valid(Operation.UPDATE_ORDER, payload, users=users)
        order = apply_order_update(orders, order_id, data, today=today())
        return success_response(order_to_response(order), "Travel order updated successfully")

    @protected_router.delete("/orders/{order_id}")
    async def delete_order(order_id: int) -> JSONResponse:
        orders.delete(order_id)
        logger.info("Deleted travel order %s", order_id)
        return success_response(None, "Travel order deleted successfully")

    @protected_router.post("/filterOrders")
    async def filter_orders(payload: Any = Depends(json_body)) -> JSONResponse:
        data = require_valid(Operation.FILTER_ORDERS, payload)
        matches = orders.by_destination_and_date_range(
            data.get("destination"),
            data.get("start_date"),
            data.get("end_date"),
        )
        return success_response(
            [order_to_response(order) for order in matches],
            "Filtered travel orders retrieved successfully",
        )

    @protected_router.post("/ordersByUser")
    async def orders_by_user(payload: Any = Depends(json_body)) -> JSONResponse:
        data = require_valid(Operation.ORDERS_BY_USER, payload, users=users)
        return success_response(
            [order_to_response(order) for order in orders.by_user(data["user_id"])],
            "User travel orders retrieved successfully",
        )

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    @protected_router.get("/notifications")
    async def list_notifications() -> JSONResponse:
        return success_response(
            [notification_to_response(item) for item in notifications.list()],
            "Notifications retrieved successfully",
        )

    @protected_router.post("/notifications")
    async def create_notification(payload: Any = Depends(json_body)) -> JSONResponse:
        data = require_valid(Operation.CREATE_NOTIFICATION, payload, users=users)
        notification = notifications.create(data)
        logger.info("Created notification %s for user %s", notification.id, notification.user_id)
        return created_response(notification_to_response(notification), "Notification created successfully")

    @protected_router.get("/notifications/{notification_id}")
    async def read_notification(notification_id: int) -> JSONResponse:
        return success_response(
            notification_to_response(notifications.get(notification_id)),
            "Notification retrieved successfully",
        )

    @protected_router.delete("/notifications/{notification_id}")
    async def delete_notification(notification_id: int) -> JSONResponse:
        notifications.delete(notification_id)
        return success_response(None, "Notification deleted successfully")

    @protected_router.post("/showUserNotifications")
    async def notifications_by_user(payload: Any = Depends(json_body)) -> JSONResponse:
        data = require_valid(Operation.NOTIFICATIONS_BY_USER, payload, users=users)
        return success_response(
            [notification_to_response(item) for item in notifications.by_user(data["user_id"])],
            "User notifications retrieved successfully",
        )

    app.include_router(public_router)
    app.include_router(protected_router)

    return app


__all__ = ["create_app", "json_body"]
