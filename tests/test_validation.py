from __future__ import annotations

from datetime import date

import pytest

from travel_orders.database import Database
from travel_orders.errors import ValidationFailed
from travel_orders.repositories import SQLiteUserRepository
from travel_orders.validation import Operation, require_valid, validate


def _order_payload(**overrides):
    payload = {
        "customer_name": "Ana Souza",
        "destiny": "Paris",
        "start_date": "2026-05-01",
        "return_date": "2026-05-10",
        "status": "Pending",
        "user_id": 1,
    }
    payload.update(overrides)
    return payload


def test_create_order_normalises_fields() -> None:
    result = validate(Operation.CREATE_ORDER, _order_payload(customer_name="  Ana Souza  "))

    assert result.ok
    assert result.data["customer_name"] == "Ana Souza"
    assert result.data["start_date"] == date(2026, 5, 1)
    assert result.data["user_id"] == 1


def test_create_order_reports_every_missing_field() -> None:
    result = validate(Operation.CREATE_ORDER, {})

    assert not result.ok
    assert set(result.errors) == {
        "customer_name",
        "destiny",
        "start_date",
        "return_date",
        "status",
        "user_id",
    }
    assert result.errors["destiny"] == ["The destiny field is required."]
    assert all(len(messages) == 1 for messages in result.errors.values())


def test_create_order_rejects_return_before_start() -> None:
    result = validate(Operation.CREATE_ORDER, _order_payload(return_date="2026-04-30"))

    assert result.errors == {
        "return_date": ["The return_date field must be a date after or equal to start_date."]
    }


def test_create_order_allows_same_day_return() -> None:
    assert validate(Operation.CREATE_ORDER, _order_payload(return_date="2026-05-01")).ok


def test_cross_field_rule_still_runs_when_other_fields_fail() -> None:
    result = validate(
        Operation.CREATE_ORDER,
        _order_payload(customer_name="", return_date="2026-04-01"),
    )

    assert result.errors["customer_name"] == ["The customer_name field is required."]
    assert "return_date" in result.errors


def test_type_errors_are_described_per_field() -> None:
    result = validate(
        Operation.CREATE_ORDER,
        _order_payload(start_date="not-a-date", user_id="abc", status="x" * 256),
    )

    assert result.errors["start_date"] == ["The start_date field must be a valid date."]
    assert result.errors["user_id"] == ["The user_id field must be an integer."]
    assert result.errors["status"] == ["The status field must not be greater than 255 characters."]


def test_update_order_accepts_partial_payload() -> None:
    result = validate(Operation.UPDATE_ORDER, {"status": "Cancelled"})

    assert result.ok
    assert result.data == {"status": "Cancelled"}


def test_update_order_does_not_enforce_date_order() -> None:
    assert validate(
        Operation.UPDATE_ORDER,
        {"start_date": "2026-06-10", "return_date": "2026-06-01"},
    ).ok


def test_filter_orders_end_date_must_follow_start_date() -> None:
    result = validate(
        Operation.FILTER_ORDERS,
        {"start_date": "2026-02-10", "end_date": "2026-02-01"},
    )

    assert result.errors == {"end_date": ["The end_date field must be a date after or equal to start_date."]}
    assert validate(Operation.FILTER_ORDERS, {}).ok
    assert validate(Operation.FILTER_ORDERS, {"end_date": "2026-02-01"}).ok


def test_non_object_payload_is_rejected() -> None:
    result = validate(Operation.LOGIN, ["email", "password"])

    assert result.errors == {"body": ["The request body must be a JSON object."]}


def test_login_requires_valid_email() -> None:
    result = validate(Operation.LOGIN, {"email": "not-an-email", "password": "x"})

    assert result.errors == {"email": ["The email field must be a valid email address."]}


def test_create_user_password_minimum_length() -> None:
    result = validate(
        Operation.CREATE_USER,
        {"name": "Bea", "email": "bea@example.com", "password": "short"},
    )

    assert result.errors == {"password": ["The password field must be at least 8 characters."]}


def test_store_backed_rules(tmp_path) -> None:
    database = Database(tmp_path / "validation.sqlite3")
    database.initialize()
    users = SQLiteUserRepository(database)
    user = users.create({"name": "Carla", "email": "carla@example.com", "password": "password123"})

    missing = validate(Operation.ORDERS_BY_USER, {"user_id": user.id + 100}, users=users)
    assert missing.errors == {"user_id": ["The selected user_id is invalid."]}
    assert validate(Operation.NOTIFICATIONS_BY_USER, {"user_id": user.id}, users=users).ok

    duplicate = validate(
        Operation.CREATE_USER,
        {"name": "Other", "email": "CARLA@example.com", "password": "password123"},
        users=users,
    )
    assert duplicate.errors == {"email": ["The email has already been taken."]}

    same_record = validate(
        Operation.UPDATE_USER,
        {"email": "carla@example.com"},
        users=users,
        current_id=user.id,
    )
    assert same_record.ok


def test_require_valid_raises_with_all_errors() -> None:
    with pytest.raises(ValidationFailed) as excinfo:
        require_valid(Operation.CREATE_NOTIFICATION, {})

    assert excinfo.value.status_code == 422
    assert set(excinfo.value.errors or {}) == {"user_id", "message"}


def test_admin_name_is_reserved_once_taken(tmp_path) -> None:
    database = Database(tmp_path / "validation.sqlite3")
    database.initialize()
    users = SQLiteUserRepository(database)
    payload = {"name": " Admin ", "email": "first@example.com", "password": "password123"}

    assert validate(Operation.CREATE_USER, payload, users=users, admin_name="Admin").ok
    admin = users.create(payload)

    second = validate(
        Operation.CREATE_USER,
        {**payload, "email": "second@example.com"},
        users=users,
        admin_name="Admin",
    )
    assert second.errors == {"name": ["The name has already been taken."]}

    other = users.create({"name": "Dana", "email": "dana@example.com", "password": "password123"})
    rename = validate(Operation.UPDATE_USER, {"name": "Admin"}, users=users, current_id=other.id, admin_name="Admin")
    assert rename.errors == {"name": ["The name has already been taken."]}
    assert validate(Operation.UPDATE_USER, {"name": "Admin"}, users=users, current_id=admin.id, admin_name="Admin").ok
    assert validate(Operation.UPDATE_USER, {"name": "Admin"}, users=users, current_id=other.id).ok


def test_out_of_range_user_reference_is_invalid(tmp_path) -> None:
    database = Database(tmp_path / "validation.sqlite3")
    database.initialize()
    users = SQLiteUserRepository(database)

    result = validate(Operation.CREATE_NOTIFICATION, {"user_id": 2**63, "message": "Hi"}, users=users)

    assert result.errors == {"user_id": ["The selected user_id is invalid."]}
