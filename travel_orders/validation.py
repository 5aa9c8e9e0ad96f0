"""Declarative request validation.

Each :class:`Operation` maps to a :class:`RuleSet`: a pydantic model that
describes the fields and their types, plus the cross-field and store-backed
constraints that pydantic cannot express on its own. :func:`validate` runs a
rule set against a raw payload and reports every violation it finds, keyed by
field name.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationFailed
from .ports import UserRepository

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _check_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not _EMAIL_PATTERN.match(value):
        raise ValueError("The email field must be a valid email address.")
    return value.lower()


class _Request(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class CreateOrderRequest(_Request):
    customer_name: str = Field(..., min_length=1, max_length=255)
    destiny: str = Field(..., min_length=1, max_length=255)
    start_date: date
    return_date: date
    status: str = Field(..., min_length=1, max_length=255)
    user_id: int


class UpdateOrderRequest(_Request):
    customer_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    destiny: Optional[str] = Field(default=None, min_length=1, max_length=255)
    start_date: Optional[date] = None
    return_date: Optional[date] = None
    status: Optional[str] = Field(default=None, min_length=1, max_length=255)
    user_id: Optional[int] = None


class FilterOrdersRequest(_Request):
    destination: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class UserReferenceRequest(_Request):
    user_id: int


class CreateUserRequest(_Request):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: Optional[str]) -> Optional[str]:
        return _check_email(value)


class UpdateUserRequest(_Request):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, min_length=1, max_length=255)
    password: Optional[str] = Field(default=None, min_length=8)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: Optional[str]) -> Optional[str]:
        return _check_email(value)


class LoginRequest(_Request):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: Optional[str]) -> Optional[str]:
        return _check_email(value)


class CreateNotificationRequest(_Request):
    user_id: int
    message: str = Field(..., min_length=1, max_length=1000)


class Operation(str, Enum):
    CREATE_ORDER = "create_order"
    UPDATE_ORDER = "update_order"
    FILTER_ORDERS = "filter_orders"
    ORDERS_BY_USER = "orders_by_user"
    CREATE_USER = "create_user"
    UPDATE_USER = "update_user"
    LOGIN = "login"
    CREATE_NOTIFICATION = "create_notification"
    NOTIFICATIONS_BY_USER = "notifications_by_user"


@dataclass(frozen=True)
class RuleSet:
    """Field rules for one operation.

    ``after_or_equal`` holds ``(field, other)`` pairs where ``field`` must not
    precede ``other``. ``existing_users`` names fields that must reference a
    stored user. ``unique_email`` rejects an email that belongs to another user.
    ``reserved_admin_name`` rejects the administrative account name once another
    user holds it.
    """

    model: Type[_Request]
    after_or_equal: Tuple[Tuple[str, str], ...] = ()
    existing_users: Tuple[str, ...] = ()
    unique_email: bool = False
    reserved_admin_name: bool = False


RULES: Dict[Operation, RuleSet] = {
    Operation.CREATE_ORDER: RuleSet(
        CreateOrderRequest,
        after_or_equal=(("return_date", "start_date"),),
        existing_users=("user_id",),
    ),
    Operation.UPDATE_ORDER: RuleSet(UpdateOrderRequest, existing_users=("user_id",)),
    Operation.FILTER_ORDERS: RuleSet(FilterOrdersRequest, after_or_equal=(("end_date", "start_date"),)),
    Operation.ORDERS_BY_USER: RuleSet(UserReferenceRequest, existing_users=("user_id",)),
    Operation.CREATE_USER: RuleSet(CreateUserRequest, unique_email=True, reserved_admin_name=True),
    Operation.UPDATE_USER: RuleSet(UpdateUserRequest, unique_email=True, reserved_admin_name=True),
    Operation.LOGIN: RuleSet(LoginRequest),
    Operation.CREATE_NOTIFICATION: RuleSet(CreateNotificationRequest, existing_users=("user_id",)),
    Operation.NOTIFICATIONS_BY_USER: RuleSet(UserReferenceRequest, existing_users=("user_id",)),
}


@dataclass
class ValidationResult:
    data: Dict[str, Any] = field(default_factory=dict)
    errors: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def describe_error(name: str, error: Mapping[str, Any]) -> str:
    """Human readable message for one pydantic error entry."""

    kind = str(error.get("type", ""))
    ctx = error.get("ctx") or {}

    if kind == "missing" or error.get("input", "") is None:
        return f"The {name} field is required."
    if kind == "string_too_short":
        if ctx.get("min_length", 1) <= 1:
            return f"The {name} field is required."
        return f"The {name} field must be at least {ctx['min_length']} characters."
    if kind == "string_too_long":
        return f"The {name} field must not be greater than {ctx['max_length']} characters."
    if kind == "string_type":
        return f"The {name} field must be a string."
    if kind.startswith("int_"):
        return f"The {name} field must be an integer."
    if kind.startswith("date_"):
        return f"The {name} field must be a valid date."
    if kind == "value_error" and "error" in ctx:
        return str(ctx["error"])
    return str(error.get("msg", "Invalid value."))


def _add(errors: Dict[str, List[str]], name: str, message: str) -> None:
    errors.setdefault(name, []).append(message)


def _coerced_values(rules: RuleSet, payload: Mapping[str, Any], failed: set) -> Dict[str, Any]:
    """Typed values for every supplied field that passed its own rules."""

    values: Dict[str, Any] = {}
    for name, info in rules.model.model_fields.items():
        if name in failed or name not in payload:
            continue
        values[name] = TypeAdapter(info.annotation).validate_python(payload[name])
    return values


def validate(
    operation: Operation,
    payload: Any,
    *,
    users: Optional[UserRepository] = None,
    current_id: Optional[int] = None,
    admin_name: Optional[str] = None,
) -> ValidationResult:
    """Check ``payload`` against the rule set registered for ``operation``.

    ``users`` enables the store-backed rules (referenced users must exist,
    emails must be unique); ``current_id`` excludes the record being updated
    from the uniqueness checks. ``admin_name`` names the administrative account,
    which only one user may hold.
    """

    rules = RULES[operation]
    if not isinstance(payload, Mapping):
        return ValidationResult(errors={"body": ["The request body must be a JSON object."]})

    errors: Dict[str, List[str]] = {}
    data: Dict[str, Any] = {}
    try:
        model = rules.model.model_validate(dict(payload))
    except PydanticValidationError as exc:
        for error in exc.errors():
            loc = error.get("loc") or ("body",)
            name = str(loc[0])
            _add(errors, name, describe_error(name, error))
        values = _coerced_values(rules, payload, set(errors))
    else:
        data = model.model_dump(exclude_unset=True)
        values = data

    for name, other in rules.after_or_equal:
        current, reference = values.get(name), values.get(other)
        if current is not None and reference is not None and current < reference:
            _add(errors, name, f"The {name} field must be a date after or equal to {other}.")

    if users is not None:
        for name in rules.existing_users:
            user_id = values.get(name)
            if user_id is not None and not users.exists(int(user_id)):
                _add(errors, name, f"The selected {name} is invalid.")

        email = values.get("email")
        if rules.unique_email and email and users.email_taken(str(email), exclude_id=current_id):
            _add(errors, "email", "The email has already been taken.")

        name = values.get("name")
        if (
            rules.reserved_admin_name
            and admin_name
            and name is not None
            and str(name).strip() == admin_name
            and users.name_taken(admin_name, exclude_id=current_id)
        ):
            _add(errors, "name", "The name has already been taken.")

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(data=data)


def require_valid(
    operation: Operation,
    payload: Any,
    *,
    users: Optional[UserRepository] = None,
    current_id: Optional[int] = None,
    admin_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Return the normalised fields or raise :class:`ValidationFailed`."""

    result = validate(operation, payload, users=users, current_id=current_id, admin_name=admin_name)
    if not result.ok:
        raise ValidationFailed("Validation failed", errors=result.errors)
    return result.data


__all__ = [
    "Operation",
    "RULES",
    "RuleSet",
    "ValidationResult",
    "describe_error",
    "require_valid",
    "validate",
]
