"""Field validation and business rules shared by the routes and the service."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Dict, Iterable, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from user_management.core.exceptions import InvalidDate, TooYoung, ValidationError
from user_management.repository.user_query import apply_search_defaults
from user_management.schemas import SORT_FIELDS, UserSearchParams

MINIMUM_AGE = 18
DATE_FORMAT = "%Y-%m-%d"

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def calculate_age(birth_date: Optional[date], reference: Optional[date] = None) -> int:
    """Return the age in whole years at ``reference`` (defaults to today).

    The birthday check compares days of the year, so around the end of
    February in leap years the result can be one year lower than a strict
    calendar comparison would give.
    """
    if birth_date is None:
        return 0

    today = reference or date.today()
    age = today.year - birth_date.year
    if today.timetuple().tm_yday < birth_date.timetuple().tm_yday:
        age -= 1
    return age


def parse_date_of_birth(value: str) -> date:
    if not isinstance(value, str) or not _DATE_PATTERN.match(value):
        raise InvalidDate()
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as exc:
        raise InvalidDate() from exc


def ensure_minimum_age(birth_date: date, reference: Optional[date] = None) -> int:
    """Return the computed age, rejecting anyone not strictly older than 18."""
    age = calculate_age(birth_date, reference)
    if age <= MINIMUM_AGE:
        raise TooYoung()
    return age


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_name(name: str) -> str:
    return name.strip()


def validation_message(error: Mapping[str, Any]) -> str:
    """Translate a pydantic error entry into a short client-facing message."""
    error_type = error.get("type", "")
    ctx = error.get("ctx") or {}

    if error_type == "missing" or (
        error_type.endswith("_type") and error.get("input") is None
    ):
        return "This field is required"
    if error_type == "value_error" and "error" in ctx:
        return str(ctx["error"])
    if error_type == "string_too_short":
        return f"Must be at least {ctx.get('min_length')} characters long"
    if error_type == "string_too_long":
        return f"Must be at most {ctx.get('max_length')} characters long"
    if error_type in {"greater_than_equal", "greater_than"}:
        bound = ctx.get("ge", ctx.get("gt"))
        return f"Must be at least {bound}"
    if error_type in {"less_than_equal", "less_than"}:
        bound = ctx.get("le", ctx.get("lt"))
        return f"Must be at most {bound}"
    if error_type == "literal_error":
        return f"Must be one of: {ctx.get('expected', '')}"
    if error_type in {"int_parsing", "int_type"}:
        return "Must be a valid integer"
    return "Invalid value"


def collect_violations(errors: Iterable[Mapping[str, Any]]) -> Dict[str, str]:
    """Build a ``field -> message`` map, keeping the first message per field."""
    details: Dict[str, str] = {}
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query")]
        field = location[-1] if location else "request"
        details.setdefault(field, validation_message(error))
    return details


def validate_search_params(
    *,
    search: str = "",
    page: int = 0,
    per_page: int = 0,
    sort_by: str = "",
    sort_dir: str = "",
) -> UserSearchParams:
    page, per_page, sort_by, sort_dir = apply_search_defaults(
        page, per_page, sort_by, sort_dir
    )

    if sort_by not in SORT_FIELDS:
        raise ValidationError("Invalid sort field")

    try:
        return UserSearchParams(
            search=search,
            page=page,
            per_page=per_page,
            sort_by=sort_by,
            sort_dir=sort_dir,
        )
    except PydanticValidationError as exc:
        raise ValidationError(details=collect_violations(exc.errors())) from exc


__all__ = [
    "DATE_FORMAT",
    "MINIMUM_AGE",
    "calculate_age",
    "collect_violations",
    "ensure_minimum_age",
    "normalize_email",
    "normalize_name",
    "parse_date_of_birth",
    "validate_search_params",
    "validation_message",
]
