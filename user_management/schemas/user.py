from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field as PydanticField, field_validator

SORT_FIELDS = ("name", "email", "age", "phone", "created_at", "updated_at")

SortField = Literal["name", "email", "age", "phone", "created_at", "updated_at"]
SortDirection = Literal["asc", "desc"]

PHONE_MIN_LENGTH = 10
PHONE_MAX_LENGTH = 20


def _strip_required(value):
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    stripped = value.strip()
    if not stripped:
        raise ValueError("This field is required")
    return stripped


def _strip_optional(value):
    if isinstance(value, str):
        return value.strip()
    return value


def _check_email(value: str) -> str:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError("Must be a valid email address") from exc
    return value


def _check_phone(value: Optional[str]) -> Optional[str]:
    # An empty phone means "no phone" and skips the length rule.
    if not value:
        return value
    if len(value) < PHONE_MIN_LENGTH:
        raise ValueError(f"Must be at least {PHONE_MIN_LENGTH} characters long")
    if len(value) > PHONE_MAX_LENGTH:
        raise ValueError(f"Must be at most {PHONE_MAX_LENGTH} characters long")
    return value


class UserCreate(BaseModel):
    name: str = PydanticField(..., min_length=2, max_length=100)
    email: str
    date_of_birth: str
    phone: Optional[str] = None
    address: Optional[str] = None

    @field_validator("name", "email", "date_of_birth", mode="before")
    @classmethod
    def _strip_and_validate_required(cls, value):
        return _strip_required(value)

    @field_validator("phone", "address", mode="before")
    @classmethod
    def _strip_optional(cls, value):
        return _strip_optional(value)

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("phone")
    @classmethod
    def _validate_phone(cls, value: Optional[str]) -> Optional[str]:
        return _check_phone(value)


class UserUpdate(BaseModel):
    """Partial update; only fields present in the payload are applied."""

    name: Optional[str] = PydanticField(None, min_length=2, max_length=100)
    email: Optional[str] = None
    date_of_birth: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    @field_validator("name", "email", "date_of_birth", mode="before")
    @classmethod
    def _strip_non_empty(cls, value):
        return _strip_required(value)

    @field_validator("phone", "address", mode="before")
    @classmethod
    def _strip_optional(cls, value):
        return _strip_optional(value)

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _check_email(value)

    @field_validator("phone")
    @classmethod
    def _validate_phone(cls, value: Optional[str]) -> Optional[str]:
        return _check_phone(value)

    def present_fields(self) -> Dict[str, str]:
        """Return the fields the client actually sent with a non-null value."""
        return {
            field: value
            for field, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    date_of_birth: date
    age: int
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UserSearchParams(BaseModel):
    search: str = ""
    page: int = PydanticField(1, ge=1)
    per_page: int = PydanticField(10, ge=1, le=100)
    sort_by: SortField = "created_at"
    sort_dir: SortDirection = "desc"


class UserListResponse(BaseModel):
    users: List[UserResponse]
    total: int
    page: int
    per_page: int
    total_pages: int


class MessageResponse(BaseModel):
    message: str


class UserEnvelope(MessageResponse):
    data: UserResponse


class UserListEnvelope(MessageResponse):
    data: UserListResponse


class ErrorResponse(BaseModel):
    error: str
    details: Optional[Dict[str, str]] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: int
