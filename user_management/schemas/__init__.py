"""Pydantic schemas used by the user management service."""

from user_management.schemas.user import (
    SORT_FIELDS,
    ErrorResponse,
    HealthResponse,
    MessageResponse,
    UserCreate,
    UserEnvelope,
    UserListEnvelope,
    UserListResponse,
    UserResponse,
    UserSearchParams,
    UserUpdate,
)

__all__ = [
    "SORT_FIELDS",
    "ErrorResponse",
    "HealthResponse",
    "MessageResponse",
    "UserCreate",
    "UserEnvelope",
    "UserListEnvelope",
    "UserListResponse",
    "UserResponse",
    "UserSearchParams",
    "UserUpdate",
]
