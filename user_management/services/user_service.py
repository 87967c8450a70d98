from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from user_management.core.exceptions import (
    DuplicateEmail,
    InternalError,
    StorageError,
    UserManagementError,
)
from user_management.models import User
from user_management.repository import user_repository
from user_management.repository.user_query import total_pages
from user_management.schemas import (
    UserCreate,
    UserListResponse,
    UserResponse,
    UserSearchParams,
    UserUpdate,
)
from user_management.services.validation import (
    calculate_age,
    ensure_minimum_age,
    normalize_email,
    normalize_name,
    parse_date_of_birth,
)

_logger = logging.getLogger(__name__)


class UserService:
    """Business rules and transaction boundaries for user records."""

    def __init__(self, db: Session, logger: Optional[logging.Logger] = None):
        self.db = db
        self.logger = logger or _logger

    def create_user(self, user_in: UserCreate) -> User:
        email = normalize_email(user_in.email)
        self.logger.info("Creating new user", extra={"email": email})

        try:
            if user_repository.email_exists(self.db, email, 0):
                raise DuplicateEmail()

            date_of_birth = parse_date_of_birth(user_in.date_of_birth)
            age = ensure_minimum_age(date_of_birth)

            user = User(
                name=normalize_name(user_in.name),
                email=email,
                date_of_birth=date_of_birth,
                phone=user_in.phone or None,
                address=user_in.address or None,
            )
            user_repository.create_user(self.db, user)
            self.db.commit()
            self.db.refresh(user)
        except UserManagementError as exc:
            self._fail("create_user", exc)
            raise
        except SQLAlchemyError as exc:
            self._fail("create_user", exc)
            raise StorageError("Failed to create user") from exc
        except Exception as exc:
            self._fail("create_user", exc)
            raise InternalError("Unexpected error while creating user") from exc

        user.age = age
        self.logger.info("User %s created successfully", user.id)
        return user

    def get_user(self, user_id: int) -> User:
        try:
            user = user_repository.get_user_by_id(self.db, user_id)
        except UserManagementError as exc:
            self._fail("get_user", exc, user_id=user_id)
            raise

        user.age = calculate_age(user.date_of_birth)
        return user

    def update_user(self, user_id: int, user_in: UserUpdate) -> User:
        changes = user_in.present_fields()
        self.logger.info(
            "Updating user %s", user_id, extra={"fields": sorted(changes)}
        )

        try:
            user = user_repository.get_user_by_id(self.db, user_id)

            if "email" in changes:
                email = normalize_email(changes["email"])
                if user_repository.email_exists(self.db, email, user_id):
                    raise DuplicateEmail()
                user.email = email

            if "date_of_birth" in changes:
                date_of_birth = parse_date_of_birth(changes["date_of_birth"])
                ensure_minimum_age(date_of_birth)
                user.date_of_birth = date_of_birth

            if "name" in changes:
                user.name = normalize_name(changes["name"])
            if "phone" in changes:
                user.phone = changes["phone"] or None
            if "address" in changes:
                user.address = changes["address"] or None

            user_repository.update_user(self.db, user)
            self.db.commit()
            self.db.refresh(user)
        except UserManagementError as exc:
            self._fail("update_user", exc, user_id=user_id)
            raise
        except SQLAlchemyError as exc:
            self._fail("update_user", exc, user_id=user_id)
            raise StorageError("Failed to update user") from exc
        except Exception as exc:
            self._fail("update_user", exc, user_id=user_id)
            raise InternalError("Unexpected error while updating user") from exc

        user.age = calculate_age(user.date_of_birth)
        self.logger.info("User %s updated successfully", user_id)
        return user

    def delete_user(self, user_id: int) -> None:
        self.logger.info("Deleting user %s", user_id)
        try:
            user_repository.delete_user(self.db, user_id)
            self.db.commit()
        except UserManagementError as exc:
            self._fail("delete_user", exc, user_id=user_id)
            raise
        except SQLAlchemyError as exc:
            self._fail("delete_user", exc, user_id=user_id)
            raise StorageError("Failed to delete user") from exc

        self.logger.info("User %s deleted successfully", user_id)

    def list_users(self, params: UserSearchParams) -> UserListResponse:
        self.logger.info(
            "Listing users",
            extra={
                "search": params.search,
                "page": params.page,
                "per_page": params.per_page,
                "sort_by": params.sort_by,
                "sort_dir": params.sort_dir,
            },
        )

        try:
            users, total = user_repository.list_users(self.db, params)
        except UserManagementError as exc:
            self._fail("list_users", exc)
            raise

        for user in users:
            user.age = calculate_age(user.date_of_birth)

        return UserListResponse(
            users=[UserResponse.model_validate(user) for user in users],
            total=total,
            page=params.page,
            per_page=params.per_page,
            total_pages=total_pages(total, params.per_page),
        )

    def _fail(self, action: str, exc: Exception, user_id: Optional[int] = None) -> None:
        self.db.rollback()
        context = {"action": action, "user_id": user_id}
        if isinstance(exc, UserManagementError) and exc.status_code < 500:
            self.logger.info("%s rejected: %s", action, exc.message, extra=context)
        else:
            self.logger.error(
                "%s failed for user %s", action, user_id, exc_info=exc, extra=context
            )


__all__ = ["UserService"]
