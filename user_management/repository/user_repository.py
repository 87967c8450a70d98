from __future__ import annotations

import logging
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from user_management.core.exceptions import DuplicateEmail, NotFound, StorageError
from user_management.models import User
from user_management.models.user import utcnow
from user_management.repository.user_query import (
    apply_ordering,
    apply_pagination,
    apply_search_defaults,
    apply_search_filter,
)
from user_management.schemas import UserSearchParams

logger = logging.getLogger(__name__)


def _is_email_conflict(exc: IntegrityError) -> bool:
    message = str(exc.orig or exc).lower()
    return "email" in message and ("unique" in message or "duplicate" in message)


def _flush(db: Session, action: str) -> None:
    try:
        db.flush()
    except IntegrityError as exc:
        if _is_email_conflict(exc):
            raise DuplicateEmail() from exc
        raise StorageError(f"Failed to {action} user") from exc
    except SQLAlchemyError as exc:
        raise StorageError(f"Failed to {action} user") from exc


def active_users(db: Session) -> Query:
    """Base query for every read: soft deleted rows are never visible."""
    return db.query(User).filter(User.deleted_at.is_(None))


def create_user(db: Session, user: User) -> User:
    db.add(user)
    _flush(db, "create")
    return user


def get_user_by_id(db: Session, user_id: int) -> User:
    try:
        user = active_users(db).filter(User.id == user_id).first()
    except SQLAlchemyError as exc:
        raise StorageError("Failed to get user") from exc
    if user is None:
        raise NotFound()
    return user


def get_user_by_email(db: Session, email: str) -> User:
    try:
        user = active_users(db).filter(User.email == email).first()
    except SQLAlchemyError as exc:
        raise StorageError("Failed to get user by email") from exc
    if user is None:
        raise NotFound()
    return user


def update_user(db: Session, user: User) -> User:
    user.updated_at = utcnow()
    _flush(db, "update")
    return user


def delete_user(db: Session, user_id: int) -> None:
    try:
        affected = (
            active_users(db)
            .filter(User.id == user_id)
            .update({User.deleted_at: utcnow()}, synchronize_session=False)
        )
    except SQLAlchemyError as exc:
        raise StorageError("Failed to delete user") from exc
    if affected == 0:
        raise NotFound()


def email_exists(db: Session, email: str, exclude_id: int = 0) -> bool:
    query = active_users(db).filter(User.email == email)
    if exclude_id > 0:
        query = query.filter(User.id != exclude_id)
    try:
        return query.count() > 0
    except SQLAlchemyError as exc:
        raise StorageError("Failed to check email existence") from exc


def list_users(db: Session, params: UserSearchParams) -> Tuple[List[User], int]:
    page, per_page, sort_by, sort_dir = apply_search_defaults(
        params.page, params.per_page, params.sort_by, params.sort_dir
    )
    filtered = apply_search_filter(active_users(db), params.search)

    try:
        total = filtered.count()
        logger.debug("Counted %s users matching %r", total, params.search)
        users = apply_pagination(
            apply_ordering(filtered, sort_by, sort_dir), page, per_page
        ).all()
    except SQLAlchemyError as exc:
        raise StorageError("Failed to list users") from exc

    logger.debug(
        "Fetched %s users (page=%s, per_page=%s, sort=%s %s)",
        len(users),
        page,
        per_page,
        sort_by,
        sort_dir,
    )
    return users, total
