"""Search, sort and pagination building blocks for the user listing."""

from __future__ import annotations

import math
from typing import Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Query

from user_management.models import User

DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 10
DEFAULT_SORT_BY = "created_at"
DEFAULT_SORT_DIR = "desc"

SORT_COLUMNS = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "created_at": "created_at",
    "updated_at": "updated_at",
    "id": "id",
    "age": "date_of_birth",
}

_LIKE_ESCAPE = "\\"


def apply_search_defaults(
    page: int, per_page: int, sort_by: str, sort_dir: str
) -> Tuple[int, int, str, str]:
    return (
        page or DEFAULT_PAGE,
        per_page or DEFAULT_PER_PAGE,
        sort_by or DEFAULT_SORT_BY,
        sort_dir or DEFAULT_SORT_DIR,
    )


def resolve_sort_column(sort_by: str) -> str:
    return SORT_COLUMNS.get(sort_by, SORT_COLUMNS[DEFAULT_SORT_BY])


def resolve_ordering(sort_by: str, sort_dir: str) -> Tuple[str, str]:
    """Map the requested sort onto a stored column and SQL direction.

    Age is derived from ``date_of_birth`` and grows as the birth date gets
    older, so an ascending age sort is a descending birth date sort.
    """
    direction = (sort_dir or "").upper()
    if direction not in ("ASC", "DESC"):
        direction = "DESC"

    if sort_by == "age":
        return "date_of_birth", "DESC" if direction == "ASC" else "ASC"
    return resolve_sort_column(sort_by), direction


def _escape_like(term: str) -> str:
    return (
        term.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


def apply_search_filter(query: Query, search: str) -> Query:
    if not search:
        return query

    pattern = f"%{_escape_like(search)}%"
    return query.filter(
        or_(
            User.name.ilike(pattern, escape=_LIKE_ESCAPE),
            User.email.ilike(pattern, escape=_LIKE_ESCAPE),
            User.phone.ilike(pattern, escape=_LIKE_ESCAPE),
        )
    )


def apply_ordering(query: Query, sort_by: str, sort_dir: str) -> Query:
    column_name, direction = resolve_ordering(sort_by, sort_dir)
    column = getattr(User, column_name)
    ordered = column.asc() if direction == "ASC" else column.desc()
    # id keeps pages stable when several rows share the sort value.
    return query.order_by(ordered, User.id.asc())


def apply_pagination(query: Query, page: int, per_page: int) -> Query:
    offset = (page - 1) * per_page
    return query.offset(offset).limit(per_page)


def total_pages(total: int, per_page: int) -> int:
    if per_page <= 0:
        return 0
    return math.ceil(total / per_page)


__all__ = [
    "DEFAULT_PAGE",
    "DEFAULT_PER_PAGE",
    "DEFAULT_SORT_BY",
    "DEFAULT_SORT_DIR",
    "SORT_COLUMNS",
    "apply_ordering",
    "apply_pagination",
    "apply_search_defaults",
    "apply_search_filter",
    "resolve_ordering",
    "resolve_sort_column",
    "total_pages",
]
