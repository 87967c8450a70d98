from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from user_management.core.exceptions import ValidationError
from user_management.dependencies import get_db
from user_management.schemas import (
    ErrorResponse,
    MessageResponse,
    UserCreate,
    UserEnvelope,
    UserListEnvelope,
    UserResponse,
    UserUpdate,
)
from user_management.services import UserService
from user_management.services.validation import validate_search_params

router = APIRouter(prefix="/users", tags=["users"])

_ERRORS = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}
_ERRORS_WITH_404 = {**_ERRORS, status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}

MAX_USER_ID = 2**32 - 1


def parse_user_id(user_id: str) -> int:
    if not (user_id.isascii() and user_id.isdigit()) or int(user_id) > MAX_USER_ID:
        raise ValidationError("Invalid user ID")
    return int(user_id)


@router.post(
    "",
    response_model=UserEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
)
def create_user(user_in: UserCreate, db: Session = Depends(get_db)):
    service = UserService(db)
    user = service.create_user(user_in)
    return UserEnvelope(
        message="User created successfully", data=UserResponse.model_validate(user)
    )


@router.get("", response_model=UserListEnvelope, responses=_ERRORS)
def list_users(
    search: str = Query(""),
    page: int = Query(0),
    per_page: int = Query(0),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_dir: Optional[str] = Query(None, alias="sortDir"),
    sort_by_alt: Optional[str] = Query(None, alias="sort_by", include_in_schema=False),
    sort_dir_alt: Optional[str] = Query(None, alias="sort_dir", include_in_schema=False),
    db: Session = Depends(get_db),
):
    params = validate_search_params(
        search=search,
        page=page,
        per_page=per_page,
        sort_by=sort_by or sort_by_alt or "",
        sort_dir=sort_dir or sort_dir_alt or "",
    )
    service = UserService(db)
    return UserListEnvelope(
        message="Users retrieved successfully", data=service.list_users(params)
    )


@router.get("/{user_id}", response_model=UserEnvelope, responses=_ERRORS_WITH_404)
def get_user(user_id: str, db: Session = Depends(get_db)):
    service = UserService(db)
    user = service.get_user(parse_user_id(user_id))
    return UserEnvelope(
        message="User retrieved successfully", data=UserResponse.model_validate(user)
    )


@router.put("/{user_id}", response_model=UserEnvelope, responses=_ERRORS_WITH_404)
def update_user(user_id: str, user_in: UserUpdate, db: Session = Depends(get_db)):
    service = UserService(db)
    user = service.update_user(parse_user_id(user_id), user_in)
    return UserEnvelope(
        message="User updated successfully", data=UserResponse.model_validate(user)
    )


@router.delete("/{user_id}", response_model=MessageResponse, responses=_ERRORS_WITH_404)
def delete_user(user_id: str, db: Session = Depends(get_db)):
    service = UserService(db)
    service.delete_user(parse_user_id(user_id))
    return MessageResponse(message="User deleted successfully")
