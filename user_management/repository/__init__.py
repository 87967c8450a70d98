from .user_repository import (
    active_users,
    create_user,
    delete_user,
    email_exists,
    get_user_by_email,
    get_user_by_id,
    list_users,
    update_user,
)

__all__ = [
    "active_users",
    "create_user",
    "delete_user",
    "email_exists",
    "get_user_by_email",
    "get_user_by_id",
    "list_users",
    "update_user",
]
