"""
Authorization utilities.

Identity is checked first (UNAUTHENTICATED), then capability sets or
ownership (UNAUTHORIZED). Guards run before any write so a failed check never
leaves partial state behind.
"""

from typing import Any, Dict, Iterable, List, Optional

from .appsync_types import get_caller_id
from .dynamodb import tables
from .errors import AppError, ErrorCode


class Permission:
    """Permission tags stored on a user record."""

    ADMIN = "ADMIN"
    USER = "USER"
    ITEMCREATE = "ITEMCREATE"
    ITEMUPDATE = "ITEMUPDATE"
    DELETEITEM = "DELETEITEM"
    PERMISSIONUPDATE = "PERMISSIONUPDATE"

    ALL = (ADMIN, USER, ITEMCREATE, ITEMUPDATE, DELETEITEM, PERMISSIONUPDATE)


def user_permissions(user: Optional[Dict[str, Any]]) -> List[str]:
    """Return a user's permission tags as a plain list."""
    if not user:
        return []
    permissions = user.get("permissions") or []
    return [str(p) for p in permissions]


def check_permission(user: Optional[Dict[str, Any]], required: Iterable[str]) -> bool:
    """True if the user's permission set intersects the required set."""
    held = set(user_permissions(user))
    return any(permission in held for permission in required)


def has_permission(user: Optional[Dict[str, Any]], required: Iterable[str]) -> None:
    """
    Require the user to hold at least one of the given permissions.

    Raises:
        AppError: UNAUTHORIZED listing what was needed and what the user has
    """
    required = list(required)
    if not check_permission(user, required):
        raise AppError(
            ErrorCode.UNAUTHORIZED,
            "You do not have sufficient permissions",
            {"required": required, "held": user_permissions(user)},
        )


def require_identity(event: Dict[str, Any]) -> str:
    """
    Return the caller's user ID or fail.

    Raises:
        AppError: UNAUTHENTICATED if the request is anonymous
    """
    caller_id = get_caller_id(event)
    if not caller_id:
        raise AppError(ErrorCode.UNAUTHENTICATED, "You must be logged in to do that!")
    return caller_id


def get_user(user_id: str) -> Optional[Dict[str, Any]]:
    """
    Get user by ID.

    Returns:
        User item or None if not found
    """
    response = tables.users.get_item(Key={"userId": user_id})
    return response.get("Item")


def get_caller_user(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Require identity and load the caller's user record.

    Raises:
        AppError: UNAUTHENTICATED if anonymous or the session's user no longer exists
    """
    caller_id = require_identity(event)
    user = get_user(caller_id)
    if user is None:
        raise AppError(ErrorCode.UNAUTHENTICATED, "Your session refers to a user that no longer exists")
    return user


def is_owner(caller_id: str, record: Dict[str, Any], owner_field: str = "userId") -> bool:
    """Check whether a record belongs to the caller."""
    return bool(record.get(owner_field)) and record.get(owner_field) == caller_id
