"""
Account Lambda resolvers.

Handles reading the caller's own account, listing accounts for administrators,
and changing another user's permissions.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from handlers.cart_operations import load_cart
    from utils.appsync_types import get_argument, get_argument_required, get_caller_id
    from utils.auth import Permission, get_caller_user, get_user, has_permission
    from utils.dynamodb import tables
    from utils.errors import AppError, ErrorCode
    from utils.ids import ensure_user_id
    from utils.logging import get_logger
    from utils.responses import UserResponse, build_cart_item_response, build_user_response
    from utils.validation import validate_permissions
except ModuleNotFoundError:  # pragma: no cover
    from ..utils.appsync_types import get_argument, get_argument_required, get_caller_id
    from ..utils.auth import Permission, get_caller_user, get_user, has_permission
    from ..utils.dynamodb import tables
    from ..utils.errors import AppError, ErrorCode
    from ..utils.ids import ensure_user_id
    from ..utils.logging import get_logger
    from ..utils.responses import UserResponse, build_cart_item_response, build_user_response
    from ..utils.validation import validate_permissions
    from .cart_operations import load_cart

logger = get_logger(__name__)

# Capability set for listing users and editing their permissions
USER_ADMIN_PERMISSIONS = [Permission.ADMIN, Permission.PERMISSIONUPDATE]


def me(event: Dict[str, Any], context: Any) -> Optional[UserResponse]:
    """
    Return the caller's account with their cart, or None for anonymous callers.

    A session whose user has since been deleted is treated as anonymous.
    """
    caller_id = get_caller_id(event)
    if not caller_id:
        return None

    user = get_user(caller_id)
    if user is None:
        return None

    cart = [build_cart_item_response(cart_item, item) for cart_item, item in load_cart(caller_id)]
    return build_user_response(user, cart=cart)


def list_users(event: Dict[str, Any], context: Any) -> List[UserResponse]:
    """
    List every account. Requires ADMIN or PERMISSIONUPDATE.

    Raises:
        AppError: UNAUTHENTICATED, UNAUTHORIZED
    """
    caller = get_caller_user(event)
    has_permission(caller, USER_ADMIN_PERMISSIONS)

    users: List[Dict[str, Any]] = []
    # Email lock rows share the users table
    scan_kwargs: Dict[str, Any] = {"FilterExpression": Attr("userId").begins_with("USER#")}
    while True:
        response = tables.users.scan(**scan_kwargs)
        users.extend(response.get("Items", []))
        last_evaluated_key = response.get("LastEvaluatedKey")
        if last_evaluated_key is None:
            break
        scan_kwargs["ExclusiveStartKey"] = last_evaluated_key

    users.sort(key=lambda u: str(u.get("createdAt", "")))
    return [build_user_response(user) for user in users]


def update_permissions(event: Dict[str, Any], context: Any) -> UserResponse:
    """
    Replace a user's permission set. Requires ADMIN or PERMISSIONUPDATE.

    Args:
        event: AppSync event with arguments {userId, permissions}
        context: Lambda context

    Raises:
        AppError: UNAUTHENTICATED, UNAUTHORIZED, VALIDATION_ERROR for unknown
            permission tags, NOT_FOUND if the target user does not exist
    """
    caller = get_caller_user(event)
    has_permission(caller, USER_ADMIN_PERMISSIONS)

    target_user_id = ensure_user_id(get_argument_required(event, "userId"))
    permissions = validate_permissions(get_argument(event, "permissions", []), Permission.ALL)

    try:
        response = tables.users.update_item(
            Key={"userId": target_user_id},
            UpdateExpression="SET #permissions = :permissions, #updatedAt = :now",
            ConditionExpression="attribute_exists(userId)",
            ExpressionAttributeNames={"#permissions": "permissions", "#updatedAt": "updatedAt"},
            ExpressionAttributeValues={
                ":permissions": permissions,
                ":now": datetime.now(timezone.utc).isoformat(),
            },
            ReturnValues="ALL_NEW",
        )
    except ClientError as e:
        if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
            raise AppError(ErrorCode.NOT_FOUND, f"User {target_user_id} not found")
        raise

    logger.info(
        "Updated permissions",
        caller_id=caller["userId"],
        target_user_id=target_user_id,
        permissions=permissions,
    )
    return build_user_response(response["Attributes"])
