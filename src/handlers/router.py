"""
Lambda entry point for the storefront GraphQL API.

AppSync invokes this function once per resolved field. The event's
``info.parentTypeName`` and ``info.fieldName`` select the resolver. Every
outcome is returned as a tagged result so the API boundary must handle
failure explicitly:

    {"ok": true, "data": ...}
    {"ok": false, "error": {"errorCode": "...", "message": "...", ...}}
"""

from typing import Any, Callable, Dict, Tuple

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from handlers import (
        account_operations,
        auth_operations,
        cart_operations,
        item_operations,
        order_operations,
    )
    from utils.errors import AppError, ErrorCode, handle_error
    from utils.logging import get_correlation_id, get_logger
    from utils.responses import failure_result, success_result
    from utils.session import resolve_identity
except ModuleNotFoundError:  # pragma: no cover
    from ..utils.errors import AppError, ErrorCode, handle_error
    from ..utils.logging import get_correlation_id, get_logger
    from ..utils.responses import failure_result, success_result
    from ..utils.session import resolve_identity
    from . import (
        account_operations,
        auth_operations,
        cart_operations,
        item_operations,
        order_operations,
    )

_logger = get_logger(__name__)

Resolver = Callable[[Dict[str, Any], Any], Any]

RESOLVERS: Dict[Tuple[str, str], Resolver] = {
    # Queries
    ("Query", "items"): item_operations.list_items,
    ("Query", "item"): item_operations.get_item,
    ("Query", "itemsConnection"): item_operations.items_connection,
    ("Query", "me"): account_operations.me,
    ("Query", "users"): account_operations.list_users,
    ("Query", "order"): order_operations.get_order,
    ("Query", "orders"): order_operations.list_orders,
    # Mutations
    ("Mutation", "createItem"): item_operations.create_item,
    ("Mutation", "updateItem"): item_operations.update_item,
    ("Mutation", "deleteItem"): item_operations.delete_item,
    ("Mutation", "signUp"): auth_operations.sign_up,
    ("Mutation", "signin"): auth_operations.signin,
    ("Mutation", "signout"): auth_operations.signout,
    ("Mutation", "requestReset"): auth_operations.request_reset,
    ("Mutation", "resetPassword"): auth_operations.reset_password,
    ("Mutation", "updatePermissions"): account_operations.update_permissions,
    ("Mutation", "addToCart"): cart_operations.add_to_cart,
    ("Mutation", "removeFromCart"): cart_operations.remove_from_cart,
    ("Mutation", "createOrder"): order_operations.create_order,
}


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Dispatch an AppSync event to its resolver.

    Args:
        event: AppSync event (identity, arguments, info, request)
        context: Lambda context

    Returns:
        Tagged success or failure result
    """
    logger = _logger.bind(get_correlation_id(event))
    info = event.get("info") or {}
    parent_type = str(info.get("parentTypeName", ""))
    field_name = str(info.get("fieldName", ""))

    try:
        resolver = RESOLVERS.get((parent_type, field_name))
        if resolver is None:
            raise AppError(
                ErrorCode.NOT_FOUND,
                f"No resolver for {parent_type}.{field_name}",
                {"field": f"{parent_type}.{field_name}"},
            )

        event = resolve_identity(event)
        caller_id = (event.get("identity") or {}).get("sub")
        logger.info("Resolving field", field=f"{parent_type}.{field_name}", caller_id=caller_id)

        return success_result(resolver(event, context))

    except AppError as e:
        logger.warning(
            "Resolver failed",
            field=f"{parent_type}.{field_name}",
            error_code=e.error_code,
            error=e.message,
        )
        return failure_result(handle_error(e))
    except Exception as e:
        logger.error(
            "Unexpected resolver error",
            field=f"{parent_type}.{field_name}",
            error_type=type(e).__name__,
            error=str(e),
        )
        return failure_result(handle_error(e))
