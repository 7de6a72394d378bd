"""
Shopping cart Lambda resolvers.

Cart rows live in the cart items table keyed by (userId, itemId), so a user can
hold at most one row per item. Adding an item that is already in the cart
increments its quantity in a single atomic update.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from boto3.dynamodb.conditions import Key

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from utils.appsync_types import get_argument_required
    from utils.auth import is_owner, require_identity
    from utils.dynamodb import tables
    from utils.errors import AppError, ErrorCode
    from utils.ids import ensure_cart_item_id, ensure_item_id, new_id
    from utils.logging import get_logger
    from utils.responses import CartItemResponse, build_cart_item_response
except ModuleNotFoundError:  # pragma: no cover
    from ..utils.appsync_types import get_argument_required
    from ..utils.auth import is_owner, require_identity
    from ..utils.dynamodb import tables
    from ..utils.errors import AppError, ErrorCode
    from ..utils.ids import ensure_cart_item_id, ensure_item_id, new_id
    from ..utils.logging import get_logger
    from ..utils.responses import CartItemResponse, build_cart_item_response

logger = get_logger(__name__)

CartLine = Tuple[Dict[str, Any], Optional[Dict[str, Any]]]


def load_cart(user_id: str) -> List[CartLine]:
    """
    Load a user's cart rows, each paired with its catalog item.

    The item is None when it has been deleted from the catalog since it was
    added to the cart.
    """
    cart_items: List[Dict[str, Any]] = []
    query_kwargs: Dict[str, Any] = {"KeyConditionExpression": Key("userId").eq(user_id)}
    while True:
        response = tables.cart_items.query(**query_kwargs)
        cart_items.extend(response.get("Items", []))
        last_evaluated_key = response.get("LastEvaluatedKey")
        if last_evaluated_key is None:
            break
        query_kwargs["ExclusiveStartKey"] = last_evaluated_key

    cart_items.sort(key=lambda c: str(c.get("createdAt", "")))

    lines: List[CartLine] = []
    for cart_item in cart_items:
        item = tables.items.get_item(Key={"itemId": cart_item["itemId"]}).get("Item")
        if item is None:
            logger.warning(
                "Cart references a missing item",
                cart_item_id=cart_item.get("cartItemId"),
                item_id=cart_item["itemId"],
            )
        lines.append((cart_item, item))
    return lines


def clear_cart(user_id: str, cart_items: Iterable[Dict[str, Any]]) -> int:
    """Delete the given cart rows in one batch. Returns the number of rows deleted."""
    keys = [{"userId": user_id, "itemId": c["itemId"]} for c in cart_items]
    with tables.cart_items.batch_writer(overwrite_by_pkeys=["userId", "itemId"]) as batch:
        for key in keys:
            batch.delete_item(Key=key)
    return len(keys)


def add_to_cart(event: Dict[str, Any], context: Any) -> CartItemResponse:
    """
    Add one unit of an item to the caller's cart.

    Args:
        event: AppSync event with arguments {id} (the item ID)
        context: Lambda context

    Raises:
        AppError: UNAUTHENTICATED, NOT_FOUND if the item does not exist
    """
    caller_id = require_identity(event)
    item_id = ensure_item_id(get_argument_required(event, "id"))

    item = tables.items.get_item(Key={"itemId": item_id}).get("Item")
    if item is None:
        raise AppError(ErrorCode.NOT_FOUND, f"Item {item_id} not found")

    now = datetime.now(timezone.utc).isoformat()
    response = tables.cart_items.update_item(
        Key={"userId": caller_id, "itemId": item_id},
        UpdateExpression=(
            "SET #cartItemId = if_not_exists(#cartItemId, :cartItemId), "
            "#createdAt = if_not_exists(#createdAt, :now), #updatedAt = :now "
            "ADD #quantity :one"
        ),
        ExpressionAttributeNames={
            "#cartItemId": "cartItemId",
            "#createdAt": "createdAt",
            "#updatedAt": "updatedAt",
            "#quantity": "quantity",
        },
        ExpressionAttributeValues={":cartItemId": new_id("CARTITEM"), ":now": now, ":one": 1},
        ReturnValues="ALL_NEW",
    )

    cart_item = response["Attributes"]
    logger.info(
        "Added to cart",
        user_id=caller_id,
        item_id=item_id,
        cart_item_id=cart_item["cartItemId"],
        quantity=int(cart_item["quantity"]),
    )
    return build_cart_item_response(cart_item, item)


def get_cart_item_record(cart_item_id: str) -> Optional[Dict[str, Any]]:
    """Look up a cart row through the cartItemId-index GSI."""
    response = tables.cart_items.query(
        IndexName="cartItemId-index",
        KeyConditionExpression=Key("cartItemId").eq(cart_item_id),
        Limit=1,
    )
    items = response.get("Items", [])
    return items[0] if items else None


def remove_from_cart(event: Dict[str, Any], context: Any) -> CartItemResponse:
    """
    Remove a cart row owned by the caller.

    Args:
        event: AppSync event with arguments {id} (the cart item ID)

    Raises:
        AppError: UNAUTHENTICATED, NOT_FOUND, UNAUTHORIZED if the row belongs to someone else
    """
    caller_id = require_identity(event)
    cart_item_id = ensure_cart_item_id(get_argument_required(event, "id"))

    cart_item = get_cart_item_record(cart_item_id)
    if cart_item is None:
        raise AppError(ErrorCode.NOT_FOUND, "No cart item found!")

    if not is_owner(caller_id, cart_item):
        logger.warning("Attempt to remove another user's cart item", user_id=caller_id, cart_item_id=cart_item_id)
        raise AppError(ErrorCode.UNAUTHORIZED, "That cart item isn't yours")

    response = tables.cart_items.delete_item(
        Key={"userId": cart_item["userId"], "itemId": cart_item["itemId"]},
        ReturnValues="ALL_OLD",
    )

    logger.info("Removed from cart", user_id=caller_id, cart_item_id=cart_item_id)
    return build_cart_item_response(response.get("Attributes", cart_item))
