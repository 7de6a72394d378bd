"""
Order Lambda resolvers.

createOrder turns the caller's cart into a paid order:

1. load the cart with item details
2. total = sum(price * quantity)
3. charge the total through the payment gateway
4. write the order with denormalized order lines
5. delete the cart rows

A failed charge stops before anything is written. There is no compensating
action if step 5 fails: the order and the charge already exist and the error
is logged with both references before it propagates.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

from boto3.dynamodb.conditions import Key

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from handlers.cart_operations import clear_cart, load_cart
    from utils.appsync_types import get_argument_required
    from utils.auth import Permission, get_caller_user, has_permission, is_owner, require_identity
    from utils.config import ORDER_CURRENCY
    from utils.dynamodb import tables
    from utils.errors import AppError, ErrorCode
    from utils.ids import ensure_order_id, new_id
    from utils.logging import get_logger
    from utils.payments import charge
    from utils.responses import OrderResponse, build_order_response
except ModuleNotFoundError:  # pragma: no cover
    from ..utils.appsync_types import get_argument_required
    from ..utils.auth import Permission, get_caller_user, has_permission, is_owner, require_identity
    from ..utils.config import ORDER_CURRENCY
    from ..utils.dynamodb import tables
    from ..utils.errors import AppError, ErrorCode
    from ..utils.ids import ensure_order_id, new_id
    from ..utils.logging import get_logger
    from ..utils.payments import charge
    from ..utils.responses import OrderResponse, build_order_response
    from .cart_operations import clear_cart, load_cart

logger = get_logger(__name__)

# Owners need one of these to read an order
VIEW_ORDER_PERMISSIONS = [Permission.ADMIN, Permission.USER]

# Item attributes copied onto each order line
ORDER_LINE_FIELDS = ("title", "description", "price", "image", "largeImage")


def _to_order_line(cart_item: Dict[str, Any], item: Dict[str, Any]) -> Dict[str, Any]:
    """Snapshot an item into an order line with no reference back to the item."""
    line = {field: item[field] for field in ORDER_LINE_FIELDS if item.get(field) is not None}
    line["orderItemId"] = new_id("ORDERITEM")
    line["quantity"] = int(cart_item["quantity"])
    return line


def create_order(event: Dict[str, Any], context: Any) -> OrderResponse:
    """
    Charge the caller for their cart and record the order.

    Args:
        event: AppSync event with arguments {token} (client payment token)
        context: Lambda context

    Returns:
        The created Order

    Raises:
        AppError: UNAUTHENTICATED, VALIDATION_ERROR for an empty cart,
            PAYMENT_FAILED if the gateway declines the charge
    """
    user = get_caller_user(event)
    user_id = user["userId"]
    token = get_argument_required(event, "token")

    cart = load_cart(user_id)
    lines = [(cart_item, item) for cart_item, item in cart if item is not None]
    if not lines:
        raise AppError(ErrorCode.VALIDATION_ERROR, "Your cart is empty")

    amount = sum(int(item["price"]) * int(cart_item["quantity"]) for cart_item, item in lines)
    logger.info("Charging for order", user_id=user_id, amount=amount, currency=ORDER_CURRENCY)

    payment = charge(amount, ORDER_CURRENCY, token)

    now = datetime.now(timezone.utc).isoformat()
    order = {
        "orderId": new_id("ORDER"),
        "userId": user_id,
        "total": payment["amount"],
        "charge": payment["id"],
        "items": [_to_order_line(cart_item, item) for cart_item, item in lines],
        "createdAt": now,
    }
    tables.orders.put_item(Item=order)
    logger.info("Order created", order_id=order["orderId"], user_id=user_id, charge_id=payment["id"])

    # Rows whose item vanished are cleared too
    try:
        removed = clear_cart(user_id, [cart_item for cart_item, _ in cart])
    except Exception as e:
        logger.error(
            "Order created but cart could not be cleared",
            order_id=order["orderId"],
            charge_id=payment["id"],
            user_id=user_id,
            error=str(e),
        )
        raise

    logger.info("Cart cleared", user_id=user_id, cart_items_removed=removed)
    return build_order_response(order)


def get_order(event: Dict[str, Any], context: Any) -> OrderResponse:
    """
    Return one order. The caller must own it and hold ADMIN or USER.

    Raises:
        AppError: UNAUTHENTICATED, NOT_FOUND, UNAUTHORIZED
    """
    caller = get_caller_user(event)
    order_id = ensure_order_id(get_argument_required(event, "id"))

    order = tables.orders.get_item(Key={"orderId": order_id}).get("Item")
    if order is None:
        raise AppError(ErrorCode.NOT_FOUND, f"Order {order_id} not found")

    if not is_owner(caller["userId"], order):
        raise AppError(ErrorCode.UNAUTHORIZED, "You don't have permission to see this order!")
    has_permission(caller, VIEW_ORDER_PERMISSIONS)

    return build_order_response(order)


def list_orders(event: Dict[str, Any], context: Any) -> List[OrderResponse]:
    """
    List the caller's orders, newest first.

    Raises:
        AppError: UNAUTHENTICATED
    """
    caller_id = require_identity(event)

    orders: List[Dict[str, Any]] = []
    query_kwargs: Dict[str, Any] = {
        "IndexName": "userId-index",
        "KeyConditionExpression": Key("userId").eq(caller_id),
    }
    while True:
        response = tables.orders.query(**query_kwargs)
        orders.extend(response.get("Items", []))
        last_evaluated_key = response.get("LastEvaluatedKey")
        if last_evaluated_key is None:
            break
        query_kwargs["ExclusiveStartKey"] = last_evaluated_key

    orders.sort(key=lambda o: str(o.get("createdAt", "")), reverse=True)
    return [build_order_response(order) for order in orders]
