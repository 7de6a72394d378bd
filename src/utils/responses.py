"""
GraphQL response builders for Lambda resolvers.

Provides consistent response structures and entity builders for
AppSync GraphQL resolvers. Credential fields (password hash, reset token)
never leave the persistence layer.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, TypedDict, cast


class ItemResponse(TypedDict, total=False):
    """GraphQL Item response type."""

    id: str
    title: str
    description: Optional[str]
    price: int
    image: Optional[str]
    largeImage: Optional[str]
    userId: str
    createdAt: str
    updatedAt: str


class CartItemResponse(TypedDict, total=False):
    """GraphQL CartItem response type."""

    id: str
    quantity: int
    userId: str
    itemId: str
    item: Optional[ItemResponse]


class UserResponse(TypedDict, total=False):
    """GraphQL User response type."""

    id: str
    email: str
    name: str
    permissions: List[str]
    cart: List[CartItemResponse]
    createdAt: str
    updatedAt: str


class OrderItemResponse(TypedDict, total=False):
    """GraphQL OrderItem response type (denormalized copy of an Item)."""

    id: str
    title: str
    description: Optional[str]
    price: int
    image: Optional[str]
    largeImage: Optional[str]
    quantity: int


class OrderResponse(TypedDict, total=False):
    """GraphQL Order response type."""

    id: str
    userId: str
    total: int
    charge: str
    items: List[OrderItemResponse]
    createdAt: str


class MessageResponse(TypedDict):
    """GraphQL SuccessMessage response type."""

    message: str


class SessionPayload(TypedDict, total=False):
    """Result of an operation that starts or ends a session."""

    user: UserResponse
    message: str
    cookie: str


def _to_int(value: Any, default: int = 0) -> int:
    """Convert DynamoDB numbers (Decimal) to int."""
    if value is None:
        return default
    try:
        return int(Decimal(str(value)))
    except (ArithmeticError, ValueError, TypeError):
        return default


def build_item_response(item: Dict[str, Any]) -> ItemResponse:
    """Build an Item response from a DynamoDB item."""
    return ItemResponse(
        id=cast(str, item.get("itemId", "")),
        title=cast(str, item.get("title", "")),
        description=item.get("description"),
        price=_to_int(item.get("price")),
        image=item.get("image"),
        largeImage=item.get("largeImage"),
        userId=cast(str, item.get("ownerUserId", "")),
        createdAt=cast(str, item.get("createdAt", "")),
        updatedAt=cast(str, item.get("updatedAt", "")),
    )


def build_cart_item_response(
    cart_item: Dict[str, Any], item: Optional[Dict[str, Any]] = None
) -> CartItemResponse:
    """
    Build a CartItem response.

    Args:
        cart_item: DynamoDB cart item row
        item: Catalog item to embed (optional)
    """
    response = CartItemResponse(
        id=cast(str, cart_item.get("cartItemId", "")),
        quantity=_to_int(cart_item.get("quantity"), default=1),
        userId=cast(str, cart_item.get("userId", "")),
        itemId=cast(str, cart_item.get("itemId", "")),
    )
    if item is not None:
        response["item"] = build_item_response(item)
    return response


def build_user_response(
    user: Dict[str, Any], *, cart: Optional[List[CartItemResponse]] = None
) -> UserResponse:
    """
    Build a User response from a DynamoDB item.

    Args:
        user: DynamoDB user item
        cart: Hydrated cart lines to embed (optional)
    """
    response = UserResponse(
        id=cast(str, user.get("userId", "")),
        email=cast(str, user.get("email", "")),
        name=cast(str, user.get("name", "")),
        permissions=[str(p) for p in user.get("permissions") or []],
        createdAt=cast(str, user.get("createdAt", "")),
        updatedAt=cast(str, user.get("updatedAt", "")),
    )
    if cart is not None:
        response["cart"] = cart
    return response


def build_order_item_response(line: Dict[str, Any]) -> OrderItemResponse:
    """Build an OrderItem response from a stored order line."""
    return OrderItemResponse(
        id=cast(str, line.get("orderItemId", "")),
        title=cast(str, line.get("title", "")),
        description=line.get("description"),
        price=_to_int(line.get("price")),
        image=line.get("image"),
        largeImage=line.get("largeImage"),
        quantity=_to_int(line.get("quantity"), default=1),
    )


def build_order_response(order: Dict[str, Any]) -> OrderResponse:
    """Build an Order response from a DynamoDB item."""
    lines = order.get("items", [])
    if not isinstance(lines, list):
        lines = []

    return OrderResponse(
        id=cast(str, order.get("orderId", "")),
        userId=cast(str, order.get("userId", "")),
        total=_to_int(order.get("total")),
        charge=cast(str, order.get("charge", "")),
        items=[build_order_item_response(line) for line in lines],
        createdAt=cast(str, order.get("createdAt", "")),
    )


def success_result(data: Any) -> Dict[str, Any]:
    """Tagged result for a resolver that completed."""
    return {"ok": True, "data": data}


def failure_result(error: Dict[str, Any]) -> Dict[str, Any]:
    """Tagged result for a resolver that failed with a named error kind."""
    return {"ok": False, "error": error}
