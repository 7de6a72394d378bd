"""
Test data builders for Lambda resolver tests.

Provides factory functions for creating test data with sensible defaults
and customization options. Use these to create test entities without
repeating boilerplate across test files.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

SAMPLE_PASSWORD = "correct horse battery staple"
MAIL_FROM = "shop@example.com"


def make_user_id(suffix: Optional[str] = None) -> str:
    """Generate a user ID in format 'USER#...'."""
    if suffix:
        return f"USER#{suffix}"
    return f"USER#{uuid4().hex[:12]}"


def make_item_id(suffix: Optional[str] = None) -> str:
    """Generate an item ID in format 'ITEM#...'."""
    if suffix:
        return f"ITEM#{suffix}"
    return f"ITEM#{uuid4().hex[:12]}"


def make_cart_item_id(suffix: Optional[str] = None) -> str:
    """Generate a cart item ID in format 'CARTITEM#...'."""
    if suffix:
        return f"CARTITEM#{suffix}"
    return f"CARTITEM#{uuid4().hex[:12]}"


def make_order_id(suffix: Optional[str] = None) -> str:
    """Generate an order ID in format 'ORDER#...'."""
    if suffix:
        return f"ORDER#{suffix}"
    return f"ORDER#{uuid4().hex[:12]}"


def now_iso() -> str:
    """Get current UTC time as ISO string."""
    return datetime.now(timezone.utc).isoformat()


def make_user(
    user_id: Optional[str] = None,
    email: Optional[str] = None,
    permissions: Optional[List[str]] = None,
    password_hash: str = "not-a-real-hash",
    **kwargs: Any,
) -> Dict[str, Any]:
    """Create a user row suitable for the users table."""
    user = {
        "userId": user_id or make_user_id(),
        "email": email or f"test-{uuid4().hex[:8]}@example.com",
        "name": "Test User",
        "password": password_hash,
        "permissions": permissions if permissions is not None else ["USER"],
        "createdAt": now_iso(),
        "updatedAt": now_iso(),
    }
    user.update(kwargs)
    return user


def make_item(
    owner_user_id: str,
    item_id: Optional[str] = None,
    title: str = "Test Item",
    price: int = 1000,
    **kwargs: Any,
) -> Dict[str, Any]:
    """Create a catalog item row suitable for the items table."""
    item = {
        "itemId": item_id or make_item_id(),
        "ownerUserId": owner_user_id,
        "title": title,
        "description": f"A fine {title.lower()}",
        "price": price,
        "image": "https://images.example.com/item.jpg",
        "largeImage": "https://images.example.com/item-large.jpg",
        "createdAt": now_iso(),
        "updatedAt": now_iso(),
    }
    item.update(kwargs)
    return item


def make_cart_item(
    user_id: str, item_id: str, quantity: int = 1, cart_item_id: Optional[str] = None
) -> Dict[str, Any]:
    """Create a cart row suitable for the cart items table."""
    return {
        "userId": user_id,
        "itemId": item_id,
        "cartItemId": cart_item_id or make_cart_item_id(),
        "quantity": quantity,
        "createdAt": now_iso(),
        "updatedAt": now_iso(),
    }


def make_event(
    field_name: str,
    parent_type: str = "Mutation",
    arguments: Optional[Dict[str, Any]] = None,
    caller_id: Optional[str] = None,
    **kwargs: Any,
) -> Dict[str, Any]:
    """Create an AppSync resolver event. Omit caller_id for an anonymous request."""
    event: Dict[str, Any] = {
        "arguments": arguments or {},
        "identity": {"sub": caller_id} if caller_id else None,
        "requestContext": {"requestId": "test-correlation-id"},
        "info": {"fieldName": field_name, "parentTypeName": parent_type},
    }
    event.update(kwargs)
    return event
