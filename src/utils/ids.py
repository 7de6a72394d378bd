"""
ID utilities for DynamoDB prefixed IDs.

Provides consistent handling of entity ID prefixes (USER#, ITEM#, etc.)
across all Lambda handlers and utilities.
"""

import uuid
from typing import Optional


def new_id(prefix: str) -> str:
    """
    Generate a new prefixed ID.

    Examples:
        >>> new_id('ORDER').startswith('ORDER#')
        True
    """
    return f"{prefix}#{uuid.uuid4()}"


def ensure_prefix(prefix: str, id_value: Optional[str]) -> Optional[str]:
    """
    Ensure an ID has the specified prefix.

    Args:
        prefix: Prefix without '#' (e.g., 'USER', 'ITEM')
        id_value: ID to normalize, may be None

    Returns:
        ID with prefix, or None if input was None

    Examples:
        >>> ensure_prefix('ITEM', 'abc-123')
        'ITEM#abc-123'
        >>> ensure_prefix('ITEM', 'ITEM#abc-123')
        'ITEM#abc-123'
    """
    if not id_value:
        return None
    wanted = f"{prefix}#"
    return id_value if id_value.startswith(wanted) else f"{wanted}{id_value}"


def email_lock_id(email: str) -> str:
    """
    Key of the users-table row that reserves an email address.

    Examples:
        >>> email_lock_id('shopper@example.com')
        'EMAIL#shopper@example.com'
    """
    return f"EMAIL#{email}"


# Entity-specific helpers
def ensure_user_id(id_value: Optional[str]) -> Optional[str]:
    """Normalize user ID with USER# prefix."""
    return ensure_prefix("USER", id_value)


def ensure_item_id(id_value: Optional[str]) -> Optional[str]:
    """Normalize item ID with ITEM# prefix."""
    return ensure_prefix("ITEM", id_value)


def ensure_cart_item_id(id_value: Optional[str]) -> Optional[str]:
    """Normalize cart item ID with CARTITEM# prefix."""
    return ensure_prefix("CARTITEM", id_value)


def ensure_order_id(id_value: Optional[str]) -> Optional[str]:
    """Normalize order ID with ORDER# prefix."""
    return ensure_prefix("ORDER", id_value)
