"""
Input validation utilities.

Validates emails, passwords, item fields, permissions and pagination.
"""

import re
from typing import Any, Dict, Iterable, List, Optional

from .errors import AppError, ErrorCode

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Item attributes a client may set on create/update
ITEM_FIELDS = ("title", "description", "price", "image", "largeImage")

MAX_PAGE_SIZE = 100

# bcrypt only hashes the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


def normalize_email(email: str) -> str:
    """
    Lowercase and trim an email address.

    Raises:
        AppError: If the address is not plausibly an email
    """
    normalized = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(normalized):
        raise AppError(ErrorCode.VALIDATION_ERROR, "A valid email address is required", {"email": email})
    return normalized


def validate_password(password: Optional[str]) -> str:
    """
    Reject empty passwords and passwords bcrypt cannot hash.

    Raises:
        AppError: VALIDATION_ERROR if empty or longer than MAX_PASSWORD_BYTES
    """
    if not password:
        raise AppError(ErrorCode.VALIDATION_ERROR, "Password is required")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise AppError(
            ErrorCode.VALIDATION_ERROR,
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
            {"maxBytes": MAX_PASSWORD_BYTES},
        )
    return password


def validate_passwords_match(password: Optional[str], confirm_password: Optional[str]) -> str:
    """
    Ensure a new password and its confirmation agree.

    Raises:
        AppError: VALIDATION_ERROR on mismatch
    """
    if password != confirm_password:
        raise AppError(ErrorCode.VALIDATION_ERROR, "Passwords don't match, please try again.")
    return validate_password(password)


def _validate_price(price: Any) -> int:
    if isinstance(price, bool) or not isinstance(price, int) or price < 0:
        raise AppError(
            ErrorCode.VALIDATION_ERROR,
            "Price must be a non-negative whole number of pence",
            {"price": price},
        )
    return price


def validate_item_input(data: Dict[str, Any], *, partial: bool = False) -> Dict[str, Any]:
    """
    Validate catalog item fields.

    Args:
        data: Raw arguments
        partial: True for updates, where every field is optional

    Returns:
        Only the recognized item fields that were provided
    """
    fields = {k: v for k, v in data.items() if k in ITEM_FIELDS and v is not None}

    if not partial or "title" in fields:
        title = str(fields.get("title", "")).strip()
        if not title:
            raise AppError(ErrorCode.VALIDATION_ERROR, "Item title is required")
        fields["title"] = title

    if not partial or "price" in fields:
        fields["price"] = _validate_price(fields.get("price"))

    if partial and not fields:
        raise AppError(
            ErrorCode.VALIDATION_ERROR,
            f"At least one field must be provided ({', '.join(ITEM_FIELDS)})",
        )

    return fields


def validate_permissions(permissions: Iterable[str], allowed: Iterable[str]) -> List[str]:
    """
    Ensure every requested permission is a known tag. Order is kept, duplicates dropped.

    Raises:
        AppError: VALIDATION_ERROR naming the unknown tags
    """
    allowed_set = set(allowed)
    requested = list(dict.fromkeys(permissions or []))
    unknown = [p for p in requested if p not in allowed_set]
    if unknown:
        raise AppError(ErrorCode.VALIDATION_ERROR, "Unknown permissions", {"unknown": unknown})
    return requested


def validate_pagination(skip: Any, first: Any) -> tuple[int, Optional[int]]:
    """Normalize skip/first pagination arguments."""
    skip_value = 0 if skip is None else skip
    if not isinstance(skip_value, int) or skip_value < 0:
        raise AppError(ErrorCode.VALIDATION_ERROR, "skip must be a non-negative integer")
    if first is None:
        return skip_value, None
    if not isinstance(first, int) or first < 0 or first > MAX_PAGE_SIZE:
        raise AppError(ErrorCode.VALIDATION_ERROR, f"first must be between 0 and {MAX_PAGE_SIZE}")
    return skip_value, first
