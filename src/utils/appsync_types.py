"""
Helpers for reading AppSync Lambda resolver events.

Events carry the caller identity, field arguments and the raw request
headers; these helpers extract them safely.
"""

from http.cookies import SimpleCookie
from typing import Any, Dict, Optional

from .errors import AppError, ErrorCode


def get_caller_id(event: Dict[str, Any]) -> Optional[str]:
    """
    Extract the caller's user ID from event.

    Args:
        event: AppSync event

    Returns:
        Caller ID or None if the request is anonymous
    """
    identity: Dict[str, Any] = event.get("identity") or {}
    result: Optional[str] = identity.get("sub")
    return result


def get_argument(event: Dict[str, Any], name: str, default: Any = None) -> Any:
    """
    Extract an argument from the event.

    Args:
        event: AppSync event
        name: Argument name
        default: Default value if not present

    Returns:
        Argument value or default
    """
    return (event.get("arguments") or {}).get(name, default)


def get_argument_required(event: Dict[str, Any], name: str) -> Any:
    """
    Extract a required argument from the event.

    Raises:
        AppError: VALIDATION_ERROR if argument is not present
    """
    value = get_argument(event, name)
    if value is None:
        raise AppError(ErrorCode.VALIDATION_ERROR, f"Argument '{name}' is required")
    return value


def get_request_cookie(event: Dict[str, Any], name: str) -> Optional[str]:
    """Read a cookie value from the incoming request headers."""
    headers = (event.get("request") or {}).get("headers") or {}
    raw = headers.get("cookie") or headers.get("Cookie")
    if not raw:
        return None
    cookie: SimpleCookie = SimpleCookie()
    cookie.load(raw)
    morsel = cookie.get(name)
    return morsel.value if morsel is not None else None
