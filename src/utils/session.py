"""
Session token utilities.

Session tokens are stateless HS256 JWTs carrying the user ID. They travel in an
HttpOnly ``token`` cookie; signing out only clears the cookie.
"""

from http.cookies import SimpleCookie
from typing import Any, Dict, Optional

import jwt

from .appsync_types import get_request_cookie
from .config import load_settings
from .logging import get_logger

logger = get_logger(__name__)

SESSION_COOKIE_NAME = "token"
_ALGORITHM = "HS256"
_SECONDS_PER_DAY = 60 * 60 * 24


def issue_session_token(user_id: str) -> str:
    """Sign a session token for the given user."""
    return jwt.encode({"userId": user_id}, load_settings().app_secret, algorithm=_ALGORITHM)


def decode_session_token(token: str) -> Optional[str]:
    """
    Verify a session token and return its user ID.

    Returns:
        The ``userId`` claim, or None if the token is invalid or tampered with
    """
    try:
        payload = jwt.decode(token, load_settings().app_secret, algorithms=[_ALGORITHM])
    except jwt.InvalidTokenError as e:
        logger.warning("Rejected session token", error=str(e))
        return None
    user_id = payload.get("userId")
    return str(user_id) if user_id else None


def build_session_cookie(token: str, max_age_days: int) -> str:
    """Render the Set-Cookie header value for a session token."""
    cookie: SimpleCookie = SimpleCookie()
    cookie[SESSION_COOKIE_NAME] = token
    morsel = cookie[SESSION_COOKIE_NAME]
    morsel["httponly"] = True
    morsel["path"] = "/"
    morsel["max-age"] = max_age_days * _SECONDS_PER_DAY
    return morsel.OutputString()


def build_clear_cookie() -> str:
    """Render the Set-Cookie header value that removes the session cookie."""
    cookie: SimpleCookie = SimpleCookie()
    cookie[SESSION_COOKIE_NAME] = ""
    morsel = cookie[SESSION_COOKIE_NAME]
    morsel["httponly"] = True
    morsel["path"] = "/"
    morsel["expires"] = "Thu, 01 Jan 1970 00:00:00 GMT"
    return morsel.OutputString()


def start_session(user_id: str, max_age_days: int) -> str:
    """Issue a session token and return its Set-Cookie header value."""
    return build_session_cookie(issue_session_token(user_id), max_age_days)


def resolve_identity(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Attach a caller identity decoded from the session cookie.

    Events that already carry an identity are returned unchanged. Otherwise the
    ``token`` cookie is verified and, if valid, its user ID becomes
    ``identity.sub`` on a copy of the event.
    """
    if (event.get("identity") or {}).get("sub"):
        return event

    token = get_request_cookie(event, SESSION_COOKIE_NAME)
    if not token:
        return event

    user_id = decode_session_token(token)
    if user_id is None:
        return event

    return {**event, "identity": {"sub": user_id}}
