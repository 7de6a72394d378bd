"""
Credential management Lambda resolvers.

Implements:
- signUp: create an account and start a session
- signin: verify credentials and start a session
- signout: clear the session cookie
- requestReset: issue a one-hour password reset token by email
- resetPassword: redeem a reset token and start a session
"""

import secrets
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from boto3.dynamodb.conditions import Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from utils.appsync_types import get_argument, get_argument_required
    from utils.auth import Permission
    from utils.config import RESET_TOKEN_TTL_MS, SIGNIN_COOKIE_DAYS, SIGNUP_COOKIE_DAYS, load_settings
    from utils.dynamodb import tables
    from utils.errors import AppError, ErrorCode
    from utils.ids import email_lock_id, new_id
    from utils.logging import get_logger
    from utils.mail import make_a_nice_email, send_mail
    from utils.passwords import hash_password, verify_password
    from utils.responses import MessageResponse, SessionPayload, build_user_response
    from utils.session import build_clear_cookie, start_session
    from utils.validation import normalize_email, validate_password, validate_passwords_match
except ModuleNotFoundError:  # pragma: no cover
    from ..utils.appsync_types import get_argument, get_argument_required
    from ..utils.auth import Permission
    from ..utils.config import RESET_TOKEN_TTL_MS, SIGNIN_COOKIE_DAYS, SIGNUP_COOKIE_DAYS, load_settings
    from ..utils.dynamodb import tables
    from ..utils.errors import AppError, ErrorCode
    from ..utils.ids import email_lock_id, new_id
    from ..utils.logging import get_logger
    from ..utils.mail import make_a_nice_email, send_mail
    from ..utils.passwords import hash_password, verify_password
    from ..utils.responses import MessageResponse, SessionPayload, build_user_response
    from ..utils.session import build_clear_cookie, start_session
    from ..utils.validation import normalize_email, validate_password, validate_passwords_match

logger = get_logger(__name__)

SIGNOUT_MESSAGE = "Goodbye! Thanks for shopping with us."
RESET_REQUESTED_MESSAGE = "Thanks!"


def _now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def find_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    """Look up a user through the email-index GSI."""
    response = tables.users.query(
        IndexName="email-index",
        KeyConditionExpression=Key("email").eq(email),
        Limit=1,
    )
    items = response.get("Items", [])
    return items[0] if items else None


def sign_up(event: Dict[str, Any], context: Any) -> SessionPayload:
    """
    Create a new account with the default USER permission and sign it in.

    Args:
        event: AppSync event with arguments {email, name, password}
        context: Lambda context

    Returns:
        {user, cookie} where cookie is the Set-Cookie value for the new session

    Raises:
        AppError: VALIDATION_ERROR on bad input, ALREADY_EXISTS if the email is taken
    """
    email = normalize_email(get_argument_required(event, "email"))
    name = str(get_argument(event, "name", "") or "").strip()
    password = validate_password(get_argument(event, "password"))

    if find_user_by_email(email) is not None:
        raise AppError(ErrorCode.ALREADY_EXISTS, f"An account already exists for {email}")

    now = datetime.now(timezone.utc).isoformat()
    user = {
        "userId": new_id("USER"),
        "email": email,
        "name": name,
        "password": hash_password(password),
        "permissions": [Permission.USER],
        "createdAt": now,
        "updatedAt": now,
    }

    users_table_name = tables.users.name
    serializer = TypeSerializer()
    email_lock = {"userId": email_lock_id(email), "ownerUserId": user["userId"], "createdAt": now}

    # The email lock row makes the email claim atomic with the user write
    try:
        tables.users.meta.client.transact_write_items(
            TransactItems=[
                {
                    "Put": {
                        "TableName": users_table_name,
                        "Item": {k: serializer.serialize(v) for k, v in user.items()},
                        "ConditionExpression": "attribute_not_exists(userId)",
                    }
                },
                {
                    "Put": {
                        "TableName": users_table_name,
                        "Item": {k: serializer.serialize(v) for k, v in email_lock.items()},
                        "ConditionExpression": "attribute_not_exists(userId)",
                    }
                },
            ]
        )
    except ClientError as e:
        if e.response["Error"]["Code"] == "TransactionCanceledException":
            raise AppError(ErrorCode.ALREADY_EXISTS, f"An account already exists for {email}")
        logger.error("Failed to create user", email=email, error=str(e))
        raise

    logger.info("User signed up", user_id=user["userId"])

    return SessionPayload(
        user=build_user_response(user),
        cookie=start_session(user["userId"], SIGNUP_COOKIE_DAYS),
    )


def signin(event: Dict[str, Any], context: Any) -> SessionPayload:
    """
    Verify an email/password pair and start a session.

    Raises:
        AppError: NOT_FOUND for an unknown email, INVALID_CREDENTIAL for a wrong password
    """
    email = normalize_email(get_argument_required(event, "email"))
    password = get_argument(event, "password") or ""

    user = find_user_by_email(email)
    if user is None:
        raise AppError(ErrorCode.NOT_FOUND, f"No such user found for email {email}")

    if not verify_password(password, str(user.get("password", ""))):
        logger.warning("Invalid password on signin", user_id=user["userId"])
        raise AppError(ErrorCode.INVALID_CREDENTIAL, "Invalid password!")

    logger.info("User signed in", user_id=user["userId"])

    return SessionPayload(
        user=build_user_response(user),
        cookie=start_session(user["userId"], SIGNIN_COOKIE_DAYS),
    )


def signout(event: Dict[str, Any], context: Any) -> SessionPayload:
    """Clear the session cookie. Tokens are stateless so there is nothing to revoke."""
    return SessionPayload(message=SIGNOUT_MESSAGE, cookie=build_clear_cookie())


def request_reset(event: Dict[str, Any], context: Any) -> MessageResponse:
    """
    Issue a password reset token and email the reset link.

    The confirmation message is returned even when the email cannot be sent;
    mail failures are only logged.

    Raises:
        AppError: NOT_FOUND for an unknown email
    """
    email = normalize_email(get_argument_required(event, "email"))

    user = find_user_by_email(email)
    if user is None:
        raise AppError(ErrorCode.NOT_FOUND, f"No such user found for email {email}")

    reset_token = secrets.token_bytes(20).hex()
    reset_token_expiry = _now_ms() + RESET_TOKEN_TTL_MS

    tables.users.update_item(
        Key={"userId": user["userId"]},
        UpdateExpression="SET #resetToken = :token, #resetTokenExpiry = :expiry, #updatedAt = :now",
        ExpressionAttributeNames={
            "#resetToken": "resetToken",
            "#resetTokenExpiry": "resetTokenExpiry",
            "#updatedAt": "updatedAt",
        },
        ExpressionAttributeValues={
            ":token": reset_token,
            ":expiry": reset_token_expiry,
            ":now": datetime.now(timezone.utc).isoformat(),
        },
    )

    reset_link = load_settings().reset_link(reset_token)
    try:
        send_mail(
            to=str(user["email"]),
            subject="Your Password Reset Token",
            html_body=make_a_nice_email(
                f"Your Password Reset Token is here!\n<br>\n"
                f'<a href="{reset_link}">Click Here to Reset</a>'
            ),
        )
    except (ClientError, BotoCoreError) as e:
        logger.error("Failed to send password reset email", user_id=user["userId"], error=str(e))

    logger.info("Password reset requested", user_id=user["userId"])
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


def find_user_by_reset_token(reset_token: str) -> Optional[Dict[str, Any]]:
    """Return the user holding an unexpired reset token, if any."""
    response = tables.users.query(
        IndexName="resetToken-index",
        KeyConditionExpression=Key("resetToken").eq(reset_token),
    )
    now = _now_ms()
    for user in response.get("Items", []):
        if int(user.get("resetTokenExpiry", 0)) > now:
            return user
    return None


def reset_password(event: Dict[str, Any], context: Any) -> SessionPayload:
    """
    Set a new password using a reset token and start a session.

    Raises:
        AppError: VALIDATION_ERROR if the passwords differ,
            INVALID_OR_EXPIRED_TOKEN if the token is unknown, used or expired
    """
    password = validate_passwords_match(
        get_argument(event, "password"), get_argument(event, "confirmPassword")
    )
    reset_token = str(get_argument(event, "resetToken") or "")

    user = find_user_by_reset_token(reset_token) if reset_token else None
    if user is None:
        raise AppError(ErrorCode.INVALID_OR_EXPIRED_TOKEN, "This token is either invalid or expired")

    try:
        response = tables.users.update_item(
            Key={"userId": user["userId"]},
            UpdateExpression="SET #password = :password, #updatedAt = :now REMOVE #resetToken, #resetTokenExpiry",
            ConditionExpression="#resetToken = :token",
            ExpressionAttributeNames={
                "#password": "password",
                "#updatedAt": "updatedAt",
                "#resetToken": "resetToken",
                "#resetTokenExpiry": "resetTokenExpiry",
            },
            ExpressionAttributeValues={
                ":password": hash_password(password),
                ":now": datetime.now(timezone.utc).isoformat(),
                ":token": reset_token,
            },
            ReturnValues="ALL_NEW",
        )
    except ClientError as e:
        if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
            raise AppError(ErrorCode.INVALID_OR_EXPIRED_TOKEN, "This token is either invalid or expired")
        raise

    updated_user = response["Attributes"]
    logger.info("Password reset", user_id=updated_user["userId"])

    return SessionPayload(
        user=build_user_response(updated_user),
        cookie=start_session(updated_user["userId"], SIGNIN_COOKIE_DAYS),
    )
