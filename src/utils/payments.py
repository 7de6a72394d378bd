"""
Payment capture through Stripe.
"""

from typing import Any, Dict

import stripe

from .config import load_settings
from .errors import AppError, ErrorCode
from .logging import get_logger

logger = get_logger(__name__)


def charge(amount: int, currency: str, token: str) -> Dict[str, Any]:
    """
    Capture a card charge.

    Args:
        amount: Amount in minor units (pence)
        currency: ISO currency code
        token: Client-side payment token

    Returns:
        {"id": charge reference, "amount": captured amount}

    Raises:
        AppError: PAYMENT_FAILED carrying the gateway's message on decline or
            any other Stripe error
    """
    try:
        result = stripe.Charge.create(
            amount=amount,
            currency=currency,
            source=token,
            api_key=load_settings().stripe_secret_key,
        )
    except stripe.StripeError as e:
        message = getattr(e, "user_message", None) or str(e)
        logger.warning("Payment charge failed", amount=amount, currency=currency, error=message)
        raise AppError(
            ErrorCode.PAYMENT_FAILED,
            message,
            {"declineCode": getattr(e, "code", None)},
        ) from e

    return {"id": str(result["id"]), "amount": int(result["amount"])}
