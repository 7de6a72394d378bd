"""
Read-only runtime configuration for the storefront resolvers.

Values come from the Lambda environment. Settings are rebuilt on each call so
tests can monkeypatch the environment; nothing here is mutated at runtime.
"""

import os
from dataclasses import dataclass
from typing import Optional

from .dynamodb import get_required_env

# Fixed charge currency for every order
ORDER_CURRENCY = "GBP"

# Session cookie lifetimes (days)
SIGNUP_COOKIE_DAYS = 365
SIGNIN_COOKIE_DAYS = 360

# Password reset tokens are valid for one hour after issuance
RESET_TOKEN_TTL_MS = 60 * 60 * 1000


@dataclass(frozen=True)
class Settings:
    """Environment configuration consumed by the resolvers."""

    app_secret: str
    frontend_url: str
    mail_from: str
    stripe_secret_key: str
    ses_endpoint: Optional[str] = None

    def reset_link(self, reset_token: str) -> str:
        """Build the password-reset link sent by email."""
        return f"{self.frontend_url.rstrip('/')}/reset?resetToken={reset_token}"


def load_settings() -> Settings:
    """
    Build Settings from the environment.

    Raises:
        ValueError: If a required variable is missing
    """
    return Settings(
        app_secret=get_required_env("APP_SECRET"),
        frontend_url=get_required_env("FRONTEND_URL"),
        mail_from=get_required_env("MAIL_FROM"),
        stripe_secret_key=get_required_env("STRIPE_SECRET_KEY"),
        ses_endpoint=os.getenv("SES_ENDPOINT"),
    )
