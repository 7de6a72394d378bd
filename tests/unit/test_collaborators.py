"""Tests for the payment, mail, password and configuration utilities."""

from typing import Any
from unittest.mock import patch

import pytest
import stripe
from botocore.exceptions import ClientError

from src.utils.config import load_settings
from src.utils.errors import AppError, ErrorCode
from src.utils.mail import make_a_nice_email, send_mail
from src.utils.passwords import hash_password, verify_password
from src.utils.payments import charge


class TestCharge:
    """Tests for Stripe charge capture."""

    def test_successful_charge(self) -> None:
        with patch("src.utils.payments.stripe.Charge.create") as mock_create:
            mock_create.return_value = {"id": "ch_123", "amount": 5500}

            result = charge(5500, "GBP", "tok_visa")

        assert result == {"id": "ch_123", "amount": 5500}
        mock_create.assert_called_once_with(
            amount=5500, currency="GBP", source="tok_visa", api_key="sk_test_123"
        )

    def test_decline_becomes_payment_failed(self) -> None:
        decline = stripe.CardError("Your card was declined.", None, "card_declined")
        with patch("src.utils.payments.stripe.Charge.create", side_effect=decline):
            with pytest.raises(AppError) as exc_info:
                charge(5500, "GBP", "tok_chargeDeclined")

        assert exc_info.value.error_code == ErrorCode.PAYMENT_FAILED
        assert "declined" in exc_info.value.message.lower()
        assert exc_info.value.details == {"declineCode": "card_declined"}


class TestMail:
    """Tests for SES mail sending."""

    def test_send_mail(self, verified_sender: str) -> None:
        response = send_mail("shopper@example.com", "Hello", "<p>Hi</p>")

        assert response["MessageId"]

    def test_unverified_sender_raises(self, dynamodb_tables: Any) -> None:
        with pytest.raises(ClientError):
            send_mail("shopper@example.com", "Hello", "<p>Hi</p>")

    def test_template_wraps_text(self) -> None:
        html = make_a_nice_email("Reset link inside")

        assert "Reset link inside" in html
        assert "Hello There!" in html


class TestPasswords:
    """Tests for bcrypt hashing."""

    def test_hash_is_not_plaintext_and_verifies(self) -> None:
        password_hash = hash_password("hunter2")

        assert password_hash != "hunter2"
        assert password_hash.startswith("$2b$10$")
        assert verify_password("hunter2", password_hash) is True
        assert verify_password("hunter3", password_hash) is False

    def test_non_bcrypt_stored_value(self) -> None:
        assert verify_password("hunter2", "plaintext") is False
        assert verify_password("hunter2", "") is False


class TestSettings:
    """Tests for configuration loading."""

    def test_loads_from_environment(self) -> None:
        settings = load_settings()

        assert settings.frontend_url == "https://shop.example.com"
        assert settings.reset_link("abc") == "https://shop.example.com/reset?resetToken=abc"

    def test_missing_secret_fails(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("APP_SECRET")

        with pytest.raises(ValueError):
            load_settings()

    def test_settings_are_read_only(self) -> None:
        settings = load_settings()

        with pytest.raises(AttributeError):
            settings.app_secret = "changed"  # type: ignore[misc]
