"""Tests for input validation utilities."""

import pytest

from src.utils.auth import Permission
from src.utils.errors import AppError, ErrorCode
from src.utils.validation import (
    MAX_PASSWORD_BYTES,
    normalize_email,
    validate_item_input,
    validate_pagination,
    validate_password,
    validate_passwords_match,
    validate_permissions,
)


class TestNormalizeEmail:
    def test_lowercases_and_trims(self) -> None:
        assert normalize_email("  Shopper@Example.COM ") == "shopper@example.com"

    @pytest.mark.parametrize("email", ["", "no-at-sign", "a@b", "two@@example.com"])
    def test_invalid_email_rejected(self, email: str) -> None:
        with pytest.raises(AppError) as exc_info:
            normalize_email(email)

        assert exc_info.value.error_code == ErrorCode.VALIDATION_ERROR


class TestPasswordsMatch:
    def test_matching_passwords(self) -> None:
        assert validate_passwords_match("secret", "secret") == "secret"

    def test_mismatch_is_validation_error(self) -> None:
        with pytest.raises(AppError) as exc_info:
            validate_passwords_match("secret", "Secret")

        assert exc_info.value.error_code == ErrorCode.VALIDATION_ERROR

    def test_empty_password_rejected(self) -> None:
        with pytest.raises(AppError):
            validate_passwords_match("", "")


class TestValidatePassword:
    def test_limit_is_counted_in_utf8_bytes(self) -> None:
        assert validate_password("a" * MAX_PASSWORD_BYTES) == "a" * MAX_PASSWORD_BYTES

        with pytest.raises(AppError) as exc_info:
            validate_password("é" * (MAX_PASSWORD_BYTES // 2 + 1))

        assert exc_info.value.error_code == ErrorCode.VALIDATION_ERROR
        assert exc_info.value.details == {"maxBytes": 72}


class TestValidateItemInput:
    def test_full_item(self) -> None:
        fields = validate_item_input(
            {"title": " Hat ", "price": 1500, "description": "Warm", "id": "ignored", "bogus": 1}
        )

        assert fields == {"title": "Hat", "price": 1500, "description": "Warm"}

    def test_missing_title(self) -> None:
        with pytest.raises(AppError) as exc_info:
            validate_item_input({"price": 100})

        assert exc_info.value.error_code == ErrorCode.VALIDATION_ERROR

    @pytest.mark.parametrize("price", [-1, 9.99, "100", True, None])
    def test_bad_price(self, price: object) -> None:
        with pytest.raises(AppError) as exc_info:
            validate_item_input({"title": "Hat", "price": price})

        assert exc_info.value.error_code == ErrorCode.VALIDATION_ERROR

    def test_partial_update_only_checks_given_fields(self) -> None:
        assert validate_item_input({"id": "ITEM#1", "description": "New"}, partial=True) == {
            "description": "New"
        }

    def test_partial_update_with_nothing_to_change(self) -> None:
        with pytest.raises(AppError):
            validate_item_input({"id": "ITEM#1"}, partial=True)


class TestValidatePermissions:
    def test_known_permissions_deduplicated_in_order(self) -> None:
        assert validate_permissions(["USER", "ADMIN", "USER"], Permission.ALL) == ["USER", "ADMIN"]

    def test_unknown_permission(self) -> None:
        with pytest.raises(AppError) as exc_info:
            validate_permissions(["USER", "SUPERUSER"], Permission.ALL)

        assert exc_info.value.details == {"unknown": ["SUPERUSER"]}


class TestValidatePagination:
    def test_defaults(self) -> None:
        assert validate_pagination(None, None) == (0, None)

    def test_values(self) -> None:
        assert validate_pagination(4, 2) == (4, 2)

    @pytest.mark.parametrize("skip,first", [(-1, None), (0, -1), (0, 1000), ("1", None)])
    def test_invalid(self, skip: object, first: object) -> None:
        with pytest.raises(AppError):
            validate_pagination(skip, first)
