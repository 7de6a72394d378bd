"""
Test fixtures for Lambda resolver tests.

Provides common test data and mocked AWS resources.
"""

from typing import Any, Dict, Generator

import boto3
import pytest
from moto import mock_aws

from src.utils.dynamodb import clear_all_overrides, reset_singleton
from src.utils.passwords import hash_password
from tests.unit.fixtures import MAIL_FROM, SAMPLE_PASSWORD, make_item, make_user
from tests.unit.table_schemas import (
    CART_ITEMS_TABLE_NAME,
    ITEMS_TABLE_NAME,
    ORDERS_TABLE_NAME,
    USERS_TABLE_NAME,
    create_all_tables,
)


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Set fake AWS credentials and storefront configuration."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("USERS_TABLE_NAME", USERS_TABLE_NAME)
    monkeypatch.setenv("ITEMS_TABLE_NAME", ITEMS_TABLE_NAME)
    monkeypatch.setenv("CART_ITEMS_TABLE_NAME", CART_ITEMS_TABLE_NAME)
    monkeypatch.setenv("ORDERS_TABLE_NAME", ORDERS_TABLE_NAME)
    monkeypatch.setenv("APP_SECRET", "test-app-secret-with-enough-length-for-hs256")
    monkeypatch.setenv("FRONTEND_URL", "https://shop.example.com")
    monkeypatch.setenv("MAIL_FROM", MAIL_FROM)
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.delenv("DYNAMODB_ENDPOINT", raising=False)
    monkeypatch.delenv("SES_ENDPOINT", raising=False)
    clear_all_overrides()
    reset_singleton()
    yield
    clear_all_overrides()
    reset_singleton()


@pytest.fixture
def dynamodb_tables() -> Generator[Dict[str, Any], None, None]:
    """Create all mock storefront tables inside a moto session."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        yield create_all_tables(dynamodb)


@pytest.fixture
def users_table(dynamodb_tables: Dict[str, Any]) -> Any:
    return dynamodb_tables["users"]


@pytest.fixture
def items_table(dynamodb_tables: Dict[str, Any]) -> Any:
    return dynamodb_tables["items"]


@pytest.fixture
def cart_items_table(dynamodb_tables: Dict[str, Any]) -> Any:
    return dynamodb_tables["cart_items"]


@pytest.fixture
def orders_table(dynamodb_tables: Dict[str, Any]) -> Any:
    return dynamodb_tables["orders"]


@pytest.fixture
def verified_sender(dynamodb_tables: Dict[str, Any]) -> str:
    """Verify the MAIL_FROM identity in mocked SES so sends succeed."""
    ses = boto3.client("ses", region_name="us-east-1")
    ses.verify_email_identity(EmailAddress=MAIL_FROM)
    return MAIL_FROM


@pytest.fixture(scope="session")
def sample_password_hash() -> str:
    """bcrypt hash of SAMPLE_PASSWORD, computed once per test session."""
    return hash_password(SAMPLE_PASSWORD)


@pytest.fixture
def sample_user(users_table: Any, sample_password_hash: str) -> Dict[str, Any]:
    """Regular shopper with the default USER permission."""
    user = make_user(
        user_id="USER#shopper-1",
        email="shopper@example.com",
        password_hash=sample_password_hash,
    )
    users_table.put_item(Item=user)
    return user


@pytest.fixture
def other_user(users_table: Any) -> Dict[str, Any]:
    """Another regular shopper."""
    user = make_user(user_id="USER#shopper-2", email="other@example.com")
    users_table.put_item(Item=user)
    return user


@pytest.fixture
def admin_user(users_table: Any) -> Dict[str, Any]:
    """Administrator holding ADMIN and USER."""
    user = make_user(user_id="USER#admin-1", email="admin@example.com", permissions=["ADMIN", "USER"])
    users_table.put_item(Item=user)
    return user


@pytest.fixture
def sample_item(items_table: Any, sample_user: Dict[str, Any]) -> Dict[str, Any]:
    """Catalog item owned by sample_user."""
    item = make_item(sample_user["userId"], item_id="ITEM#hat-1", title="Hat", price=1500)
    items_table.put_item(Item=item)
    return item


@pytest.fixture
def second_item(items_table: Any, other_user: Dict[str, Any]) -> Dict[str, Any]:
    """Catalog item owned by other_user."""
    item = make_item(other_user["userId"], item_id="ITEM#scarf-1", title="Scarf", price=2500)
    items_table.put_item(Item=item)
    return item


@pytest.fixture
def lambda_context() -> Any:
    """Mock Lambda context."""

    class Context:
        function_name = "test-function"
        memory_limit_in_mb = 128
        invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:test-function"
        aws_request_id = "test-request-id"

    return Context()
