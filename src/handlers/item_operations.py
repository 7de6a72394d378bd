"""
Catalog item Lambda resolvers.

Reads (items, item, itemsConnection) are public pass-throughs to the items
table. Writes require a signed-in caller; updates and deletes additionally
require ownership or an item-management permission.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from utils.appsync_types import get_argument, get_argument_required
    from utils.auth import Permission, check_permission, get_caller_user, is_owner, require_identity
    from utils.dynamodb import tables
    from utils.errors import AppError, ErrorCode
    from utils.ids import ensure_item_id, new_id
    from utils.logging import get_logger
    from utils.responses import ItemResponse, build_item_response
    from utils.validation import validate_item_input, validate_pagination
except ModuleNotFoundError:  # pragma: no cover
    from ..utils.appsync_types import get_argument, get_argument_required
    from ..utils.auth import Permission, check_permission, get_caller_user, is_owner, require_identity
    from ..utils.dynamodb import tables
    from ..utils.errors import AppError, ErrorCode
    from ..utils.ids import ensure_item_id, new_id
    from ..utils.logging import get_logger
    from ..utils.responses import ItemResponse, build_item_response
    from ..utils.validation import validate_item_input, validate_pagination

logger = get_logger(__name__)

# Non-owners holding one of these may manage any item
UPDATE_ITEM_PERMISSIONS = [Permission.ADMIN, Permission.ITEMUPDATE]
DELETE_ITEM_PERMISSIONS = [Permission.ADMIN, Permission.DELETEITEM]

SORTABLE_FIELDS = ("createdAt", "title", "price")
DEFAULT_ORDER_BY = "createdAt_DESC"


def get_item_record(item_id: str) -> Optional[Dict[str, Any]]:
    """Fetch a raw item row by ID."""
    response = tables.items.get_item(Key={"itemId": item_id})
    return response.get("Item")


def _scan_items(search_term: Optional[str]) -> List[Dict[str, Any]]:
    """Scan the whole items table, keeping items whose title or description matches."""
    items: List[Dict[str, Any]] = []
    scan_kwargs: Dict[str, Any] = {}
    while True:
        response = tables.items.scan(**scan_kwargs)
        items.extend(response.get("Items", []))
        last_evaluated_key = response.get("LastEvaluatedKey")
        if last_evaluated_key is None:
            break
        scan_kwargs["ExclusiveStartKey"] = last_evaluated_key

    if search_term:
        needle = search_term.lower()
        items = [
            item
            for item in items
            if needle in str(item.get("title", "")).lower()
            or needle in str(item.get("description", "")).lower()
        ]
    return items


def _parse_order_by(order_by: Optional[str]) -> tuple[str, bool]:
    """Split 'field_ASC' / 'field_DESC' into (field, descending)."""
    field, _, direction = (order_by or DEFAULT_ORDER_BY).rpartition("_")
    if field not in SORTABLE_FIELDS or direction not in ("ASC", "DESC"):
        raise AppError(ErrorCode.VALIDATION_ERROR, f"Unsupported orderBy value '{order_by}'")
    return field, direction == "DESC"


def list_items(event: Dict[str, Any], context: Any) -> List[ItemResponse]:
    """
    List catalog items. Public.

    Arguments: skip, first (page window), orderBy (e.g. createdAt_DESC),
    searchTerm (matches title or description).
    """
    skip, first = validate_pagination(get_argument(event, "skip"), get_argument(event, "first"))
    field, descending = _parse_order_by(get_argument(event, "orderBy"))

    items = [build_item_response(item) for item in _scan_items(get_argument(event, "searchTerm"))]
    items.sort(key=lambda item: item.get(field) or (0 if field == "price" else ""), reverse=descending)

    end = None if first is None else skip + first
    return items[skip:end]


def get_item(event: Dict[str, Any], context: Any) -> Optional[ItemResponse]:
    """Return a single item, or None if it does not exist. Public."""
    item_id = ensure_item_id(get_argument_required(event, "id"))
    item = get_item_record(item_id)
    return build_item_response(item) if item else None


def items_connection(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Aggregate for pagination: {aggregate: {count}}. Public."""
    return {"aggregate": {"count": len(_scan_items(get_argument(event, "searchTerm")))}}


def create_item(event: Dict[str, Any], context: Any) -> ItemResponse:
    """
    Create a catalog item owned by the caller.

    Raises:
        AppError: UNAUTHENTICATED, VALIDATION_ERROR
    """
    caller_id = require_identity(event)
    fields = validate_item_input(event.get("arguments") or {})

    now = datetime.now(timezone.utc).isoformat()
    item = {
        **fields,
        "itemId": new_id("ITEM"),
        "ownerUserId": caller_id,
        "createdAt": now,
        "updatedAt": now,
    }
    tables.items.put_item(Item=item)

    logger.info("Item created", item_id=item["itemId"], user_id=caller_id)
    return build_item_response(item)


def update_item(event: Dict[str, Any], context: Any) -> ItemResponse:
    """
    Apply field changes to an item.

    Only the owner, or a caller holding ADMIN or ITEMUPDATE, may update it.

    Raises:
        AppError: UNAUTHENTICATED, NOT_FOUND, UNAUTHORIZED, VALIDATION_ERROR
    """
    caller = get_caller_user(event)
    arguments = event.get("arguments") or {}
    item_id = ensure_item_id(get_argument_required(event, "id"))

    item = get_item_record(item_id)
    if item is None:
        raise AppError(ErrorCode.NOT_FOUND, f"Item {item_id} not found")

    if not is_owner(caller["userId"], item, "ownerUserId") and not check_permission(
        caller, UPDATE_ITEM_PERMISSIONS
    ):
        raise AppError(ErrorCode.UNAUTHORIZED, "You don't have permission to update this item")

    changes = validate_item_input(arguments, partial=True)

    changes["updatedAt"] = datetime.now(timezone.utc).isoformat()
    names = {f"#{field}": field for field in changes}
    values = {f":{field}": value for field, value in changes.items()}

    response = tables.items.update_item(
        Key={"itemId": item_id},
        UpdateExpression="SET " + ", ".join(f"#{field} = :{field}" for field in changes),
        ExpressionAttributeNames=names,
        ExpressionAttributeValues=values,
        ReturnValues="ALL_NEW",
    )

    logger.info("Item updated", item_id=item_id, user_id=caller["userId"], fields=sorted(changes))
    return build_item_response(response["Attributes"])


def delete_item(event: Dict[str, Any], context: Any) -> ItemResponse:
    """
    Delete an item and return its prior state.

    Only the owner, or a caller holding ADMIN or DELETEITEM, may delete it.

    Raises:
        AppError: UNAUTHENTICATED, NOT_FOUND, UNAUTHORIZED
    """
    caller = get_caller_user(event)
    item_id = ensure_item_id(get_argument_required(event, "id"))

    item = get_item_record(item_id)
    if item is None:
        raise AppError(ErrorCode.NOT_FOUND, f"Item {item_id} not found")

    if not is_owner(caller["userId"], item, "ownerUserId") and not check_permission(
        caller, DELETE_ITEM_PERMISSIONS
    ):
        raise AppError(ErrorCode.UNAUTHORIZED, "You don't have permission to do that!")

    response = tables.items.delete_item(Key={"itemId": item_id}, ReturnValues="ALL_OLD")

    logger.info("Item deleted", item_id=item_id, user_id=caller["userId"])
    return build_item_response(response.get("Attributes", item))
