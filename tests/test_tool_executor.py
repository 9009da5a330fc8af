"""
Tests for tool execution.

Tests verify:
- Every failure comes back as a {"success": false, "error": ...} envelope
- Schema strictness (extra="forbid", quantity >= 1)
- Store scoping of details/cart tools
- Audit rows written by the cart and query tools
"""

import json
from decimal import Decimal
from unittest.mock import MagicMock

from sqlalchemy.exc import SQLAlchemyError

from storefront.models import AIQuery, ActivityLog, Product
from storefront.tool_executor import ExecutionContext, execute_tool

from conftest import STORE_A, USER_ID

CONTEXT = ExecutionContext(store_id=STORE_A, user_id=USER_ID, user_role="CUSTOMER")


def test_unknown_tool(seeded_db):
    result = execute_tool(seeded_db, "checkout", "{}", CONTEXT)
    assert result.as_envelope() == {"success": False, "error": "Unknown tool: checkout"}


def test_malformed_json_arguments(seeded_db):
    result = execute_tool(seeded_db, "filter_products", "{brand: Nike", CONTEXT)
    assert not result.success
    assert result.error.startswith("Invalid arguments for filter_products")


def test_non_object_arguments(seeded_db):
    result = execute_tool(seeded_db, "filter_products", "[1, 2]", CONTEXT)
    assert not result.success
    assert "expected a JSON object" in result.error


def test_extra_argument_rejected(seeded_db):
    result = execute_tool(seeded_db, "filter_products", json.dumps({"brand": "Nike", "size": "10"}), CONTEXT)
    assert not result.success
    assert result.error.startswith("Invalid arguments for filter_products: size:")


def test_quantity_must_be_positive(seeded_db):
    result = execute_tool(seeded_db, "add_to_cart", {"product_id": "p-hat", "quantity": 0}, CONTEXT)
    assert not result.success
    assert "quantity" in result.error
    assert seeded_db.query(ActivityLog).count() == 0


def test_filter_products_envelope(seeded_db):
    result = execute_tool(seeded_db, "filter_products", '{"brand": "Nike"}', CONTEXT)
    envelope = json.loads(result.to_content())

    assert envelope["success"] is True
    assert envelope["count"] == 1
    assert envelope["productIds"] == ["p-shoe-red"]
    assert [p["id"] for p in envelope["products"]] == envelope["productIds"]
    assert envelope["filterApplied"]["brand"] == "Nike"


def test_filter_products_empty_arguments(seeded_db):
    result = execute_tool(seeded_db, "filter_products", "", CONTEXT)
    assert result.success
    assert result.data["productIds"] == ["p-shoe-red", "p-shoe-blue", "p-hat"]


def test_filter_products_price_echo_is_numeric(seeded_db):
    result = execute_tool(seeded_db, "filter_products", '{"price_max": 30}', CONTEXT)
    assert result.data["productIds"] == ["p-hat"]
    assert result.data["filterApplied"]["priceMax"] == 30.0


def test_show_product_details(seeded_db):
    result = execute_tool(seeded_db, "show_product_details", '{"product_id": "p-hat"}', CONTEXT)
    assert result.success
    product = result.data["product"]
    assert product["name"] == "Plain Hat"
    assert product["tags"] == ["hats"]
    assert product["added_date"] is not None


def test_show_product_details_other_store(seeded_db):
    result = execute_tool(seeded_db, "show_product_details", '{"product_id": "p-other-store"}', CONTEXT)
    assert result.as_envelope() == {"success": False, "error": "Product not found or not available"}


def test_add_to_cart_records_intent(seeded_db):
    result = execute_tool(seeded_db, "add_to_cart", '{"product_id": "p-shoe-red", "quantity": 2}', CONTEXT)

    assert result.success
    assert result.data["product"]["quantity"] == 2
    assert "Speed Runner" in result.data["message"]
    assert "$50" in result.data["message"]

    entry = seeded_db.query(ActivityLog).one()
    assert entry.user_id == USER_ID
    assert entry.action_type == "ADD_TO_CART"
    assert entry.target_id == "p-shoe-red"
    assert entry.details["quantity"] == 2


def test_add_to_cart_insufficient_stock(seeded_db):
    result = execute_tool(seeded_db, "add_to_cart", '{"product_id": "p-shoe-blue", "quantity": 5}', CONTEXT)
    assert result.as_envelope() == {"success": False, "error": "Insufficient stock. Only 3 available."}


def test_add_to_cart_out_of_stock_and_missing(seeded_db):
    out = execute_tool(seeded_db, "add_to_cart", '{"product_id": "p-shirt"}', CONTEXT)
    assert out.error == "Insufficient stock. Only 0 available."

    missing = execute_tool(seeded_db, "add_to_cart", '{"product_id": "p-other-store"}', CONTEXT)
    assert missing.error == "Product not found"


def test_remove_from_cart(seeded_db):
    result = execute_tool(seeded_db, "remove_from_cart", '{"product_id": "p-hat"}', CONTEXT)
    assert result.data["message"] == "Product removed from cart"
    assert seeded_db.query(ActivityLog).one().action_type == "REMOVE_FROM_CART"

    missing = execute_tool(seeded_db, "remove_from_cart", '{"product_id": "nope"}', CONTEXT)
    assert missing.error == "Product not found"


def test_cart_summary_is_fixed_notice(seeded_db):
    result = execute_tool(seeded_db, "get_cart_summary", None, CONTEXT)
    assert result.as_envelope() == {
        "success": True,
        "message": "Please check your shopping cart in the sidebar to see your current items and total.",
        "note": "Cart is managed in the UI",
    }


def test_save_ai_query_uses_context_user(seeded_db):
    args = {"user_id": "someone-else", "question": "Any hats?", "answer": "Yes", "product_id": "p-hat"}
    result = execute_tool(seeded_db, "save_ai_query", args, CONTEXT)

    assert result.data["message"] == "Query logged successfully"
    row = seeded_db.query(AIQuery).one()
    assert row.user_id == USER_ID
    assert row.product_id == "p-hat"


def test_save_ai_query_rejects_foreign_product(seeded_db):
    args = {"user_id": USER_ID, "question": "q", "answer": "a", "product_id": "p-other-store"}
    result = execute_tool(seeded_db, "save_ai_query", args, CONTEXT)
    assert result.error == "Product not found"
    assert seeded_db.query(AIQuery).count() == 0


def test_database_error_becomes_generic_failure():
    db = MagicMock()
    db.query.side_effect = SQLAlchemyError("connection lost")

    result = execute_tool(db, "filter_products", "{}", CONTEXT)

    assert result.as_envelope() == {"success": False, "error": "Failed to filter products"}
    db.rollback.assert_called_once()


def _add_malformed_product(db):
    db.add(Product(id="p-bad-tags", store_id=STORE_A, name="Wool socks", price=Decimal("9.00"),
                   stock=4, tags=["socks", 42], images=[]))
    db.commit()


def test_handler_error_becomes_generic_failure(seeded_db):
    _add_malformed_product(seeded_db)

    result = execute_tool(seeded_db, "filter_products", '{"search": "sock"}', CONTEXT)

    assert result.as_envelope() == {"success": False, "error": "Failed to filter products"}

    # The session is still usable for the next call in the same round
    follow_up = execute_tool(seeded_db, "show_product_details", '{"product_id": "p-hat"}', CONTEXT)
    assert follow_up.success
