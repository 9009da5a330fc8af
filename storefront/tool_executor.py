"""
Tool executor: routes a model-issued tool call to its implementation.

execute_tool() never raises. Unknown tools, malformed arguments, validation
errors, missing products and database failures all come back as a failed
ToolResult the model can read and recover from.

Store scoping is enforced here: every handler gets the ExecutionContext and
passes context.store_id to the catalog.
"""

import json
import time
import traceback
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront import catalog
from storefront.config import get_config
from storefront.schemas import (
    AddToCartArgs,
    FilterCriteria,
    FilterProductsArgs,
    ProductDetailPayload,
    ProductIdArgs,
    ProductPayload,
    SaveAIQueryArgs,
    ToolResult,
)
from storefront.structured_logger import StructuredLogger
from storefront.tool_schemas import get_tool_by_name
from storefront.usage_logger import record_activity, record_ai_query

logger = StructuredLogger("storefront.tools")


@dataclass(frozen=True)
class ExecutionContext:
    """Who is asking, and for which store. Threaded through every tool call."""
    store_id: str
    user_id: str
    user_role: Optional[str] = None


#
# Handlers
#

def _filter_products(db: Session, args: FilterProductsArgs, context: ExecutionContext) -> ToolResult:
    criteria = catalog.ProductQuery(
        search=args.search,
        brand=args.brand,
        category=args.category,
        color=args.color,
        price_min=args.price_min,
        price_max=args.price_max,
        in_stock_only=args.in_stock_only is not False,
    )
    result = catalog.filter_products(db, context.store_id, criteria, limit=get_config().product_result_limit)
    return ToolResult.ok(
        count=result.count,
        products=[ProductPayload.model_validate(p).model_dump(mode="json") for p in result.products],
        productIds=result.product_ids,
        filterApplied=FilterCriteria.from_args(args).model_dump(mode="json", by_alias=True),
    )


def _show_product_details(db: Session, args: ProductIdArgs, context: ExecutionContext) -> ToolResult:
    product = catalog.get_product_details(db, context.store_id, args.product_id)
    if product is None:
        return ToolResult.fail("Product not found or not available")
    return ToolResult.ok(product=ProductDetailPayload.model_validate(product).model_dump(mode="json"))


def _add_to_cart(db: Session, args: AddToCartArgs, context: ExecutionContext) -> ToolResult:
    try:
        product = catalog.check_cart_product(db, context.store_id, args.product_id, args.quantity)
    except catalog.ProductNotFound:
        return ToolResult.fail("Product not found")
    except catalog.InsufficientStock as e:
        return ToolResult.fail(str(e))

    price = str(product.price)
    # Advisory only: the UI cart is the source of truth, this records the intent.
    record_activity(
        db,
        user_id=context.user_id,
        action_type="ADD_TO_CART",
        target_id=product.id,
        details={"product_name": product.name, "quantity": args.quantity, "price": price},
    )
    return ToolResult.ok(
        product={"id": product.id, "name": product.name, "price": price, "quantity": args.quantity},
        message=f"Added {args.quantity}x {product.name} (${price}) to cart",
    )


def _remove_from_cart(db: Session, args: ProductIdArgs, context: ExecutionContext) -> ToolResult:
    product = catalog.get_product_details(db, context.store_id, args.product_id)
    if product is None:
        return ToolResult.fail("Product not found")
    record_activity(
        db,
        user_id=context.user_id,
        action_type="REMOVE_FROM_CART",
        target_id=product.id,
        details={"action": "remove", "product_name": product.name},
    )
    return ToolResult.ok(message="Product removed from cart")


def _get_cart_summary(db: Session, args: Any, context: ExecutionContext) -> ToolResult:
    return ToolResult.ok(**catalog.CART_SUMMARY_NOTICE)


def _save_ai_query(db: Session, args: SaveAIQueryArgs, context: ExecutionContext) -> ToolResult:
    if args.product_id and catalog.get_product_details(db, context.store_id, args.product_id) is None:
        return ToolResult.fail("Product not found")
    # The context user wins over whatever user_id the model supplied
    record_ai_query(db, context.user_id, args.question, args.answer, product_id=args.product_id)
    return ToolResult.ok(message="Query logged successfully")


Handler = Callable[[Session, Any, ExecutionContext], ToolResult]

# name -> (handler, generic failure message)
_HANDLERS: Dict[str, Tuple[Handler, str]] = {
    "filter_products": (_filter_products, "Failed to filter products"),
    "show_product_details": (_show_product_details, "Failed to get product details"),
    "add_to_cart": (_add_to_cart, "Failed to add to cart"),
    "remove_from_cart": (_remove_from_cart, "Failed to remove from cart"),
    "get_cart_summary": (_get_cart_summary, "Failed to get cart summary"),
    "save_ai_query": (_save_ai_query, "Failed to log query"),
}


def _parse_arguments(arguments: Union[str, Dict[str, Any], None]) -> Dict[str, Any]:
    if arguments is None or arguments == "":
        return {}
    if isinstance(arguments, dict):
        return arguments
    parsed = json.loads(arguments)
    if not isinstance(parsed, dict):
        raise ValueError(f"expected a JSON object, got {type(parsed).__name__}")
    return parsed


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def execute_tool(
    db: Session,
    tool_name: str,
    arguments: Union[str, Dict[str, Any], None],
    context: ExecutionContext,
    call_id: Optional[str] = None,
) -> ToolResult:
    """
    Execute a tool by name.

    `arguments` may be the raw JSON text the model produced or an already
    decoded dict.
    """
    start = time.time()
    result = _dispatch(db, tool_name, arguments, context)
    logger.log_tool_call(
        tool_name,
        call_id,
        context.store_id,
        result.success,
        (time.time() - start) * 1000,
        error=result.error,
    )
    return result


def _dispatch(db, tool_name, arguments, context) -> ToolResult:
    entry = _HANDLERS.get(tool_name)
    if entry is None:
        return ToolResult.fail(f"Unknown tool: {tool_name}")
    handler, failure_message = entry

    try:
        raw_args = _parse_arguments(arguments)
    except (json.JSONDecodeError, ValueError, TypeError) as e:
        return ToolResult.fail(f"Invalid arguments for {tool_name}: {e}")

    try:
        args = get_tool_by_name(tool_name).args_model.model_validate(raw_args)
    except ValidationError as e:
        return ToolResult.fail(f"Invalid arguments for {tool_name}: {_format_validation_error(e)}")

    try:
        return handler(db, args, context)
    except SQLAlchemyError as e:
        db.rollback()
        logger.log_error("ToolDatabaseError", str(e), tool=tool_name, store_id=context.store_id)
        return ToolResult.fail(failure_message)
    except Exception as e:
        # A bad catalog row or handler bug fails this call only, not the conversation
        db.rollback()
        logger.log_error(type(e).__name__, str(e), stack_trace=traceback.format_exc(),
                         tool=tool_name, store_id=context.store_id)
        return ToolResult.fail(failure_message)
