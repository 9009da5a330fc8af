"""
Canonical tool definitions for the shopping assistant.

Tools are declared once in a vendor-neutral form and translated to:
- OpenAI function calling format
- Google Gemini function declarations
- Claude tool use format

Each definition carries:
- name: tool name (unique)
- description: sent verbatim to the model; part of the contract it relies on
- parameters: input schema (JSON Schema)
- args_model: pydantic model the executor validates arguments against
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel

from storefront.schemas import (
    AddToCartArgs,
    CartSummaryArgs,
    FilterProductsArgs,
    ProductIdArgs,
    SaveAIQueryArgs,
)


class ToolCategory(str, Enum):
    """Tool categories for organization."""
    DISCOVERY = "discovery"
    DETAIL = "detail"
    EXECUTION = "execution"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    category: ToolCategory
    description: str
    parameters: Dict[str, Any]
    args_model: Type[BaseModel]


TOOL_FILTER_PRODUCTS = ToolDefinition(
    name="filter_products",
    category=ToolCategory.DISCOVERY,
    description=(
        "Filter and search products in the current store based on user criteria like brand, "
        "category, price range, color, or general search terms. Returns matching products with details."
    ),
    parameters={
        "type": "object",
        "properties": {
            "search": {
                "type": "string",
                "description": "General search term to match against product name, description, or tags",
            },
            "brand": {"type": "string", "description": "Filter by brand name"},
            "category": {"type": "string", "description": "Filter by product category"},
            "color": {"type": "string", "description": "Filter by color"},
            "price_min": {"type": "number", "description": "Minimum price filter"},
            "price_max": {"type": "number", "description": "Maximum price filter"},
            "in_stock_only": {
                "type": "boolean",
                "description": "Only return products that are in stock",
                "default": True,
            },
        },
    },
    args_model=FilterProductsArgs,
)

TOOL_SHOW_PRODUCT_DETAILS = ToolDefinition(
    name="show_product_details",
    category=ToolCategory.DETAIL,
    description=(
        "Get detailed information about a specific product including name, description, "
        "price, stock, images, and tags"
    ),
    parameters={
        "type": "object",
        "properties": {
            "product_id": {
                "type": "string",
                "description": "The unique ID of the product to retrieve",
            },
        },
        "required": ["product_id"],
    },
    args_model=ProductIdArgs,
)

TOOL_ADD_TO_CART = ToolDefinition(
    name="add_to_cart",
    category=ToolCategory.EXECUTION,
    description=(
        "Add a product to the user's shopping cart. This is a conceptual operation that "
        "confirms the intent - the actual cart is managed by the UI."
    ),
    parameters={
        "type": "object",
        "properties": {
            "product_id": {"type": "string", "description": "The ID of the product to add to cart"},
            "quantity": {"type": "number", "description": "Quantity to add (default: 1)", "default": 1},
        },
        "required": ["product_id"],
    },
    args_model=AddToCartArgs,
)

TOOL_REMOVE_FROM_CART = ToolDefinition(
    name="remove_from_cart",
    category=ToolCategory.EXECUTION,
    description="Remove a product from the user's shopping cart",
    parameters={
        "type": "object",
        "properties": {
            "product_id": {"type": "string", "description": "The ID of the product to remove"},
        },
        "required": ["product_id"],
    },
    args_model=ProductIdArgs,
)

TOOL_GET_CART_SUMMARY = ToolDefinition(
    name="get_cart_summary",
    category=ToolCategory.DETAIL,
    description="Get a summary of the current cart contents",
    parameters={"type": "object", "properties": {}},
    args_model=CartSummaryArgs,
)

TOOL_SAVE_AI_QUERY = ToolDefinition(
    name="save_ai_query",
    category=ToolCategory.INTERNAL,
    description="Internal tool to log AI queries and responses for analytics",
    parameters={
        "type": "object",
        "properties": {
            "user_id": {"type": "string", "description": "User ID"},
            "question": {"type": "string", "description": "User question"},
            "answer": {"type": "string", "description": "AI response"},
            "product_id": {"type": "string", "description": "Related product ID (optional)"},
        },
        "required": ["user_id", "question", "answer"],
    },
    args_model=SaveAIQueryArgs,
)

# Registry of all tools, in the order they are offered to the model
ALL_TOOLS = (
    TOOL_FILTER_PRODUCTS,
    TOOL_SHOW_PRODUCT_DETAILS,
    TOOL_ADD_TO_CART,
    TOOL_REMOVE_FROM_CART,
    TOOL_GET_CART_SUMMARY,
    TOOL_SAVE_AI_QUERY,
)

_TOOLS_BY_NAME = {tool.name: tool for tool in ALL_TOOLS}


def get_tool_by_name(name: str) -> ToolDefinition:
    """Get a specific tool by name."""
    try:
        return _TOOLS_BY_NAME[name]
    except KeyError:
        raise ValueError(f"Tool '{name}' not found") from None


def get_tools_by_category(category: ToolCategory) -> List[ToolDefinition]:
    return [tool for tool in ALL_TOOLS if tool.category == category]


#
# Provider-specific adapters
#

def to_openai_tool(tool: ToolDefinition) -> Dict[str, Any]:
    """
    OpenAI chat-completions format:
    {"type": "function", "function": {"name", "description", "parameters"}}
    """
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.parameters,
        },
    }


def to_gemini_function(tool: ToolDefinition) -> Dict[str, Any]:
    return {
        "name": tool.name,
        "description": tool.description,
        "parameters": tool.parameters,
    }


def to_claude_tool(tool: ToolDefinition) -> Dict[str, Any]:
    return {
        "name": tool.name,
        "description": tool.description,
        "input_schema": tool.parameters,
    }


_ADAPTERS = {
    "openai": to_openai_tool,
    "gemini": to_gemini_function,
    "claude": to_claude_tool,
}


def get_all_tools_for_provider(provider: str, category: Optional[ToolCategory] = None) -> List[Dict[str, Any]]:
    """
    Get all tools formatted for a specific provider.

    Args:
        provider: One of "openai", "gemini", "claude"
        category: Only tools of this category (all tools when None)
    """
    adapter = _ADAPTERS.get(provider)
    if adapter is None:
        raise ValueError(f"Unknown provider: {provider}")
    tools = ALL_TOOLS if category is None else get_tools_by_category(category)
    return [adapter(tool) for tool in tools]
