"""
Pydantic v2 schemas for request/response and tool-argument validation.

Tool argument schemas use extra="forbid" so a model that invents parameters
gets a validation error back instead of a silently ignored argument.
The chat request/response use camelCase aliases to match the storefront UI.
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


#
# Tool arguments
#

class FilterProductsArgs(BaseModel):
    """Arguments accepted by filter_products."""
    model_config = ConfigDict(extra="forbid")

    search: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    color: Optional[str] = None
    price_min: Optional[Decimal] = Field(None, ge=0)
    price_max: Optional[Decimal] = Field(None, ge=0)
    in_stock_only: Optional[bool] = True


class ProductIdArgs(BaseModel):
    """Arguments for tools that take a single product id."""
    model_config = ConfigDict(extra="forbid")

    product_id: str = Field(..., min_length=1)


class AddToCartArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    product_id: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)


class CartSummaryArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")


class SaveAIQueryArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_id: str
    question: str
    answer: str
    product_id: Optional[str] = None


#
# Tool payloads and result envelope
#

class ProductPayload(BaseModel):
    """Product as exposed to the model. Price stays Decimal; JSON output is a string."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    stock: int
    images: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    sku: Optional[str] = None


class ProductDetailPayload(ProductPayload):
    added_date: Optional[datetime] = Field(None, validation_alias="created_at")


class FilterCriteria(BaseModel):
    """Echo of the criteria a filter_products call applied."""
    model_config = ConfigDict(populate_by_name=True)

    search: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    color: Optional[str] = None
    price_min: Optional[Decimal] = Field(None, alias="priceMin")
    price_max: Optional[Decimal] = Field(None, alias="priceMax")

    @field_serializer("price_min", "price_max")
    def _price_as_number(self, value: Optional[Decimal]) -> Optional[float]:
        return float(value) if value is not None else None

    @classmethod
    def from_args(cls, args: FilterProductsArgs) -> "FilterCriteria":
        return cls(
            search=args.search,
            brand=args.brand,
            category=args.category,
            color=args.color,
            price_min=args.price_min,
            price_max=args.price_max,
        )


class ToolResult(BaseModel):
    """
    Uniform result envelope for every tool call.

    On the wire (the role="tool" message content) this flattens to
    {"success": true, ...data} or {"success": false, "error": "..."}.
    """
    success: bool
    data: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def ok(cls, **data: Any) -> "ToolResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ToolResult":
        return cls(success=False, error=error)

    def as_envelope(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, **self.data}
        return {"success": False, "error": self.error}

    def to_content(self) -> str:
        return json.dumps(self.as_envelope(), default=str)


#
# Chat API
#

class ChatHistoryMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: Optional[datetime] = None


class ChatRequest(BaseModel):
    """Inbound chat message from the storefront UI."""
    model_config = ConfigDict(populate_by_name=True)

    store_id: str = Field(..., alias="storeId", min_length=1)
    user_id: str = Field(..., alias="userId", min_length=1)
    user_role: Optional[str] = Field(None, alias="userRole")
    message: str = Field(..., min_length=1)
    history: List[ChatHistoryMessage] = Field(default_factory=list)


class ChatResponse(BaseModel):
    """
    Terminal artifact of one orchestration run.

    product_ids is None when filter_products never ran, and [] when the last
    successful filter matched nothing.
    """
    model_config = ConfigDict(populate_by_name=True)

    message: str
    product_ids: Optional[List[str]] = Field(None, alias="productIds")
    filter_applied: Optional[FilterCriteria] = Field(None, alias="filterApplied")


class AIQueryEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    question: str
    answer: str
    product_id: Optional[str] = None
    created_at: Optional[datetime] = None
