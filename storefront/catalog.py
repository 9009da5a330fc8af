"""
Store-scoped, read-only catalog queries used by the assistant tools.

Every function takes the store id explicitly; nothing here can return a
product that belongs to a different store.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from storefront.models import Product, Store

DEFAULT_RESULT_LIMIT = 20

# Fixed payload for get_cart_summary: the cart lives in the browser, not here.
CART_SUMMARY_NOTICE = {
    "message": "Please check your shopping cart in the sidebar to see your current items and total.",
    "note": "Cart is managed in the UI",
}


class ProductNotFound(LookupError):
    """Product is missing, inactive, or belongs to another store."""


class InsufficientStock(ValueError):
    def __init__(self, product: Product, requested: int):
        self.product = product
        self.requested = requested
        super().__init__(f"Insufficient stock. Only {product.stock} available.")


@dataclass
class ProductQuery:
    """Criteria for filter_products. None means "no constraint"."""
    search: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    color: Optional[str] = None
    price_min: Optional[Decimal] = None
    price_max: Optional[Decimal] = None
    in_stock_only: bool = True

    def tag_terms(self) -> List[str]:
        return [t for t in (self.brand, self.category, self.color) if t]


@dataclass
class ProductQueryResult:
    products: List[Product] = field(default_factory=list)

    @property
    def product_ids(self) -> List[str]:
        # Derived from the same rows as `products` so the grid and the chat agree
        return [p.id for p in self.products]

    @property
    def count(self) -> int:
        return len(self.products)


def _has_tags(product: Product, terms: Iterable[str]) -> bool:
    tags = {str(t).strip().lower() for t in (product.tags or [])}
    return all(term.strip().lower() in tags for term in terms)


def _active_in_store(db: Session, store_id: str):
    return db.query(Product).filter(
        Product.store_id == store_id,
        Product.is_active.is_(True),
    )


def filter_products(
    db: Session,
    store_id: str,
    criteria: ProductQuery,
    limit: int = DEFAULT_RESULT_LIMIT,
) -> ProductQueryResult:
    """
    Search the store's active products.

    - search: case-insensitive substring of name or description
    - brand/category/color: each must be one of the product's tags (case-insensitive)
    - price_min/price_max: inclusive bounds
    - in_stock_only: excludes products with zero stock

    Newest products first, at most `limit` rows.
    """
    query = _active_in_store(db, store_id)

    if criteria.in_stock_only:
        query = query.filter(Product.stock > 0)

    term = criteria.search.strip() if criteria.search else ""
    if term:
        # Literal substring: % and _ in the term are escaped, not wildcards
        query = query.filter(or_(
            Product.name.icontains(term, autoescape=True),
            Product.description.icontains(term, autoescape=True),
        ))

    if criteria.price_min is not None:
        query = query.filter(Product.price >= criteria.price_min)
    if criteria.price_max is not None:
        query = query.filter(Product.price <= criteria.price_max)

    query = query.order_by(Product.created_at.desc(), Product.id.desc())

    terms = criteria.tag_terms()
    if not terms:
        return ProductQueryResult(products=query.limit(limit).all())

    # Tags are an opaque JSON list, so tag containment is checked row by row
    # and the limit applies after matching.
    matched: List[Product] = []
    for product in query.yield_per(100):
        if _has_tags(product, terms):
            matched.append(product)
            if len(matched) >= limit:
                break
    return ProductQueryResult(products=matched)


def get_product_details(db: Session, store_id: str, product_id: str) -> Optional[Product]:
    """Return the store's active product with this id, or None."""
    return _active_in_store(db, store_id).filter(Product.id == product_id).first()


def check_cart_product(db: Session, store_id: str, product_id: str, quantity: int = 1) -> Product:
    """
    Validate a product for an add-to-cart intent.

    Raises ProductNotFound or InsufficientStock.
    """
    product = get_product_details(db, store_id, product_id)
    if product is None:
        raise ProductNotFound(product_id)
    if product.stock < quantity:
        raise InsufficientStock(product, quantity)
    return product


def get_store(db: Session, store_id: str) -> Optional[Store]:
    return db.query(Store).filter(Store.id == store_id).first()


def count_active_products(db: Session, store_id: str) -> int:
    return _active_in_store(db, store_id).count()
