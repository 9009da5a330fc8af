"""Pytest configuration for storefront assistant tests."""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from assistant.llm_client import ChatModel, ModelReply, ToolCall
from storefront.database import Base
from storefront.models import Product, Store


# In-memory SQLite shared across threads so TestClient requests see the same data
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

STORE_A = "store-a"
STORE_B = "store-b"
USER_ID = "user-1"

_BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture(scope="function")
def db_session():
    """Fresh schema for every test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


def _product(store_id: str, product_id: str, name: str, price: str, stock: int, tags: List[str],
             minutes: int, description: Optional[str] = None, is_active: bool = True) -> Product:
    return Product(
        id=product_id,
        store_id=store_id,
        name=name,
        description=description,
        price=Decimal(price),
        stock=stock,
        is_active=is_active,
        tags=tags,
        images=[],
        sku=product_id.upper(),
        created_at=_BASE_TIME + timedelta(minutes=minutes),
    )


@pytest.fixture(scope="function")
def seeded_db(db_session):
    """
    Two stores. Store A:

    - p-shoe-red     Nike red running shoes        $50.00   stock 10   (newest)
    - p-shoe-blue    Adidas blue shoes             $120.00  stock 3
    - p-shirt        Nike black cotton shirt       $25.00   stock 0    (out of stock)
    - p-hat          Plain hat                     $15.50   stock 7
    - p-retired      Retired Nike shoe             $40.00   inactive   (oldest)

    Store B has one Nike product that must never leak into store A results.
    """
    db_session.add_all([
        Store(id=STORE_A, store_name="Alpha Outfitters", url="alpha", description="Shoes and apparel",
              city="Portland", category="Apparel", business_hours="9-5"),
        Store(id=STORE_B, store_name="Beta Goods", url="beta", category="Apparel"),
    ])
    db_session.flush()
    db_session.add_all([
        _product(STORE_A, "p-shoe-red", "Speed Runner", "50.00", 10, ["Nike", "shoes", "red"], 50,
                 description="Lightweight running shoe"),
        _product(STORE_A, "p-shoe-blue", "Court Classic", "120.00", 3, ["Adidas", "Shoes", "Blue"], 40,
                 description="Leather court shoe"),
        _product(STORE_A, "p-shirt", "Cotton Tee", "25.00", 0, ["Nike", "shirts", "black"], 30),
        _product(STORE_A, "p-hat", "Plain Hat", "15.50", 7, ["hats"], 20, description="Wool hat"),
        _product(STORE_A, "p-retired", "Old Runner", "40.00", 5, ["Nike", "shoes"], 10, is_active=False),
        _product(STORE_B, "p-other-store", "Speed Runner B", "55.00", 9, ["Nike", "shoes", "red"], 60),
    ])
    db_session.commit()
    return db_session


#
# Scripted language model
#

def tool_call(name: str, arguments: str = "{}", call_id: Optional[str] = None) -> ToolCall:
    return ToolCall(id=call_id or f"call_{name}", name=name, arguments=arguments)


class FakeChatModel(ChatModel):
    """
    Returns scripted replies in order and records the messages it was sent.

    A script entry may be a ModelReply or an exception instance to raise.
    """

    def __init__(self, script: List[Any]):
        self.script = list(script)
        self.calls: List[Dict[str, Any]] = []

    def complete(self, messages, tools, timeout=None) -> ModelReply:
        self.calls.append({"messages": messages, "tools": tools, "timeout": timeout})
        if not self.script:
            raise AssertionError("FakeChatModel script exhausted")
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        return step
