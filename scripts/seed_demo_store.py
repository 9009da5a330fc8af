"""
Seed a demo store with a small catalog for local runs of the assistant.

Usage:
    python scripts/seed_demo_store.py
"""
import sys
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Add project root to path
sys.path.append(str(Path(__file__).resolve().parent.parent))

from storefront.database import Base, SessionLocal, engine  # noqa: E402
from storefront.models import Product, Store  # noqa: E402

DEMO_STORE_URL = "demo-store"

DEMO_PRODUCTS = [
    {
        "name": "Trail Runner 2",
        "description": "Lightweight trail running shoes with a grippy outsole.",
        "price": Decimal("89.99"),
        "stock": 14,
        "tags": ["Nike", "shoes", "running", "black"],
        "sku": "TR2-BLK",
    },
    {
        "name": "Canvas Sneaker",
        "description": "Classic low-top canvas shoes for everyday wear.",
        "price": Decimal("45.00"),
        "stock": 30,
        "tags": ["Converse", "shoes", "white"],
        "sku": "CS-WHT",
    },
    {
        "name": "Wool Beanie",
        "description": "Ribbed merino wool beanie.",
        "price": Decimal("19.50"),
        "stock": 0,
        "tags": ["accessories", "red"],
        "sku": "WB-RED",
    },
    {
        "name": "Noise Cancelling Headphones",
        "description": "Over-ear wireless headphones with 30h battery.",
        "price": Decimal("199.00"),
        "stock": 5,
        "tags": ["Sony", "electronics", "black"],
        "sku": "NCH-700",
    },
]


def seed_demo_store():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if db.query(Store).filter(Store.url == DEMO_STORE_URL).first():
            print("Demo store already exists. Skipping seed.")
            return

        print("Seeding demo store...")
        store = Store(
            store_name="Demo Store",
            url=DEMO_STORE_URL,
            description="A demo store for testing",
            city="San Francisco",
            category="Apparel & Electronics",
            business_hours="Mon-Sat 9am-7pm",
        )
        db.add(store)
        db.flush()

        for item in DEMO_PRODUCTS:
            db.add(Product(store_id=store.id, images=[], **item))

        db.commit()
        print(f"Created store {store.store_name} ({store.id}) with {len(DEMO_PRODUCTS)} products")
    finally:
        db.close()


if __name__ == "__main__":
    seed_demo_store()
