import asyncio
import sys
from pathlib import Path
from decimal import Decimal

"""
Seed demo data (branches, products, variants, opening stock, an admin user).

Opening stock is written directly here: creating a StockBalance row when a
variant is first stocked at a branch belongs to the catalog workflow, not to
the ledger. Existing balances are never touched.

This script can be run from either:
- backend/: `python scripts/seed_demo_data.py`
- repo root: `python backend/scripts/seed_demo_data.py`
"""

# Allow running from repo root by ensuring `backend/` is on sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import select

from core.logging import configure_logging
from db.catalog import Branch, Product, Variant
from db.database import create_db_and_tables, create_engine, create_session_maker
from db.inventory.stock import StockBalance
from db.seed import seed_reason_codes
from db.users import User

from fastapi_users.password import PasswordHelper


password_helper = PasswordHelper()

DEMO_BRANCHES = [
    ("Centro", "Av. Juarez 120"),
    ("Norte", "Plaza Norte local 14"),
]

# sku, name, [(barcode, model, color, purchase_price, sale_price, opening stock per branch)]
DEMO_PRODUCTS = [
    ("BAG-001", "Leather tote", [
        ("750100000001", "Classic", "Black", "310.00", "690.00", 8),
        ("750100000002", "Classic", "Camel", "310.00", "690.00", 5),
    ]),
    ("WAL-002", "Zip wallet", [
        ("750100000010", "Slim", "Red", "95.00", "249.00", 20),
    ]),
    ("SUN-003", "Aviator sunglasses", [
        ("750100000020", "Aviator", "Gold", "120.00", "399.00", 12),
        ("750100000021", "Aviator", "Silver", "120.00", "399.00", 0),
    ]),
]


async def get_or_create_user(session, email: str, password: str) -> User:
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user:
        return user

    user = User(
        email=email,
        hashed_password=password_helper.hash(password),
        full_name="Demo Admin",
        is_active=True,
        is_superuser=True,
        is_verified=True,
    )
    session.add(user)
    await session.flush()
    return user


async def get_or_create_branch(session, name: str, location: str) -> Branch:
    result = await session.execute(select(Branch).where(Branch.name == name))
    branch = result.scalar_one_or_none()
    if branch:
        return branch
    branch = Branch(name=name, location=location, is_active=True)
    session.add(branch)
    await session.flush()
    return branch


async def get_or_create_product(session, sku: str, name: str) -> Product:
    result = await session.execute(select(Product).where(Product.sku == sku))
    product = result.scalar_one_or_none()
    if product:
        return product
    product = Product(sku=sku, name=name)
    session.add(product)
    await session.flush()
    return product


async def get_or_create_variant(session, product: Product, barcode: str, model, color, purchase, sale) -> Variant:
    result = await session.execute(select(Variant).where(Variant.barcode == barcode))
    variant = result.scalar_one_or_none()
    if variant:
        return variant
    variant = Variant(
        product_id=product.id,
        barcode=barcode,
        model=model,
        color=color,
        purchase_price=Decimal(purchase),
        sale_price=Decimal(sale),
    )
    session.add(variant)
    await session.flush()
    return variant


async def ensure_opening_stock(session, variant: Variant, branch: Branch, quantity: int) -> bool:
    result = await session.execute(
        select(StockBalance).where(
            StockBalance.variant_id == variant.id,
            StockBalance.branch_id == branch.id,
        )
    )
    if result.scalar_one_or_none():
        return False
    session.add(StockBalance(variant_id=variant.id, branch_id=branch.id, quantity=quantity))
    return True


async def seed():
    configure_logging()
    engine = create_engine()
    await create_db_and_tables(engine)
    session_maker = create_session_maker(engine)
    await seed_reason_codes(session_maker)

    created_balances = 0
    async with session_maker() as session:
        await get_or_create_user(session, "admin@example.com", "admin1234")
        branches = [await get_or_create_branch(session, n, loc) for (n, loc) in DEMO_BRANCHES]
        for sku, name, variants in DEMO_PRODUCTS:
            product = await get_or_create_product(session, sku, name)
            for (barcode, model, color, purchase, sale, opening) in variants:
                variant = await get_or_create_variant(session, product, barcode, model, color, purchase, sale)
                for branch in branches:
                    if await ensure_opening_stock(session, variant, branch, opening):
                        created_balances += 1
        await session.commit()

    await engine.dispose()
    print(f"Seeded {len(DEMO_BRANCHES)} branches, {len(DEMO_PRODUCTS)} products, {created_balances} new stock balances")


if __name__ == "__main__":
    asyncio.run(seed())
