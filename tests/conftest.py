import uuid
from decimal import Decimal
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient

from core.auth import current_active_user
from db.catalog import Branch, Product, Variant
from db.database import create_engine
from db.inventory.stock import StockBalance
from db.users import User
from main import create_app, startup


@pytest.fixture()
async def app(tmp_path):
    # file database: the ledger needs real concurrent connections
    application = create_app()
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}", echo=False)
    await startup(application, engine)
    yield application
    await engine.dispose()


@pytest.fixture()
def session_maker(app):
    return app.state.session_maker


@pytest.fixture()
def ledger(app):
    return app.state.inventory_ledger


@pytest.fixture()
def reasons(app):
    return app.state.reason_registry


@pytest.fixture()
def inventory_query(app):
    return app.state.branch_inventory


@pytest.fixture()
async def user(session_maker) -> User:
    u = User(
        id=uuid.uuid4(),
        email="cashier@example.com",
        hashed_password="not-a-real-hash",
        full_name="Cashier",
        is_active=True,
        is_superuser=False,
        is_verified=True,
    )
    async with session_maker() as db:
        db.add(u)
        await db.commit()
    return u


@pytest.fixture()
async def catalog(session_maker):
    """
    Branches 1 (Centro), 2 (Norte), 3 (inactive).
    Variants 7 and 8 belong to "Leather tote", 9 to "Zip wallet".
    Opening stock: (7,1)=10, (8,1)=3, (9,1)=0, (7,2)=5.
    """
    async with session_maker() as db:
        db.add_all(
            [
                Branch(id=1, name="Centro", location="Av. Juarez 120", is_active=True),
                Branch(id=2, name="Norte", location="Plaza Norte", is_active=True),
                Branch(id=3, name="Cerrada", location=None, is_active=False),
                Product(id=1, sku="BAG-001", name="Leather tote"),
                Product(id=2, sku="WAL-002", name="Zip wallet"),
            ]
        )
        await db.flush()
        db.add_all(
            [
                Variant(id=7, product_id=1, barcode="750100000001", model="Classic", color="Black",
                        purchase_price=Decimal("12.00"), sale_price=Decimal("25.00")),
                Variant(id=8, product_id=1, barcode="750100000002", model="Classic", color="Camel",
                        purchase_price=Decimal("20.00"), sale_price=Decimal("40.00")),
                Variant(id=9, product_id=2, barcode="750100000010", model="Slim", color="Red",
                        purchase_price=Decimal("4.00"), sale_price=Decimal("10.00")),
            ]
        )
        await db.flush()
        db.add_all(
            [
                StockBalance(variant_id=7, branch_id=1, quantity=10),
                StockBalance(variant_id=8, branch_id=1, quantity=3),
                StockBalance(variant_id=9, branch_id=1, quantity=0),
                StockBalance(variant_id=7, branch_id=2, quantity=5),
            ]
        )
        await db.commit()


@pytest.fixture()
async def reason_ids(reasons, catalog) -> SimpleNamespace:
    return SimpleNamespace(
        sale=await reasons.resolve("sale"),
        damage=await reasons.resolve("damage"),
        loss=await reasons.resolve("loss"),
        count_correction=await reasons.resolve("count_correction"),
    )


@pytest.fixture()
async def client(app, user, catalog):
    app.dependency_overrides[current_active_user] = lambda: user
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
