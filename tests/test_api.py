import json
from decimal import Decimal

from fastapi import Request
from httpx import ASGITransport, AsyncClient

from core.errors import ConstraintViolation, StoreFailure, inventory_error_handler


async def test_sale_endpoint_returns_ledger_id_and_balance(client):
    res = await client.post(
        "/sales",
        json={"variant_id": 7, "branch_id": 1, "quantity": 4, "reason": "sale", "unit_price": "25.00"},
    )
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["resulting_quantity"] == 6
    assert isinstance(body["ledger_id"], int)

    entry = await client.get(f"/ledger/{body['ledger_id']}")
    assert entry.status_code == 200
    assert entry.json()["quantity"] == 4
    assert Decimal(str(entry.json()["unit_price"])) == Decimal("25.00")


async def test_write_off_over_stock_is_conflict(client):
    await client.post(
        "/sales",
        json={"variant_id": 7, "branch_id": 1, "quantity": 4, "reason": "sale", "unit_price": 25},
    )
    res = await client.post(
        "/inventory/write-offs",
        json={"variant_id": 7, "branch_id": 1, "quantity": 10, "reason": "damage"},
    )
    assert res.status_code == 409
    body = res.json()
    assert body["code"] == "INSUFFICIENT_STOCK"
    assert "available: 6, requested: 10" in body["detail"]
    assert body["available"] == 6

    inventory = await client.get("/inventory", params={"branch_id": 1})
    quantities = {r["variant_id"]: r["quantity"] for r in inventory.json()["data"]}
    assert quantities[7] == 6


async def test_adjustment_endpoint(client):
    res = await client.post(
        "/inventory/adjustments",
        json={"variant_id": 7, "branch_id": 1, "new_quantity": 20, "reason": "count_correction"},
    )
    assert res.status_code == 200, res.text
    assert res.json()["resulting_quantity"] == 20

    entry = (await client.get(f"/ledger/{res.json()['ledger_id']}")).json()
    assert entry["kind"] == "ADJUSTMENT"
    assert entry["quantity"] == 10
    assert entry["change"] == 10


async def test_adjustment_without_balance_row_is_404(client):
    res = await client.post(
        "/inventory/adjustments",
        json={"variant_id": 9, "branch_id": 2, "new_quantity": 1, "reason": "count_correction"},
    )
    assert res.status_code == 404
    assert res.json()["code"] == "NOT_FOUND"


async def test_unknown_reason_label_is_422(client):
    res = await client.post(
        "/inventory/write-offs",
        json={"variant_id": 7, "branch_id": 1, "quantity": 1, "reason": "vanished"},
    )
    assert res.status_code == 422
    assert res.json()["code"] == "UNKNOWN_REASON"


async def test_request_validation(client):
    both = await client.post(
        "/inventory/write-offs",
        json={"variant_id": 7, "branch_id": 1, "quantity": 1, "reason": "damage", "reason_id": 1},
    )
    assert both.status_code == 422

    zero = await client.post(
        "/sales",
        json={"variant_id": 7, "branch_id": 1, "quantity": 0, "reason": "sale", "unit_price": 1},
    )
    assert zero.status_code == 422

    negative_price = await client.post(
        "/sales",
        json={"variant_id": 7, "branch_id": 1, "quantity": 1, "reason": "sale", "unit_price": -5},
    )
    assert negative_price.status_code == 422


async def test_branch_inventory_endpoints(client):
    res = await client.get("/inventory", params={"branch_id": 1})
    assert res.status_code == 200
    body = res.json()
    assert body["branch_id"] == 1
    assert body["total"] == 3
    first = body["data"][0]
    assert first["sku"] == "BAG-001"
    assert Decimal(str(first["valued_total"])) == Decimal("250.00")

    grouped = await client.get("/inventory/by-product", params={"branch_id": 1})
    assert [g["sku"] for g in grouped.json()] == ["BAG-001", "WAL-002"]
    assert grouped.json()[0]["total_quantity"] == 13

    branches = await client.get("/inventory/branches")
    assert [b["name"] for b in branches.json()] == ["Centro", "Norte"]


async def test_inactive_branch_is_rejected(client):
    res = await client.get("/inventory", params={"branch_id": 3})
    assert res.status_code == 404
    assert res.json()["code"] == "INVALID_BRANCH"


async def test_ledger_listing_and_missing_entry(client):
    await client.post(
        "/sales",
        json={"variant_id": 7, "branch_id": 1, "quantity": 1, "reason": "sale", "unit_price": 25},
    )
    await client.post(
        "/inventory/write-offs",
        json={"variant_id": 7, "branch_id": 2, "quantity": 1, "reason": "loss"},
    )

    listing = await client.get("/ledger", params={"branch_id": 2})
    assert listing.status_code == 200
    assert [e["kind"] for e in listing.json()] == ["WRITE_OFF"]

    missing = await client.get("/ledger/99999")
    assert missing.status_code == 404


async def test_reasons_endpoint(client):
    res = await client.get("/reasons")
    assert res.status_code == 200
    assert "damage" in {r["code"] for r in res.json()}


async def test_ledger_routes_require_authentication(app, catalog):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as anonymous:
        res = await anonymous.post(
            "/sales",
            json={"variant_id": 7, "branch_id": 1, "quantity": 1, "reason": "sale", "unit_price": 25},
        )
    assert res.status_code == 401


async def test_ledger_date_filters_accept_utc_designator(client):
    await client.post(
        "/sales",
        json={"variant_id": 7, "branch_id": 1, "quantity": 1, "reason": "sale", "unit_price": 25},
    )

    mixed = await client.get("/ledger", params={"start": "2000-01-01T00:00:00Z", "end": "2100-01-01T00:00:00"})
    assert mixed.status_code == 200, mixed.text
    assert [e["kind"] for e in mixed.json()] == ["SALE"]

    aware = await client.get("/ledger", params={"start": "2000-01-01T00:00:00+02:00", "end": "2100-01-01T00:00:00Z"})
    assert aware.status_code == 200
    assert len(aware.json()) == 1

    # 00:00-05:00 is 05:00 UTC, after the 03:00 UTC end
    reversed_range = await client.get(
        "/ledger", params={"start": "2000-01-01T00:00:00-05:00", "end": "2000-01-01T03:00:00Z"}
    )
    assert reversed_range.status_code == 400


async def test_constraint_violation_maps_to_conflict():
    request = Request({"type": "http", "method": "POST", "path": "/sales", "headers": [], "query_string": b""})

    res = await inventory_error_handler(request, ConstraintViolation("duplicate balance row"))
    assert res.status_code == 409
    assert json.loads(res.body)["code"] == "CONSTRAINT_VIOLATION"

    res = await inventory_error_handler(request, StoreFailure("database is locked"))
    assert res.status_code == 503
