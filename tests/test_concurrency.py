import asyncio

from core.errors import InsufficientStock


async def test_concurrent_sales_covering_stock_all_succeed(ledger, inventory_query, user, reason_ids):
    # (7, 1) starts at 10
    quantities = [1, 2, 1, 3, 1, 2]
    results = await asyncio.gather(
        *[ledger.register_sale(7, 1, q, reason_ids.sale, user.id, "25.00") for q in quantities]
    )

    assert await inventory_query.balance(7, 1) == 0
    assert len({r.ledger_id for r in results}) == len(quantities)
    # each commit saw the previous one: resulting quantities are all distinct
    assert len({r.resulting_quantity for r in results}) == len(quantities)
    assert min(r.resulting_quantity for r in results) == 0


async def test_concurrent_oversubscribed_sales_never_go_negative(ledger, inventory_query, user, reason_ids):
    outcomes = await asyncio.gather(
        *[ledger.register_sale(7, 1, 1, reason_ids.sale, user.id, "25.00") for _ in range(12)],
        return_exceptions=True,
    )

    succeeded = [o for o in outcomes if not isinstance(o, Exception)]
    rejected = [o for o in outcomes if isinstance(o, Exception)]
    assert len(succeeded) == 10
    assert len(rejected) == 2
    assert all(isinstance(e, InsufficientStock) for e in rejected)
    assert await inventory_query.balance(7, 1) == 0
    assert await inventory_query.replay_balance(7, 1, initial=10) == 0


async def test_concurrent_mixed_operations_on_two_pairs(ledger, inventory_query, user, reason_ids):
    ops = [
        ledger.register_sale(7, 1, 2, reason_ids.sale, user.id, "25.00"),
        ledger.register_write_off(7, 2, 1, reason_ids.damage, user.id),
        ledger.register_sale(7, 1, 3, reason_ids.sale, user.id, "25.00"),
        ledger.register_write_off(7, 2, 2, reason_ids.loss, user.id),
        ledger.register_sale(8, 1, 1, reason_ids.sale, user.id, "40.00"),
    ]
    await asyncio.gather(*ops)

    assert await inventory_query.balance(7, 1) == 5
    assert await inventory_query.balance(7, 2) == 2
    assert await inventory_query.balance(8, 1) == 2
    assert await inventory_query.replay_balance(7, 1, initial=10) == 5
    assert await inventory_query.replay_balance(7, 2, initial=5) == 2
