"""
Inventory transaction engine.

Each public method performs exactly one stock movement for one
(variant, branch) pair inside one `InventoryStore.atomic()` unit:

    lock balance row -> validate -> write balance -> append ledger entry

The balance used for validation is the locked row that gets written, so two
concurrent movements on the same pair serialize and the second one sees the
first one's committed quantity. Movements on different pairs lock different
rows. Nothing is retried here; a commit that already happened stands even if
the caller has since gone away.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import AsyncIterator, Union
from uuid import UUID

from core.errors import InsufficientStock, InvalidMovement, NotFound, StoreFailure, UnknownReason
from db.inventory.ledger import ADJUSTMENT, SALE, WRITE_OFF
from services.stores import InventoryStore, StoreTransaction

logger = logging.getLogger("ledger")

ZERO = Decimal("0")


@dataclass(frozen=True)
class LedgerResult:
    ledger_id: int
    resulting_quantity: int


def _to_price(value: Union[Decimal, float, int, str]) -> Decimal:
    try:
        price = Decimal(str(value)).quantize(Decimal("0.01"))
    except (ArithmeticError, ValueError, TypeError):
        raise InvalidMovement(f"unit_price must be a number, got {value!r}")
    if price < 0:
        raise InvalidMovement("unit_price must be >= 0")
    return price


def _to_quantity(value, name: str, minimum: int) -> int:
    try:
        quantity = int(value)
    except (ArithmeticError, ValueError, TypeError):
        raise InvalidMovement(f"{name} must be an integer, got {value!r}")
    if quantity != value or quantity < minimum:
        raise InvalidMovement(f"{name} must be an integer >= {minimum}")
    return quantity


class InventoryLedger:
    def __init__(self, store: InventoryStore):
        self._store = store

    async def register_sale(
        self,
        variant_id: int,
        branch_id: int,
        quantity: int,
        reason_id: int,
        user_id: UUID,
        unit_price: Union[Decimal, float, int, str],
    ) -> LedgerResult:
        price = _to_price(unit_price)
        return await self._decrement(SALE, variant_id, branch_id, quantity, reason_id, user_id, price)

    async def register_write_off(
        self,
        variant_id: int,
        branch_id: int,
        quantity: int,
        reason_id: int,
        user_id: UUID,
    ) -> LedgerResult:
        return await self._decrement(WRITE_OFF, variant_id, branch_id, quantity, reason_id, user_id, ZERO)

    async def adjust_absolute(
        self,
        variant_id: int,
        branch_id: int,
        new_quantity: int,
        reason_id: int,
        user_id: UUID,
    ) -> LedgerResult:
        """Set the balance to a counted value and record abs(delta) in the ledger."""
        new_quantity = _to_quantity(new_quantity, "new_quantity", 0)

        async with self._unit("adjustment", variant_id, branch_id) as tx:
            await self._require_reason(tx, reason_id)
            balance = await tx.lock_balance(variant_id, branch_id)
            if balance is None:
                raise NotFound(f"No stock record for variant {variant_id} at branch {branch_id}")

            delta = new_quantity - int(balance.quantity)
            resulting = await tx.set_balance(balance, new_quantity)
            entry = await tx.append_entry(
                kind=ADJUSTMENT,
                variant_id=variant_id,
                branch_id=branch_id,
                reason_id=reason_id,
                user_id=user_id,
                quantity=abs(delta),
                change=delta,
                resulting_quantity=resulting,
                unit_price=ZERO,
            )
            ledger_id = int(entry.id)

        logger.info(
            "ledger.adjustment variant=%s branch=%s delta=%+d resulting=%s reason=%s user=%s ledger_id=%s",
            variant_id, branch_id, delta, resulting, reason_id, user_id, ledger_id,
        )
        return LedgerResult(ledger_id=ledger_id, resulting_quantity=resulting)

    async def _decrement(
        self,
        kind: str,
        variant_id: int,
        branch_id: int,
        quantity: int,
        reason_id: int,
        user_id: UUID,
        unit_price: Decimal,
    ) -> LedgerResult:
        quantity = _to_quantity(quantity, "quantity", 1)

        async with self._unit(kind.lower(), variant_id, branch_id) as tx:
            await self._require_reason(tx, reason_id)
            balance = await tx.lock_balance(variant_id, branch_id)
            if balance is None:
                raise NotFound(f"No stock record for variant {variant_id} at branch {branch_id}")

            available = int(balance.quantity)
            if quantity > available:
                logger.info(
                    "ledger.%s rejected variant=%s branch=%s available=%s requested=%s",
                    kind.lower(), variant_id, branch_id, available, quantity,
                )
                raise InsufficientStock(available=available, requested=quantity)

            resulting = await tx.set_balance(balance, available - quantity)
            entry = await tx.append_entry(
                kind=kind,
                variant_id=variant_id,
                branch_id=branch_id,
                reason_id=reason_id,
                user_id=user_id,
                quantity=quantity,
                change=-quantity,
                resulting_quantity=resulting,
                unit_price=unit_price,
            )
            ledger_id = int(entry.id)

        logger.info(
            "ledger.%s variant=%s branch=%s quantity=%s price=%s resulting=%s reason=%s user=%s ledger_id=%s",
            kind.lower(), variant_id, branch_id, quantity, unit_price, resulting, reason_id, user_id, ledger_id,
        )
        return LedgerResult(ledger_id=ledger_id, resulting_quantity=resulting)

    @asynccontextmanager
    async def _unit(self, action: str, variant_id: int, branch_id: int) -> AsyncIterator[StoreTransaction]:
        try:
            async with self._store.atomic() as tx:
                yield tx
        except StoreFailure:
            logger.exception("ledger.%s failed variant=%s branch=%s", action, variant_id, branch_id)
            raise

    async def _require_reason(self, tx: StoreTransaction, reason_id: int) -> None:
        if not await tx.reason_exists(reason_id):
            raise UnknownReason(f"Unknown reason id: {reason_id}")
