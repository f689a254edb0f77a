"""
Stock and ledger store access.

`InventoryStore.atomic()` is the only way to write: it opens one session and
one transaction, yields a `StoreTransaction`, and commits when the block
exits cleanly. Any exception rolls back both the balance change and the
ledger append. Driver and SQL errors are re-raised as `StoreFailure` (or
`ConstraintViolation` for integrity errors) so callers never see
backend-specific error codes.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from decimal import Decimal
from typing import AsyncIterator, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.errors import ConstraintViolation, StoreFailure
from db.inventory.ledger import LedgerEntry
from db.inventory.reason import ReasonCode
from db.inventory.stock import StockBalance


class StoreTransaction:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def lock_balance(self, variant_id: int, branch_id: int) -> Optional[StockBalance]:
        """Read the balance row and hold its lock until the transaction ends."""
        res = await self.session.execute(
            select(StockBalance)
            .where(StockBalance.variant_id == variant_id, StockBalance.branch_id == branch_id)
            .with_for_update()
        )
        return res.scalar_one_or_none()

    async def set_balance(self, balance: StockBalance, quantity: int) -> int:
        balance.quantity = quantity
        await self.session.flush()
        return int(balance.quantity)

    async def reason_exists(self, reason_id: int) -> bool:
        res = await self.session.execute(select(ReasonCode.id).where(ReasonCode.id == reason_id))
        return res.scalar_one_or_none() is not None

    async def append_entry(
        self,
        *,
        kind: str,
        variant_id: int,
        branch_id: int,
        reason_id: int,
        user_id: UUID,
        quantity: int,
        change: int,
        resulting_quantity: int,
        unit_price: Decimal,
    ) -> LedgerEntry:
        entry = LedgerEntry(
            kind=kind,
            variant_id=variant_id,
            branch_id=branch_id,
            reason_id=reason_id,
            user_id=user_id,
            quantity=quantity,
            change=change,
            resulting_quantity=resulting_quantity,
            unit_price=unit_price,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry


class InventoryStore:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[StoreTransaction]:
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    yield StoreTransaction(session)
        except IntegrityError as e:
            raise ConstraintViolation(f"Constraint violated: {e.orig}") from e
        except (SQLAlchemyError, OSError) as e:
            raise StoreFailure(f"Inventory store unavailable: {e}") from e
