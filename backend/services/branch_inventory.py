"""
Read path: valued branch inventory and ledger history.

Nothing here writes. Catalog metadata (names, SKUs, prices, branch status)
is joined in for display only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.aggregation import group_rows
from core.errors import InvalidBranch, NotFound
from db.catalog import Branch, Product, Variant
from db.inventory.ledger import LedgerEntry
from db.inventory.reason import ReasonCode
from db.inventory.stock import StockBalance


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """`created_at` is stored as naive UTC; aware bounds are converted to match."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class BranchInventoryRow:
    variant_id: int
    product_id: int
    sku: str
    name: str
    barcode: str
    model: Optional[str]
    color: Optional[str]
    quantity: int
    unit_sale_price: Decimal
    valued_total: Decimal
    updated_at: Optional[datetime] = None


@dataclass
class ProductInventory:
    product_id: int
    sku: str
    name: str
    variants: list[BranchInventoryRow] = field(default_factory=list)

    @property
    def total_quantity(self) -> int:
        return sum(v.quantity for v in self.variants)

    @property
    def valued_total(self) -> Decimal:
        return sum((v.valued_total for v in self.variants), Decimal("0"))


@dataclass(frozen=True)
class LedgerEntryView:
    id: int
    kind: str
    variant_id: int
    branch_id: int
    reason_id: int
    user_id: UUID
    quantity: int
    change: int
    resulting_quantity: int
    unit_price: Decimal
    created_at: datetime
    sku: str
    product_name: str
    branch_name: str
    reason: str


def _valued_total(quantity: int, price: Decimal) -> Decimal:
    return (Decimal(int(quantity)) * Decimal(price)).quantize(Decimal("0.01"))


class BranchInventoryQuery:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def active_branches(self) -> list[Branch]:
        async with self._session_maker() as db:
            res = await db.execute(
                select(Branch).where(Branch.is_active == True).order_by(func.lower(Branch.name).asc())  # noqa: E712
            )
            return list(res.scalars().all())

    async def branch_inventory(self, branch_id: int) -> list[BranchInventoryRow]:
        """Every balance row of an active branch with quantity x sale price."""
        async with self._session_maker() as db:
            await self._require_active_branch(db, branch_id)
            res = await db.execute(
                select(StockBalance, Variant, Product)
                .join(Variant, StockBalance.variant_id == Variant.id)
                .join(Product, Variant.product_id == Product.id)
                .where(StockBalance.branch_id == branch_id)
                .order_by(func.lower(Product.name).asc(), Variant.id.asc())
            )
            rows = res.all()

        out: list[BranchInventoryRow] = []
        for (st, v, p) in rows:
            price = Decimal(v.sale_price or 0)
            out.append(
                BranchInventoryRow(
                    variant_id=v.id,
                    product_id=p.id,
                    sku=p.sku,
                    name=p.name,
                    barcode=v.barcode,
                    model=v.model,
                    color=v.color,
                    quantity=int(st.quantity),
                    unit_sale_price=price,
                    valued_total=_valued_total(st.quantity, price),
                    updated_at=st.updated_at,
                )
            )
        return out

    async def inventory_by_product(self, branch_id: int) -> list[ProductInventory]:
        rows = await self.branch_inventory(branch_id)
        grouped = group_rows(
            rows,
            key=lambda r: r.product_id,
            make_group=lambda r: ProductInventory(product_id=r.product_id, sku=r.sku, name=r.name),
            make_child=lambda r: r,
            children=lambda g: g.variants,
        )
        return list(grouped.values())

    async def balance(self, variant_id: int, branch_id: int) -> Optional[int]:
        async with self._session_maker() as db:
            res = await db.execute(
                select(StockBalance.quantity).where(
                    StockBalance.variant_id == variant_id,
                    StockBalance.branch_id == branch_id,
                )
            )
            qty = res.scalar_one_or_none()
        return None if qty is None else int(qty)

    async def ledger_history(
        self,
        *,
        branch_id: Optional[int] = None,
        variant_id: Optional[int] = None,
        kind: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        page: int = 1,
        limit: int = 50,
    ) -> list[LedgerEntryView]:
        """Ledger entries, newest first."""
        start, end = to_naive_utc(start), to_naive_utc(end)
        stmt = self._history_select()
        if branch_id is not None:
            stmt = stmt.where(LedgerEntry.branch_id == branch_id)
        if variant_id is not None:
            stmt = stmt.where(LedgerEntry.variant_id == variant_id)
        if kind:
            stmt = stmt.where(LedgerEntry.kind == kind)
        if start is not None:
            stmt = stmt.where(LedgerEntry.created_at >= start)
        if end is not None:
            stmt = stmt.where(LedgerEntry.created_at <= end)

        page = max(int(page), 1)
        limit = max(int(limit), 1)
        stmt = stmt.order_by(LedgerEntry.created_at.desc(), LedgerEntry.id.desc())
        stmt = stmt.limit(limit).offset((page - 1) * limit)

        async with self._session_maker() as db:
            res = await db.execute(stmt)
            return [self._entry_view(*row) for row in res.all()]

    async def ledger_entry(self, ledger_id: int) -> LedgerEntryView:
        async with self._session_maker() as db:
            res = await db.execute(self._history_select().where(LedgerEntry.id == ledger_id))
            row = res.first()
        if row is None:
            raise NotFound(f"Ledger entry {ledger_id} not found")
        return self._entry_view(*row)

    async def replay_balance(self, variant_id: int, branch_id: int, initial: int = 0) -> int:
        """Apply the signed change of every ledger entry of the pair to `initial`."""
        async with self._session_maker() as db:
            res = await db.execute(
                select(func.coalesce(func.sum(LedgerEntry.change), 0)).where(
                    LedgerEntry.variant_id == variant_id,
                    LedgerEntry.branch_id == branch_id,
                )
            )
            return int(initial) + int(res.scalar_one())

    @staticmethod
    def _history_select():
        return (
            select(LedgerEntry, Product.sku, Product.name, Branch.name, ReasonCode.code)
            .join(Variant, LedgerEntry.variant_id == Variant.id)
            .join(Product, Variant.product_id == Product.id)
            .join(Branch, LedgerEntry.branch_id == Branch.id)
            .join(ReasonCode, LedgerEntry.reason_id == ReasonCode.id)
        )

    @staticmethod
    def _entry_view(e: LedgerEntry, sku: str, product_name: str, branch_name: str, reason: str) -> LedgerEntryView:
        return LedgerEntryView(
            id=int(e.id),
            kind=e.kind,
            variant_id=e.variant_id,
            branch_id=e.branch_id,
            reason_id=e.reason_id,
            user_id=e.user_id,
            quantity=int(e.quantity),
            change=int(e.change),
            resulting_quantity=int(e.resulting_quantity),
            unit_price=Decimal(e.unit_price),
            created_at=e.created_at,
            sku=sku,
            product_name=product_name,
            branch_name=branch_name,
            reason=reason,
        )

    @staticmethod
    async def _require_active_branch(db: AsyncSession, branch_id: int) -> None:
        res = await db.execute(select(Branch.is_active).where(Branch.id == branch_id))
        active = res.scalar_one_or_none()
        if not active:
            raise InvalidBranch(f"Branch {branch_id} does not exist or is inactive")
