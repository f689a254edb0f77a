from __future__ import annotations

import re
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.errors import UnknownReason
from db.inventory.reason import ReasonCode


def normalize_reason_label(label: str) -> str:
    # "Internal use" / "internal-use" / " INTERNAL_USE " -> "internal_use"
    return re.sub(r"[\s\-]+", "_", (label or "").strip().lower())


class ReasonRegistry:
    """Read-only lookup of the seeded reason codes."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def resolve(self, label: str) -> int:
        code = normalize_reason_label(label)
        if not code:
            raise UnknownReason("Reason label is required")
        async with self._session_maker() as db:
            res = await db.execute(select(ReasonCode.id).where(ReasonCode.code == code))
            reason_id = res.scalar_one_or_none()
        if reason_id is None:
            raise UnknownReason(f'Unknown reason: "{label}"')
        return int(reason_id)

    async def reason_id_for(self, reason_id: Optional[int], label: Optional[str]) -> int:
        # ids are validated by the ledger inside its own transaction
        if label is not None:
            return await self.resolve(label)
        if reason_id is None:
            raise UnknownReason("Reason is required")
        return int(reason_id)

    async def list_reasons(self) -> list[dict]:
        async with self._session_maker() as db:
            res = await db.execute(select(ReasonCode).order_by(func.lower(ReasonCode.code).asc()))
            return [r.to_schema for r in res.scalars().all()]
