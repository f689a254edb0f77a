from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .inventory.reason import ReasonCode

logger = logging.getLogger("inventory.seed")


@dataclass(frozen=True)
class SeedReason:
    code: str
    description: Optional[str] = None


SEED_REASONS: list[SeedReason] = [
    SeedReason(code="sale", description="Completed sale to a customer"),
    SeedReason(code="damage", description="Damaged item removed from stock"),
    SeedReason(code="loss", description="Lost or stolen item"),
    SeedReason(code="internal_use", description="Taken from stock for internal use"),
    SeedReason(code="count_correction", description="Correction after a physical stock count"),
    SeedReason(code="return_to_supplier", description="Returned to the supplier"),
]


async def seed_reason_codes(session_maker: async_sessionmaker[AsyncSession]) -> int:
    """Insert the reason codes that are missing. Returns how many were created."""
    async with session_maker() as db:
        async with db.begin():
            res = await db.execute(select(ReasonCode.code))
            existing = {r[0] for r in res.all()}
            missing = [r for r in SEED_REASONS if r.code not in existing]
            for r in missing:
                db.add(ReasonCode(code=r.code, description=r.description))
    if missing:
        logger.info("Seeded %d reason codes: %s", len(missing), ", ".join(r.code for r in missing))
    return len(missing)
