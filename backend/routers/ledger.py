from dataclasses import asdict
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from core.auth import current_active_user
from core.deps import get_branch_inventory
from db.users import User
from schemas.inventory import LedgerEntryOut, LedgerKind
from services.branch_inventory import BranchInventoryQuery, to_naive_utc

router = APIRouter()


@router.get("", response_model=List[LedgerEntryOut])
async def list_ledger_entries(
    branch_id: Optional[int] = Query(None, gt=0),
    variant_id: Optional[int] = Query(None, gt=0),
    kind: Optional[LedgerKind] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    user: User = Depends(current_active_user),
    query: BranchInventoryQuery = Depends(get_branch_inventory),
):
    start, end = to_naive_utc(start), to_naive_utc(end)
    if start is not None and end is not None and start > end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="start must be before end")
    entries = await query.ledger_history(
        branch_id=branch_id,
        variant_id=variant_id,
        kind=kind,
        start=start,
        end=end,
        page=page,
        limit=limit,
    )
    return [asdict(e) for e in entries]


@router.get("/{ledger_id}", response_model=LedgerEntryOut)
async def get_ledger_entry(
    ledger_id: int,
    user: User = Depends(current_active_user),
    query: BranchInventoryQuery = Depends(get_branch_inventory),
):
    """Look up one entry, e.g. to confirm whether a timed-out request committed."""
    return asdict(await query.ledger_entry(ledger_id))
