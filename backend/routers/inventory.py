from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, Query, status

from core.auth import current_active_user
from core.deps import get_branch_inventory, get_inventory_ledger, get_reason_registry
from db.users import User
from schemas.inventory import (
    AdjustmentCreate,
    BranchInventoryOut,
    BranchOut,
    LedgerResultOut,
    ProductInventoryOut,
    WriteOffCreate,
)
from services.branch_inventory import BranchInventoryQuery
from services.ledger import InventoryLedger
from services.reasons import ReasonRegistry

router = APIRouter()


@router.get("", response_model=BranchInventoryOut)
async def get_branch_inventory_view(
    branch_id: int = Query(..., gt=0),
    user: User = Depends(current_active_user),
    query: BranchInventoryQuery = Depends(get_branch_inventory),
):
    """Valued stock of every variant held at an active branch."""
    rows = await query.branch_inventory(branch_id)
    return {"branch_id": branch_id, "total": len(rows), "data": [asdict(r) for r in rows]}


@router.get("/by-product", response_model=List[ProductInventoryOut])
async def get_branch_inventory_by_product(
    branch_id: int = Query(..., gt=0),
    user: User = Depends(current_active_user),
    query: BranchInventoryQuery = Depends(get_branch_inventory),
):
    groups = await query.inventory_by_product(branch_id)
    return [
        {
            "product_id": g.product_id,
            "sku": g.sku,
            "name": g.name,
            "total_quantity": g.total_quantity,
            "valued_total": g.valued_total,
            "variants": [asdict(v) for v in g.variants],
        }
        for g in groups
    ]


@router.get("/branches", response_model=List[BranchOut])
async def list_active_branches(
    user: User = Depends(current_active_user),
    query: BranchInventoryQuery = Depends(get_branch_inventory),
):
    branches = await query.active_branches()
    return [b.to_schema for b in branches]


@router.post("/write-offs", response_model=LedgerResultOut, status_code=status.HTTP_201_CREATED)
async def register_write_off(
    payload: WriteOffCreate,
    user: User = Depends(current_active_user),
    ledger: InventoryLedger = Depends(get_inventory_ledger),
    reasons: ReasonRegistry = Depends(get_reason_registry),
):
    reason_id = await reasons.reason_id_for(payload.reason_id, payload.reason)
    result = await ledger.register_write_off(
        variant_id=payload.variant_id,
        branch_id=payload.branch_id,
        quantity=payload.quantity,
        reason_id=reason_id,
        user_id=user.id,
    )
    return asdict(result)


@router.post("/adjustments", response_model=LedgerResultOut)
async def adjust_inventory(
    payload: AdjustmentCreate,
    user: User = Depends(current_active_user),
    ledger: InventoryLedger = Depends(get_inventory_ledger),
    reasons: ReasonRegistry = Depends(get_reason_registry),
):
    """Set the stock of a variant at a branch to a counted value."""
    reason_id = await reasons.reason_id_for(payload.reason_id, payload.reason)
    result = await ledger.adjust_absolute(
        variant_id=payload.variant_id,
        branch_id=payload.branch_id,
        new_quantity=payload.new_quantity,
        reason_id=reason_id,
        user_id=user.id,
    )
    return asdict(result)
