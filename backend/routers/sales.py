from dataclasses import asdict

from fastapi import APIRouter, Depends, status

from core.auth import current_active_user
from core.deps import get_inventory_ledger, get_reason_registry
from db.users import User
from schemas.inventory import LedgerResultOut, SaleCreate
from services.ledger import InventoryLedger
from services.reasons import ReasonRegistry

router = APIRouter()


@router.post("", response_model=LedgerResultOut, status_code=status.HTTP_201_CREATED)
async def register_sale(
    payload: SaleCreate,
    user: User = Depends(current_active_user),
    ledger: InventoryLedger = Depends(get_inventory_ledger),
    reasons: ReasonRegistry = Depends(get_reason_registry),
):
    reason_id = await reasons.reason_id_for(payload.reason_id, payload.reason)
    result = await ledger.register_sale(
        variant_id=payload.variant_id,
        branch_id=payload.branch_id,
        quantity=payload.quantity,
        reason_id=reason_id,
        user_id=user.id,
        unit_price=payload.unit_price,
    )
    return asdict(result)
