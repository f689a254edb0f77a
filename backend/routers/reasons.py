from typing import List

from fastapi import APIRouter, Depends

from core.deps import get_reason_registry
from schemas.inventory import ReasonOut
from services.reasons import ReasonRegistry

router = APIRouter()


@router.get("", response_model=List[ReasonOut])
async def list_reasons(reasons: ReasonRegistry = Depends(get_reason_registry)):
    return await reasons.list_reasons()
