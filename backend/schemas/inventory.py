from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator


LedgerKind = Literal["SALE", "WRITE_OFF", "ADJUSTMENT"]


class _ReasonRef(BaseModel):
    """Reason given either as a seeded id or as its label (e.g. "damage")."""

    reason_id: Optional[int] = Field(default=None, gt=0)
    reason: Optional[str] = None

    @field_validator("reason")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def _exactly_one_reason(self):
        if (self.reason_id is None) == (self.reason is None):
            raise ValueError("provide exactly one of reason_id or reason")
        return self


class SaleCreate(_ReasonRef):
    variant_id: int = Field(gt=0)
    branch_id: int = Field(gt=0)
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)


class WriteOffCreate(_ReasonRef):
    variant_id: int = Field(gt=0)
    branch_id: int = Field(gt=0)
    quantity: int = Field(gt=0)


class AdjustmentCreate(_ReasonRef):
    variant_id: int = Field(gt=0)
    branch_id: int = Field(gt=0)
    new_quantity: int = Field(ge=0)


class LedgerResultOut(BaseModel):
    ledger_id: int
    resulting_quantity: int


class BranchOut(BaseModel):
    id: int
    name: str
    location: Optional[str] = None
    is_active: bool


class BranchInventoryRowOut(BaseModel):
    variant_id: int
    product_id: int
    sku: str
    name: str
    barcode: str
    model: Optional[str] = None
    color: Optional[str] = None
    quantity: int
    unit_sale_price: Decimal
    valued_total: Decimal
    updated_at: Optional[datetime] = None


class BranchInventoryOut(BaseModel):
    branch_id: int
    total: int
    data: List[BranchInventoryRowOut]


class ProductInventoryOut(BaseModel):
    product_id: int
    sku: str
    name: str
    total_quantity: int
    valued_total: Decimal
    variants: List[BranchInventoryRowOut]


class LedgerEntryOut(BaseModel):
    id: int
    kind: LedgerKind
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


class ReasonOut(BaseModel):
    id: int
    code: str
    description: Optional[str] = None
