from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Integer, Numeric, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fastapi_users_db_sqlalchemy.generics import GUID

from ..database import Base

SALE = "SALE"
WRITE_OFF = "WRITE_OFF"
ADJUSTMENT = "ADJUSTMENT"


class LedgerEntry(Base):
    """Immutable record of one stock-affecting event. Rows are only ever inserted."""

    __tablename__ = "ledger_entries"
    __mapper_args__ = {"eager_defaults": True}

    # SQLite only auto-increments INTEGER PRIMARY KEY columns
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    kind = Column(Text, nullable=False, index=True)  # 'SALE' | 'WRITE_OFF' | 'ADJUSTMENT'

    variant_id = Column(Integer, ForeignKey("variants.id", ondelete="RESTRICT"), nullable=False, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="RESTRICT"), nullable=False, index=True)
    reason_id = Column(Integer, ForeignKey("reason_codes.id", ondelete="RESTRICT"), nullable=False)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False)  # magnitude moved, abs(delta) for adjustments
    change = Column(Integer, nullable=False)  # signed delta applied to the balance
    resulting_quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)

    variant = relationship("Variant")
    branch = relationship("Branch")
    reason = relationship("ReasonCode")
    user = relationship("User", back_populates="ledger_entries")
