from sqlalchemy import Column, String, DateTime, Date, ForeignKey, Numeric, Float
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from yuki.core.database import Base


class PurchasedItem(Base):
    __tablename__ = "purchased_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    receipt_id = Column(String(36), ForeignKey("receipts.id", ondelete="CASCADE"), nullable=True, index=True)
    ledger_id = Column(String(36), ForeignKey("ledger.id", ondelete="CASCADE"), nullable=True)
    name = Column(String, nullable=False, index=True)  # lowercase-hyphenated, e.g. "organic-apples"
    quantity = Column(Float, nullable=False, default=1)
    unit = Column(String, nullable=True)
    unit_price = Column(Numeric(14, 2), nullable=True)
    total_price = Column(Numeric(14, 2), nullable=False)
    category = Column(String, nullable=True)
    brand = Column(String, nullable=True)
    purchased_at = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    receipt = relationship("Receipt", back_populates="purchased_items")
