from sqlalchemy import Column, String, DateTime, Date, ForeignKey, Numeric, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from yuki.core.database import Base


class Receipt(Base):
    __tablename__ = "receipts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=True, index=True)
    # Null when the receipt pathway deliberately creates no ledger entry
    ledger_id = Column(String(36), ForeignKey("ledger.id", ondelete="CASCADE"), nullable=True)
    merchant = Column(String, nullable=False)
    date = Column(Date, nullable=True)
    items = Column(JSON, nullable=False, default=list)  # [{"name": ..., "amount": ...}]
    tax = Column(Numeric(14, 2), nullable=True)
    total = Column(Numeric(14, 2), nullable=False)
    category = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    document = relationship("Document", back_populates="receipts")
    purchased_items = relationship("PurchasedItem", back_populates="receipt", cascade="all, delete-orphan", passive_deletes=True)
