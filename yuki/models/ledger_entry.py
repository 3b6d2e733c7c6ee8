from sqlalchemy import Column, String, DateTime, Date, ForeignKey, Numeric, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from yuki.core.database import Base

LEDGER_SOURCES = ("document", "image", "conversation", "manual", "scanned-pdf")


class LedgerEntry(Base):
    __tablename__ = "ledger"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=True, index=True)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=True)
    date = Column(Date, nullable=False, index=True)
    description = Column(String, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)  # negative = outflow, positive = inflow
    currency = Column(String(3), nullable=False, default="USD")
    category_id = Column(String, ForeignKey("categories.id"), nullable=False, default="other", index=True)
    merchant = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    source = Column(String, nullable=False, default="manual")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    document = relationship("Document", back_populates="ledger_entries")
    account = relationship("Account", back_populates="ledger_entries")
    category = relationship("Category", back_populates="ledger_entries")
