from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from yuki.core.database import Base


class Document(Base):
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    filename = Column(String, nullable=False)
    filepath = Column(String, nullable=False)
    filetype = Column(String, nullable=False)  # pdf, csv, txt, png, jpeg, jpg, webp
    document_type = Column(String, nullable=False, default="statement")  # statement or receipt
    hash = Column(String(64), nullable=False, index=True)  # sha256 of the file content
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    ledger_entries = relationship("LedgerEntry", back_populates="document", cascade="all, delete-orphan", passive_deletes=True)
    receipts = relationship("Receipt", back_populates="document", cascade="all, delete-orphan", passive_deletes=True)
