from sqlalchemy import Column, String, DateTime, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from yuki.core.database import Base


class Category(Base):
    __tablename__ = "categories"

    # Slug of the name ("Home Office" -> "home-office"), the form normalize_category produces
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, unique=True)
    icon = Column(String, nullable=True)
    color = Column(String, nullable=True)  # Hex color code for UI
    is_default = Column(Boolean, default=False, nullable=False)  # Seeded categories, never deleted
    is_hidden = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    ledger_entries = relationship("LedgerEntry", back_populates="category")
