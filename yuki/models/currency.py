from sqlalchemy import Column, String, DateTime, Boolean, Float
from sqlalchemy.sql import func

from yuki.core.database import Base


class Currency(Base):
    """User-maintained reference table. LedgerEntry.currency is free text, not a foreign key."""
    __tablename__ = "currencies"

    code = Column(String(3), primary_key=True)
    name = Column(String, nullable=False)
    symbol = Column(String, nullable=False)
    # Multiply an amount in this currency by the rate to get the primary currency amount
    rate_to_primary = Column(Float, nullable=False, default=1.0)
    is_primary = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
