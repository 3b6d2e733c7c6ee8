from sqlalchemy import Column, String, DateTime, Integer, Text, JSON
import uuid
from datetime import datetime, timezone

from yuki.core.database import Base


class ChatHistoryEntry(Base):
    """Append-only log of answered questions."""
    __tablename__ = "chat_history"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    question = Column(Text, nullable=False)
    sql_query = Column(Text, nullable=True)  # kept for transparency, never re-executed
    response = Column(JSON, nullable=False)  # full ResponseData
    card_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)
