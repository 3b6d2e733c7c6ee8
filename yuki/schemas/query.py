from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from yuki.schemas.cards import ResponseData


class QueryRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=2000)
    session_id: Optional[str] = None


class QueryResult(BaseModel):
    session_id: Optional[str] = None
    sql_query: Optional[str] = None
    response: ResponseData


class ChatHistoryResponse(BaseModel):
    id: str
    question: str
    sql_query: Optional[str] = None
    response: dict
    card_count: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ChatMessageRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)


class RecordResult(BaseModel):
    detected: bool
    ledger_entry_id: Optional[str] = None
    response: ResponseData
