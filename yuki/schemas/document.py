from pydantic import BaseModel
from typing import Optional, Literal
from datetime import datetime

from yuki.schemas.cards import TextCard

DocumentType = Literal["statement", "receipt"]


class DocumentResponse(BaseModel):
    id: str
    filename: str
    filepath: str
    filetype: str
    document_type: str
    hash: str
    uploaded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProcessingResult(BaseModel):
    """Outcome of one uploaded file."""
    filename: str
    success: bool
    document_id: Optional[str] = None
    route: Optional[str] = None
    ledger_entries_created: int = 0
    purchased_items_created: int = 0
    receipt_id: Optional[str] = None
    card: TextCard
